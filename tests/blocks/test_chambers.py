# tests/blocks/test_chambers.py
import numpy as np
import pytest

from lpnsim_core.activation import ActivationOwnershipError, create_activation_function
from lpnsim_core.assembly import TripletContributions
from lpnsim_core.blocks import (
    ActivationFunctionMissingError,
    BlockClass,
    LinearElastanceChamber,
)

from conftest import ConstantActivation, add_chamber, assemble

P_IN, Q_IN, P_OUT, Q_OUT, VC = range(5)


def entry(system, matrix, block, eqn, var):
    return getattr(system, matrix)[block.global_eqn_ids[eqn], block.global_var_ids[var]]


def test_chamber_declarations():
    assert LinearElastanceChamber.block_class is BlockClass.CHAMBER
    assert LinearElastanceChamber.num_equations == 3
    assert LinearElastanceChamber.internal_variables == ("Vc",)
    assert LinearElastanceChamber.num_triplets == TripletContributions(F=6, E=1, D=0)
    assert list(LinearElastanceChamber.declare_parameters()) == ["Emax", "Epass", "Vrest"]


def test_chamber_internal_volume_variable(network):
    chamber = add_chamber(network, "LV")
    network.finalize()
    assert len(chamber.global_var_ids) == 5
    assert network.dofhandler.get_variable_index("Vc:LV") == chamber.global_var_ids[VC]


def test_chamber_constant_contributions(network):
    chamber = add_chamber(network, "LV")
    network.finalize()
    system = network.create_system()
    network.update_constant(system)

    assert entry(system, "F", chamber, 0, P_IN) == 1.0
    assert entry(system, "F", chamber, 1, P_IN) == 1.0
    assert entry(system, "F", chamber, 1, P_OUT) == -1.0
    assert entry(system, "F", chamber, 2, Q_IN) == 1.0
    assert entry(system, "F", chamber, 2, Q_OUT) == -1.0
    assert entry(system, "E", chamber, 2, VC) == -1.0


def test_chamber_time_dependent_elastance(network):
    chamber = add_chamber(network, "LV", Emax=2.0, Epass=0.5, Vrest=10.0, activation_value=0.25)
    network.finalize()
    system = network.create_system()
    network.update_constant(system)
    network.update_time(system, 0.3)

    # E(t) = Epass + Emax * 0.25 = 1.0
    assert chamber.elastance == pytest.approx(1.0)
    assert entry(system, "F", chamber, 0, VC) == pytest.approx(-1.0)
    assert system.C[chamber.global_eqn_ids[0]] == pytest.approx(10.0)
    assert chamber.activation_function.calls == [0.3]


def test_chamber_time_update_overwrites(network):
    chamber = add_chamber(network, "LV", Emax=2.0, Epass=0.5, Vrest=10.0, activation_value=0.25)
    network.finalize()
    system = network.create_system()
    network.update_constant(system)
    network.update_time(system, 0.1)
    chamber.activation_function.value = 1.0
    network.update_time(system, 0.2)

    assert entry(system, "F", chamber, 0, VC) == pytest.approx(-2.5)
    assert system.C[chamber.global_eqn_ids[0]] == pytest.approx(25.0)
    assert system.triplet_counts() == TripletContributions(F=6, E=1, D=0)


def test_chamber_residual_is_pressure_volume_relation(network):
    chamber = add_chamber(network, "LV", Emax=2.0, Epass=0.5, Vrest=10.0, activation_value=0.25)
    network.finalize()
    y = np.array([30.0, 4.0, 30.0, 1.0, 40.0])
    dy = np.array([0.0, 0.0, 0.0, 0.0, 3.0])
    system = assemble(network, time=0.0, y=y, dy=dy)

    # P_in - E (Vc - Vrest), P_in - P_out, Q_in - Q_out - dVc
    np.testing.assert_allclose(system.residual(y, dy), -np.array([30.0 - 1.0 * 30.0, 0.0, 0.0]))


def test_update_time_without_activation_raises(network):
    add_chamber(network, "LV", activation_value=None)
    network.finalize()
    system = network.create_system()
    network.update_constant(system)
    with pytest.raises(ActivationFunctionMissingError) as exc_info:
        network.update_time(system, 0.0)
    assert exc_info.value.block == "LV"


def test_activation_function_cannot_be_shared(network):
    lv = add_chamber(network, "LV", activation_value=None)
    rv = add_chamber(network, "RV", activation_value=None)
    shared = create_activation_function("half_cosine", network.cardiac_period)
    lv.set_activation_function(shared)
    assert shared.owner == "LV"
    with pytest.raises(ActivationOwnershipError):
        rv.set_activation_function(shared)
    assert rv.activation_function is None


def test_reinjection_releases_previous_activation(network):
    lv = add_chamber(network, "LV", activation_value=None)
    first, second = ConstantActivation(0.1), ConstantActivation(0.2)
    lv.set_activation_function(first)
    lv.set_activation_function(second)
    assert first.owner is None
    assert second.owner == "LV"
    assert lv.activation_function is second
    # Re-injecting the same instance keeps ownership.
    lv.set_activation_function(second)
    assert second.owner == "LV"


def test_teardown_releases_activation(network):
    lv = add_chamber(network, "LV")
    activation = lv.activation_function
    network.finalize()
    network.teardown()
    assert activation.owner is None
    assert lv.activation_function is None
    assert lv.global_var_ids == []
