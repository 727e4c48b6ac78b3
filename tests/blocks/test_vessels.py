# tests/blocks/test_vessels.py
import numpy as np
import pytest

from lpnsim_core.assembly import TripletContributions
from lpnsim_core.blocks import BloodVessel, BloodVesselCRL, BlockClass, BlockError

from conftest import ConstantActivation, add_vessel, assemble, local_state

P_IN, Q_IN, P_OUT, Q_OUT = range(4)


def entry(system, matrix, block, eqn, var):
    return getattr(system, matrix)[block.global_eqn_ids[eqn], block.global_var_ids[var]]


def test_vessel_declarations():
    assert BloodVessel.block_class is BlockClass.VESSEL
    assert BloodVessel.num_equations == 2
    assert BloodVessel.internal_variables == ()
    assert BloodVessel.num_triplets == TripletContributions(F=5, E=3, D=2)
    params = BloodVessel.declare_parameters()
    assert list(params) == ["R_poiseuille", "C", "L", "stenosis_coefficient"]
    assert not params["R_poiseuille"].is_optional
    assert params["stenosis_coefficient"].is_optional
    assert [m.name for m in BloodVessel.ParamId] == ["RESISTANCE", "CAPACITANCE", "INDUCTANCE", "STENOSIS_COEFFICIENT"]


def test_vessel_constant_contributions(network):
    vessel = add_vessel(network, "aorta", R=100.0, C=1e-4, L=2.0)
    network.finalize()
    system = network.create_system()
    network.update_constant(system)

    assert entry(system, "E", vessel, 0, Q_OUT) == -2.0
    assert entry(system, "E", vessel, 1, P_IN) == -1e-4
    assert entry(system, "F", vessel, 0, P_IN) == 1.0
    assert entry(system, "F", vessel, 0, P_OUT) == -1.0
    assert entry(system, "F", vessel, 1, Q_IN) == 1.0
    assert entry(system, "F", vessel, 1, Q_OUT) == -1.0


def test_vessel_without_stenosis(network):
    vessel = add_vessel(network, "aorta", R=1.0, C=1.0, L=0.0, stenosis=0.0)
    network.finalize()
    system = assemble(network, y=local_state(network, vessel, [0.0, 2.0, 0.0, 0.0]))

    assert entry(system, "F", vessel, 0, Q_IN) == -1.0
    assert entry(system, "E", vessel, 1, Q_IN) == 1.0
    assert entry(system, "D", vessel, 0, Q_IN) == 0.0
    assert entry(system, "D", vessel, 1, Q_IN) == 0.0


def test_vessel_stenosis_with_reverse_flow(network):
    vessel = add_vessel(network, "aorta", R=1.0, C=1.0, L=0.0, stenosis=0.5)
    network.finalize()
    y = local_state(network, vessel, [0.0, -3.0, 0.0, 0.0])
    dy = local_state(network, vessel, [0.0, 1.0, 0.0, 0.0])
    system = assemble(network, y=y, dy=dy)

    # S = 0.5 * |-3| = 1.5
    assert entry(system, "F", vessel, 0, Q_IN) == pytest.approx(-2.5)
    assert entry(system, "D", vessel, 0, Q_IN) == pytest.approx(-1.5)
    assert entry(system, "E", vessel, 1, Q_IN) == pytest.approx(4.0)
    # 2 * C * stenosis * sgn(Q_in) * dQ_in with sgn(-3) = -1
    assert entry(system, "D", vessel, 1, Q_IN) == pytest.approx(-1.0)


def test_vessel_zero_flow_sign_is_zero(network):
    vessel = add_vessel(network, "aorta", R=1.0, C=1.0, stenosis=0.5)
    network.finalize()
    dy = local_state(network, vessel, [0.0, 5.0, 0.0, 0.0])
    system = assemble(network, dy=dy)
    assert entry(system, "D", vessel, 1, Q_IN) == 0.0


def test_vessel_writes_exactly_its_budget(network):
    add_vessel(network, "v1", stenosis=0.1)
    add_vessel(network, "v2", stenosis=0.2)
    network.finalize()
    system = assemble(network, y=np.ones(8), dy=np.ones(8))
    assert system.triplet_counts() == TripletContributions(F=10, E=6, D=4)
    # A second pass overwrites instead of adding.
    network.update_solution(system, 2 * np.ones(8), np.ones(8))
    assert system.triplet_counts() == TripletContributions(F=10, E=6, D=4)


def test_vessel_residual_matches_equations(network):
    vessel = add_vessel(network, "aorta", R=3.0, C=0.5, L=0.2, stenosis=0.4)
    network.finalize()
    y = local_state(network, vessel, [10.0, -2.0, 4.0, 1.5])
    dy = local_state(network, vessel, [0.3, 0.7, -0.2, 0.9])
    system = assemble(network, y=y, dy=dy)

    p_in, q_in, p_out, q_out = 10.0, -2.0, 4.0, 1.5
    dp_in, dq_in, dq_out = 0.3, 0.7, 0.9
    s = 0.4 * abs(q_in)
    expected = [
        p_in - p_out - (3.0 + s) * q_in - 0.2 * dq_out,
        q_in - q_out - 0.5 * dp_in + 0.5 * (3.0 + 2.0 * s) * dq_in,
    ]
    np.testing.assert_allclose(system.residual(y, dy), -np.array(expected))

    network.update_gradient(system, y, dy)
    np.testing.assert_allclose(system.param_residual, expected)


@pytest.mark.parametrize("vessel_type", ["BloodVessel", "BloodVesselCRL"])
def test_state_jacobian_matches_finite_differences(network, vessel_type):
    vessel = add_vessel(network, "v", R=3.0, C=0.5, L=0.2, stenosis=0.4, type_str=vessel_type)
    network.finalize()
    y = local_state(network, vessel, [10.0, -2.0, 4.0, 1.5])
    dy = local_state(network, vessel, [0.3, 0.7, -0.2, 0.9])
    system = assemble(network, y=y, dy=dy)
    analytic = system.jacobian(e_coeff=0.0).toarray()

    h = 1e-6
    numeric = np.zeros_like(analytic)
    for j in range(y.size):
        y_plus, y_minus = y.copy(), y.copy()
        y_plus[j] += h
        y_minus[j] -= h
        network.update_solution(system, y_plus, dy)
        r_plus = -system.residual(y_plus, dy)
        network.update_solution(system, y_minus, dy)
        r_minus = -system.residual(y_minus, dy)
        numeric[:, j] = (r_plus - r_minus) / (2 * h)

    np.testing.assert_allclose(analytic, numeric, rtol=1e-6, atol=1e-6)


@pytest.mark.parametrize("vessel_type", ["BloodVessel", "BloodVesselCRL"])
def test_parameter_jacobian_matches_finite_differences(network, vessel_type):
    vessel = add_vessel(network, "v", R=3.0, C=0.5, L=0.2, stenosis=0.4, type_str=vessel_type)
    network.finalize()
    y = local_state(network, vessel, [10.0, -2.0, 4.0, 1.5])
    dy = local_state(network, vessel, [0.3, 0.7, -0.2, 0.9])
    system = network.create_system()

    alpha = np.array(network.parameter_values)
    network.update_gradient(system, y, dy, alpha)
    analytic = system.param_jacobian.toarray()

    h = 1e-6
    numeric = np.zeros_like(analytic)
    for j in range(alpha.size):
        a_plus, a_minus = alpha.copy(), alpha.copy()
        a_plus[j] += h
        a_minus[j] -= h
        network.update_gradient(system, y, dy, a_plus)
        r_plus = system.param_residual.copy()
        network.update_gradient(system, y, dy, a_minus)
        r_minus = system.param_residual.copy()
        numeric[:, j] = (r_plus - r_minus) / (2 * h)

    np.testing.assert_allclose(analytic, numeric, rtol=1e-6, atol=1e-6)


def test_vessel_gradient_entries(network):
    vessel = add_vessel(network, "aorta", R=3.0, C=0.5, L=0.2, stenosis=0.4)
    network.finalize()
    y = local_state(network, vessel, [10.0, -2.0, 4.0, 1.5])
    dy = local_state(network, vessel, [0.3, 0.7, -0.2, 0.9])
    system = network.create_system()
    network.update_gradient(system, y, dy)

    R, C, L, S = vessel.global_param_ids
    eq0, eq1 = vessel.global_eqn_ids
    J = system.param_jacobian
    assert J[eq0, R] == pytest.approx(2.0)
    assert J[eq0, L] == pytest.approx(-0.9)
    assert J[eq0, S] == pytest.approx(4.0)
    assert J[eq0, C] == 0.0
    assert J[eq1, R] == pytest.approx(0.5 * 0.7)
    assert J[eq1, C] == pytest.approx(-0.3 + (3.0 + 2.0 * 0.8) * 0.7)
    assert J[eq1, S] == pytest.approx(2.0 * 0.5 * 2.0 * 0.7)


def test_crl_vessel_contributions(network):
    vessel = add_vessel(network, "v", R=2.0, C=0.5, L=0.1, stenosis=1.0, type_str="BloodVesselCRL")
    network.finalize()
    y = local_state(network, vessel, [0.0, 1.0, 0.0, -2.0])
    system = assemble(network, y=y)

    assert BloodVesselCRL.num_triplets == TripletContributions(F=5, E=2, D=1)
    assert entry(system, "E", vessel, 0, Q_OUT) == -0.1
    assert entry(system, "E", vessel, 1, P_IN) == -0.5
    assert entry(system, "F", vessel, 0, Q_OUT) == pytest.approx(-4.0)
    assert entry(system, "D", vessel, 0, Q_OUT) == pytest.approx(-2.0)
    # Stenosis acts on the outlet flow only.
    assert entry(system, "F", vessel, 0, Q_IN) == 0.0
    assert system.triplet_counts() == TripletContributions(F=5, E=2, D=1)


def test_vessel_rejects_activation_function(network):
    vessel = add_vessel(network, "aorta")
    with pytest.raises(BlockError) as exc_info:
        vessel.set_activation_function(ConstantActivation(0.5))
    assert "aorta" in str(exc_info.value)
