# tests/conftest.py
"""
Shared fixtures and helpers for the LPNSim Core test suite.

Blocks are always exercised through a real `Network` so that DOF numbering,
parameter registration and triplet budgets are the ones the integrator would see.
"""
import pytest
import numpy as np

from lpnsim_core.activation import ActivationFunction
from lpnsim_core.network import Network


class ConstantActivation(ActivationFunction):
    """Activation stub returning a fixed value and recording the times it was evaluated at."""
    type_str = "constant_test"

    def __init__(self, value: float, cardiac_period: float = 1.0):
        super().__init__(cardiac_period)
        self.value = value
        self.calls = []

    @classmethod
    def declare_parameters(cls):
        return {}

    def compute(self, time: float) -> float:
        self.calls.append(time)
        return self.value


def add_vessel(network, name, R=1.0, C=1.0, L=0.0, stenosis=0.0, type_str="BloodVessel"):
    block = network.add_block(type_str, name)
    block.set_param("R_poiseuille", R)
    block.set_param("C", C)
    block.set_param("L", L)
    block.set_param("stenosis_coefficient", stenosis)
    return block


def add_chamber(network, name, Emax=2.0, Epass=0.5, Vrest=10.0, activation_value=0.25):
    block = network.add_block("LinearElastanceChamber", name)
    block.set_param("Emax", Emax)
    block.set_param("Epass", Epass)
    block.set_param("Vrest", Vrest)
    if activation_value is not None:
        block.set_activation_function(ConstantActivation(activation_value, network.cardiac_period))
    return block


def local_state(network, block, values):
    """A global state vector that is zero except for `block`'s local variables."""
    y = np.zeros(network.dofhandler.num_variables)
    for local_index, value in enumerate(values):
        y[block.global_var_ids[local_index]] = value
    return y


def assemble(network, time=0.0, y=None, dy=None):
    """Create a system and run the constant, time and solution phases once."""
    system = network.create_system()
    network.update_constant(system)
    network.update_time(system, time)
    n = network.dofhandler.num_variables
    network.update_solution(
        system,
        np.zeros(n) if y is None else y,
        np.zeros(n) if dy is None else dy,
    )
    return system


@pytest.fixture
def network():
    net = Network(name="test_network", cardiac_period=1.0)
    yield net
    net.teardown()


@pytest.fixture
def constant_activation():
    return ConstantActivation(0.25)
