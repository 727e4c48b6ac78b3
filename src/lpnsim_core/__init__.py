# src/lpnsim_core/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("LPNSim Core package initialized.")

from .units import ureg, Quantity, to_declared_units
from .parameters import InputParameter, ParameterValues
from .activation import ActivationFunction, ACTIVATION_REGISTRY, create_activation_function
from .assembly import DOFHandler, SparseSystem, TripletContributions
from .blocks import (
    Block, BlockClass, BlockPhase, BLOCK_REGISTRY, register_block,
    BloodVessel, BloodVesselCRL, LinearElastanceChamber,
)
from .network import Network
from .loader import NetworkLoader
from .errors import (
    LpnSimError, NetworkBuildError,
    DiagnosableError, ConfigurationError, UsageOrderError,
)

__all__ = [
    # Units
    "ureg", "Quantity", "to_declared_units",
    # Parameters
    "InputParameter", "ParameterValues",
    # Activation functions
    "ActivationFunction", "ACTIVATION_REGISTRY", "create_activation_function",
    # Assembly
    "DOFHandler", "SparseSystem", "TripletContributions",
    # Blocks
    "Block", "BlockClass", "BlockPhase", "BLOCK_REGISTRY", "register_block",
    "BloodVessel", "BloodVesselCRL", "LinearElastanceChamber",
    # Network and loader
    "Network", "NetworkLoader",
    # Errors (Actionable Diagnostics)
    "LpnSimError", "NetworkBuildError",
    "DiagnosableError", "ConfigurationError", "UsageOrderError",
]
