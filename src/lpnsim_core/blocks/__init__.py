# src/lpnsim_core/blocks/__init__.py
from .exceptions import (
    BlockError,
    ActivationFunctionMissingError,
    UnknownBlockTypeError,
)
from .base_enums import BlockClass, BlockPhase
from .base import Block, BLOCK_REGISTRY, register_block
# Importing the variants registers them.
from .vessels import BloodVessel, BloodVesselCRL
from .chambers import LinearElastanceChamber

__all__ = [
    # Exceptions
    "BlockError",
    "ActivationFunctionMissingError",
    "UnknownBlockTypeError",
    # Enums
    "BlockClass",
    "BlockPhase",
    # Contract and registry
    "Block",
    "BLOCK_REGISTRY",
    "register_block",
    # Variants
    "BloodVessel",
    "BloodVesselCRL",
    "LinearElastanceChamber",
]
