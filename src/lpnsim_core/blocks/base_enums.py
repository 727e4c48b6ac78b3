# src/lpnsim_core/blocks/base_enums.py
from enum import Enum, auto


class BlockClass(Enum):
    """
    The physical family a block belongs to. Only chambers accept an activation function.
    """
    VESSEL = auto()   # Resistive/capacitive/inductive vessel segment.
    CHAMBER = auto()  # Contractile cardiac chamber with a time-varying elastance.


class BlockPhase(Enum):
    """
    Lifecycle of a block within its network. Phase calls out of this order are
    rejected by the network.
    """
    UNREGISTERED = auto()
    DOFS_ASSIGNED = auto()
    CONSTANTS_WRITTEN = auto()
    TIME_UPDATED = auto()
    SOLUTION_UPDATED = auto()
