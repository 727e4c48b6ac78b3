# src/lpnsim_core/network/__init__.py
from .exceptions import NetworkStateError, DuplicateBlockError
from .network import Network

__all__ = [
    "NetworkStateError",
    "DuplicateBlockError",
    "Network",
]
