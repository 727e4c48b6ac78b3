# src/lpnsim_core/assembly/__init__.py
from .exceptions import (
    DofRegistrationError,
    SparseWriteError,
)
from .dofhandler import DOFHandler
from .sparse_system import SparseSystem, TripletMatrix, TripletContributions

__all__ = [
    # Exceptions
    "DofRegistrationError",
    "SparseWriteError",
    # Core Classes
    "DOFHandler",
    "SparseSystem",
    "TripletMatrix",
    "TripletContributions",
]
