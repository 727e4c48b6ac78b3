# src/lpnsim_core/parameters/__init__.py
from .exceptions import (
    UndeclaredParameterError,
    MissingParameterError,
    ParameterUnitError,
)
from .parameters import InputParameter, ParameterValues

__all__ = [
    # Exceptions
    "UndeclaredParameterError",
    "MissingParameterError",
    "ParameterUnitError",
    # Core Classes
    "InputParameter",
    "ParameterValues",
]
