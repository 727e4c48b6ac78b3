# src/lpnsim_core/loader/__init__.py
from .exceptions import LoaderError, SchemaValidationError
from .loader import NetworkLoader, EnhancedValidator

__all__ = [
    "LoaderError",
    "SchemaValidationError",
    "NetworkLoader",
    "EnhancedValidator",
]
