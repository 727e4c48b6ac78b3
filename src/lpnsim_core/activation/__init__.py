# src/lpnsim_core/activation/__init__.py
from .exceptions import (
    UnknownActivationTypeError,
    ActivationNormalizationError,
    ActivationParameterError,
    ActivationNotFinalizedError,
    ActivationOwnershipError,
    InvalidCardiacPeriodError,
)
from .functions import (
    ActivationFunction,
    ACTIVATION_REGISTRY,
    register_activation,
    create_activation_function,
    HalfCosineActivation,
    PiecewiseCosineActivation,
    TwoHillActivation,
)

__all__ = [
    # Exceptions
    "UnknownActivationTypeError",
    "ActivationNormalizationError",
    "ActivationParameterError",
    "ActivationNotFinalizedError",
    "ActivationOwnershipError",
    "InvalidCardiacPeriodError",
    # Strategy family
    "ActivationFunction",
    "ACTIVATION_REGISTRY",
    "register_activation",
    "create_activation_function",
    "HalfCosineActivation",
    "PiecewiseCosineActivation",
    "TwoHillActivation",
]
