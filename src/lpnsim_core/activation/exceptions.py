# src/lpnsim_core/activation/exceptions.py
"""
Defines the custom, diagnosable exceptions for the activation-function subsystem.

Configuration errors (unknown type, bad cardiac period, degenerate normalization,
invalid parameters) and usage-order errors (computing before finalize, sharing an
instance between chambers) are both fatal and surfaced immediately.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from ..errors import ConfigurationError, UsageOrderError, format_diagnostic_report


@dataclass()
class UnknownActivationTypeError(ConfigurationError):
    """Raised by the factory for a type name that is not registered."""
    type_str: str
    valid_types: List[str] = field(default_factory=list)

    def __str__(self):
        return (f"Unknown activation_function type '{self.type_str}'. "
                f"Must be one of: {', '.join(self.valid_types)}")

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Unknown Activation Function Type",
            details=str(self),
            suggestion="Use one of the registered activation function type names listed above.",
            context={'user_input': self.type_str}
        )


@dataclass()
class ActivationNormalizationError(ConfigurationError):
    """Raised when the two-hill normalization factor cannot be computed."""
    details: str
    cardiac_period: Optional[float] = None

    def __str__(self):
        return f"Activation normalization failed: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Activation Normalization Failure",
            details=self.details,
            suggestion="Check that the cardiac period is positive and that tau_1 and tau_2 are valid (e.g. tau_1 > 0, tau_2 > 0).",
            context={'user_input': f"cardiac_period={self.cardiac_period}" if self.cardiac_period is not None else None}
        )


@dataclass()
class ActivationParameterError(ConfigurationError):
    """Raised by `finalize()` when a parameter value makes the waveform undefined."""
    type_str: str
    name: str
    value: float
    details: str

    def __str__(self):
        return f"Activation function '{self.type_str}' parameter '{self.name}'={self.value}: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Activation Parameter",
            details=str(self),
            suggestion="Adjust the activation function parameter to a valid value.",
            context={'user_input': f"{self.name}={self.value}"}
        )


@dataclass()
class ActivationNotFinalizedError(UsageOrderError):
    """Raised when a normalization-requiring activation is computed before `finalize()`."""
    type_str: str

    def __str__(self):
        return f"{self.type_str} activation: call finalize() after setting parameters and before compute()."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Activation Function Not Finalized",
            details=str(self),
            suggestion="Call finalize() once all parameters are set. Setting a parameter afterwards requires another finalize().",
            context={}
        )


@dataclass()
class ActivationOwnershipError(UsageOrderError):
    """Raised when an activation function already owned by one block is injected into another."""
    type_str: str
    current_owner: str
    requested_owner: str

    def __str__(self):
        return (f"{self.type_str} activation is already owned by block '{self.current_owner}' "
                f"and cannot be injected into '{self.requested_owner}'.")

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Activation Function Ownership Violation",
            details=str(self),
            suggestion="Create a separate activation function instance for every chamber.",
            context={'block': self.requested_owner}
        )


@dataclass()
class InvalidCardiacPeriodError(ConfigurationError):
    """Raised when an activation function is constructed with a non-positive cardiac period."""
    type_str: str
    cardiac_period: float

    def __str__(self):
        return (f"{self.type_str} activation: cardiac_period must be positive "
                f"(got {self.cardiac_period}).")

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Cardiac Period",
            details=str(self),
            suggestion="Set 'simulation_parameters.cardiac_period' to a positive duration, e.g. '0.8 s'.",
            context={'user_input': f"cardiac_period={self.cardiac_period}"}
        )
