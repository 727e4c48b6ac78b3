# src/lpnsim_core/parameters/exceptions.py
"""
Defines the custom, diagnosable exceptions for the parameter subsystem.

Every error raised here is a `ConfigurationError`: it is caused by the inputs a
block or activation function was configured with, is fatal, and is never retried
by the core.
"""

from dataclasses import dataclass, field
from typing import List

from ..errors import ConfigurationError, format_diagnostic_report


@dataclass()
class UndeclaredParameterError(ConfigurationError):
    """Raised when a parameter name is read or written that its owner never declared."""
    owner: str
    name: str
    declared: List[str] = field(default_factory=list)

    def __str__(self):
        return (f"'{self.name}' is not a declared numeric parameter of '{self.owner}'. "
                f"Declared parameters are: {self.declared}.")

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Undeclared Parameter",
            details=str(self),
            suggestion="Check the spelling of the parameter name against the parameters the block or activation function declares.",
            context={'block': self.owner, 'user_input': self.name}
        )


@dataclass()
class MissingParameterError(ConfigurationError):
    """Raised when required (non-optional) parameters were never given a value."""
    owner: str
    missing: List[str]

    def __str__(self):
        return f"'{self.owner}' is missing required parameter(s): {self.missing}."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Missing Required Parameter",
            details=str(self),
            suggestion="Provide a value for every required parameter in the 'parameters' block.",
            context={'block': self.owner}
        )


@dataclass()
class ParameterUnitError(ConfigurationError):
    """Raised when a configured value cannot be converted to the parameter's declared units."""
    owner: str
    name: str
    user_input: str
    details: str

    def __str__(self):
        return f"Parameter '{self.owner}.{self.name}': {self.details} (input: '{self.user_input}')"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Parameter Value",
            details=self.details,
            suggestion="Give a plain number in the declared units, or a quantity string with compatible units (e.g. '0.8 s', '2 mmHg/mL').",
            context={'block': f"{self.owner}.{self.name}", 'user_input': self.user_input}
        )
