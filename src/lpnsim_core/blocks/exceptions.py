# src/lpnsim_core/blocks/exceptions.py
"""
Defines the custom, diagnosable exceptions for the blocks subsystem.
"""
from dataclasses import dataclass
from typing import List

from ..errors import DiagnosableError, ConfigurationError, UsageOrderError, format_diagnostic_report


@dataclass()
class BlockError(DiagnosableError):
    """
    Raised when a block is asked to do something its contract does not allow,
    such as accepting an activation function when it is not a chamber.
    """
    block: str
    details: str

    def __str__(self):
        return f"Block '{self.block}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Block Contract Violation",
            details=self.details,
            suggestion="Check that the operation is supported by this block type.",
            context={'block': self.block}
        )


@dataclass()
class ActivationFunctionMissingError(UsageOrderError):
    """Raised when a chamber reaches a time update without an injected activation function."""
    block: str

    def __str__(self):
        return f"Chamber '{self.block}' has no activation function; one must be injected before update_time."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Missing Activation Function",
            details=str(self),
            suggestion="Add an 'activation_function' section to the chamber, or call set_activation_function().",
            context={'block': self.block}
        )


@dataclass()
class UnknownBlockTypeError(ConfigurationError):
    """Raised when a block type name is not present in the block registry."""
    type_str: str
    valid_types: List[str]

    def __str__(self):
        return f"Unknown block type '{self.type_str}'. Must be one of: {', '.join(sorted(self.valid_types))}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Unknown Block Type",
            details=str(self),
            suggestion="Fix the spelling of the block 'type', or register the block class with @register_block.",
            context={'user_input': self.type_str}
        )
