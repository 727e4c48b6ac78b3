# src/lpnsim_core/network/exceptions.py
"""
Defines the custom, diagnosable exceptions raised by the `Network` context object.
"""
from dataclasses import dataclass

from ..errors import ConfigurationError, UsageOrderError, format_diagnostic_report


@dataclass()
class NetworkStateError(UsageOrderError):
    """Raised when a network operation is called out of the block lifecycle order."""
    operation: str
    details: str

    def __str__(self):
        return f"Cannot {self.operation}: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Network Lifecycle Violation",
            details=str(self),
            suggestion=("Follow the order finalize() -> create_system() -> update_constant() -> "
                        "update_time() -> update_solution(), repeating the last two per time step."),
            context={}
        )


@dataclass()
class DuplicateBlockError(ConfigurationError):
    """Raised when a block name is added to a network twice."""
    name: str

    def __str__(self):
        return f"A block named '{self.name}' already exists in the network."

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Duplicate Block Name",
            details=str(self),
            suggestion="Give every block in the network a unique name.",
            context={'block': self.name}
        )
