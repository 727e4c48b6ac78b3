# src/lpnsim_core/assembly/exceptions.py
"""
Defines the custom, diagnosable exceptions for DOF numbering and sparse assembly.

A `SparseWriteError` always indicates a block that broke its contract with the
assembly layer (writing outside the system, beyond its declared triplet budget, or
onto a key owned by another block). None of these are recoverable at runtime.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from ..errors import DiagnosableError, UsageOrderError, format_diagnostic_report


@dataclass()
class DofRegistrationError(UsageOrderError):
    """Raised when DOF registration would reuse, alias or mis-size global indices."""
    owner: str
    details: str

    def __str__(self):
        return f"DOF registration for '{self.owner}' failed: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="DOF Registration Error",
            details=self.details,
            suggestion="Every block must register exactly once, with a unique name, before any update phase.",
            context={'block': self.owner}
        )


@dataclass()
class SparseWriteError(DiagnosableError):
    """Raised when a write to a sparse matrix violates its bounds, capacity or budget contract."""
    matrix_name: str
    key: Tuple[int, int]
    details: str
    block: Optional[str] = None

    def __str__(self):
        owner = f" by block '{self.block}'" if self.block else ""
        return f"Invalid write to {self.matrix_name}{list(self.key)}{owner}: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Sparse Write Contract Violation",
            details=str(self),
            suggestion="The block's declared num_triplets must match the entries its update methods write, and each entry must be owned by one block only.",
            context={'block': self.block}
        )
