# src/lpnsim_core/errors.py
import logging
from abc import abstractmethod
from typing import Any, Dict, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# --- User-Facing Exception Hierarchy ---

class LpnSimError(Exception):
    """Base class for all custom, user-facing errors in LPNSim Core."""
    pass

class NetworkBuildError(LpnSimError):
    """
    Raised when loading a network from its configuration fails for any reason, from
    schema validation to activation-function normalization. The message is a
    pre-formatted, user-friendly diagnostic report.
    """
    pass


# --- Diagnostic Protocol & Base Exception ---

@runtime_checkable
class Diagnosable(Protocol):
    """
    A protocol for exceptions that can generate their own rich diagnostic report.
    """
    def get_diagnostic_report(self) -> str:
        """Generates a complete, user-friendly, multi-line report string."""
        ...

class DiagnosableError(Exception, Diagnosable):
    """
    A common, concrete base class for all internal exceptions that are diagnosable.

    It inherits from `Exception`, so it can be used in `except` clauses, and declares
    `get_diagnostic_report` as abstract so every subclass must provide a report.
    """
    @abstractmethod
    def get_diagnostic_report(self) -> str:
        """
        Abstract method to generate the diagnostic report.
        Subclasses MUST implement this.
        """
        raise NotImplementedError


# --- Error Taxonomy ---

class ConfigurationError(DiagnosableError):
    """
    Fatal error caused by the inputs a network was configured with: an unknown type
    name, an undeclared parameter, a degenerate normalization. Never retried.
    """
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Configuration Error",
            details=str(self),
            suggestion="Review the block and activation-function inputs of the network.",
            context={}
        )

class UsageOrderError(DiagnosableError):
    """
    Fatal error caused by calling the core in the wrong order, e.g. computing an
    activation before it was finalized or updating a block before its DOFs exist.
    """
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Usage Order Error",
            details=str(self),
            suggestion="Call setup (finalize) before any update phase, and update constants before time or solution phases.",
            context={}
        )


# --- Stateless Formatting Utility ---

def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    A stateless helper to format the final multi-line report string, ensuring a
    consistent look and feel for all user-facing diagnostics.

    Args:
        error_type: The high-level category of the error (e.g., "Triplet Budget Exceeded").
        details: A detailed, potentially multi-line description of the problem.
        suggestion: Actionable advice for the user to resolve the issue.
        context: A dictionary of contextual information (block name, source file, user input, time).

    Returns:
        A formatted, user-friendly diagnostic report string ready for display.
    """
    lines = [
        "\n",
        "================ LPNSim Core: Actionable Diagnostic Report ================",
        f"Error Type:     {error_type}",
    ]
    if block := context.get('block'):
        lines.append(f"Block:          {block}")
    if source_file := context.get('source_file'):
        lines.append(f"Source File:    {source_file}")
    if user_input := context.get('user_input'):
        lines.append(f"User Input:     '{user_input}'")
    if (time := context.get('time')) is not None:
        lines.append(f"Time:           {time}")

    lines.append("\nDetails:")
    for line in details.splitlines():
        lines.append(f"  {line}")

    if suggestion:
        lines.append("\nSuggestion:")
        for line in suggestion.splitlines():
            lines.append(f"  {line}")

    lines.append("==========================================================================")
    return "\n".join(lines)
