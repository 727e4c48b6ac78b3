# src/lpnsim_core/loader/exceptions.py
"""
Defines the custom, diagnosable exceptions for loading a network configuration.

`LoaderError` covers file-level problems (missing file, unreadable file, invalid
YAML syntax, a root that is not a mapping). `SchemaValidationError` covers a
document that is valid YAML but does not match the network schema.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import DiagnosableError, format_diagnostic_report


class BaseLoaderError(DiagnosableError):
    """Common base of all configuration loading errors."""
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Loader Error",
            details=str(self),
            suggestion="Please check the format and content of the network configuration.",
            context={}
        )


@dataclass()
class LoaderError(BaseLoaderError):
    """Raised when the configuration cannot be read or is not a YAML mapping."""
    details: str
    file_path: Optional[Path] = None

    def __str__(self):
        where = f" in file '{self.file_path}'" if self.file_path else ""
        return f"Loader error{where}: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Configuration File Error",
            details=self.details,
            suggestion="Ensure the file exists, is readable, and contains a valid YAML mapping.",
            context={'source_file': self.file_path}
        )


@dataclass()
class SchemaValidationError(BaseLoaderError):
    """Raised when Cerberus schema validation of the configuration fails."""
    errors: Dict[str, Any]
    file_path: Optional[Path] = None

    def _error_lines(self):
        return [f"  - Field '{k}': {v[0] if isinstance(v, list) and v else v}" for k, v in sorted(self.errors.items())]

    def __str__(self):
        source = f"file '{self.file_path}'" if self.file_path else "configuration"
        return f"Schema validation failed for {source}:\n" + "\n".join(self._error_lines())

    def get_diagnostic_report(self) -> str:
        details = (
            "The structure of the configuration does not conform to the network schema.\n"
            f"See details for {len(self.errors)} issue(s) below:\n\n" + "\n".join(self._error_lines())
        )
        return format_diagnostic_report(
            error_type="Configuration Schema Validation Error",
            details=details,
            suggestion="Correct the listed fields. Check for invalid or duplicate block names and a missing 'blocks' section.",
            context={'source_file': self.file_path}
        )
