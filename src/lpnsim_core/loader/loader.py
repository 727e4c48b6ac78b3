# src/lpnsim_core/loader/loader.py
"""
Builds a finalized `Network` from a YAML file or an equivalent dictionary.

The loader is the single user-facing entry point for configured networks. It
validates the document structure with Cerberus, constructs every block by type name,
converts each parameter value to the parameter's declared units, injects and
finalizes activation functions for chambers, and finally finalizes the network.
Any diagnosable error raised along the way is re-raised as a `NetworkBuildError`
carrying the formatted diagnostic report.
"""
import logging
import re
import string
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import cerberus
import yaml
from pint.errors import PintError

from ..activation import create_activation_function
from ..blocks import BlockClass, ActivationFunctionMissingError
from ..constants import DEFAULT_CARDIAC_PERIOD
from ..errors import DiagnosableError, NetworkBuildError
from ..network import Network
from ..parameters import ParameterValues, ParameterUnitError
from ..units import TIME_UNITS, to_declared_units
from .exceptions import LoaderError, SchemaValidationError

logger = logging.getLogger(__name__)

ID_REGEX = r"^[a-zA-Z_][a-zA-Z0-9_]*$"
ALLOWED_ID_CHARS = set(string.ascii_letters + string.digits + "_")


class EnhancedValidator(cerberus.Validator):
    """Custom Cerberus validator enforcing block naming conventions."""
    def __init__(self, *args, **kwargs):
        super(EnhancedValidator, self).__init__(*args, **kwargs)
        self.rules['id_regex'] = {'schema': {'type': 'boolean'}}
        self.rules['unique_elements_by_key'] = {'schema': {'type': 'string'}}

    def _validate_id_regex(self, constraint: bool, field: str, value: Any):
        """
        Validates a block or network name against ID_REGEX.
        The rule's arguments are validated against this schema:
        {'type': 'boolean'}
        """
        if not constraint: return
        if not isinstance(value, str):
            self._error(field, "must be a string to be validated by id_regex.")
            return

        if not re.match(ID_REGEX, value):
            invalid_chars = sorted(set(value) - ALLOWED_ID_CHARS)
            self._error(
                field,
                f"Identifier '{value}' is invalid. Identifiers must start with a letter or underscore, "
                f"and can only contain letters, numbers, and underscores. "
                f"This identifier contains the following forbidden character(s): {invalid_chars}",
            )

    def _validate_unique_elements_by_key(self, key_for_uniqueness: str, field: str, value: List[Dict]):
        """
        Validates that all dictionaries in a list have a unique value for a given key.
        The rule's arguments are validated against this schema:
        {'type': 'string'}
        """
        if not isinstance(value, list):
            return

        seen, duplicates = set(), set()
        for item in value:
            if not isinstance(item, dict):
                continue
            item_key = item.get(key_for_uniqueness)
            if item_key is None:
                continue
            if item_key in seen:
                duplicates.add(item_key)
            seen.add(item_key)

        if duplicates:
            self._error(field, f"Duplicate values found for key '{key_for_uniqueness}': {sorted(duplicates)}")


class NetworkLoader:
    """Validates a network configuration and synthesizes a finalized `Network` from it."""

    _param_values_rule = {
        "type": "dict",
        "required": False,
        "keysrules": {"type": "string", "id_regex": True},
        "valuesrules": {"type": ["number", "string"]},
    }

    _schema = {
        "network_name": {"type": "string", "required": False, "id_regex": True},
        "simulation_parameters": {
            "type": "dict", "required": False, "schema": {
                "cardiac_period": {"type": ["number", "string"], "required": False},
            },
        },
        "blocks": {
            "type": "list", "required": True, "minlength": 1, "unique_elements_by_key": "name",
            "schema": {
                "type": "dict", "schema": {
                    "name": {"type": "string", "required": True, "empty": False, "id_regex": True},
                    "type": {"type": "string", "required": True, "empty": False},
                    "parameters": _param_values_rule,
                    "activation_function": {
                        "type": "dict", "required": False, "schema": {
                            "type": {"type": "string", "required": True, "empty": False},
                            "parameters": _param_values_rule,
                        },
                    },
                },
            },
        },
    }

    def __init__(self):
        self._validator = EnhancedValidator(self._schema)
        self._validator.allow_unknown = False
        logger.info("NetworkLoader initialized with strict structural validation rules.")

    def load(self, yaml_path: Union[str, Path]) -> Network:
        """Load, validate and build a finalized network from a YAML file."""
        source = Path(yaml_path).resolve()
        logger.info(f"--- Loading network from '{source}' ---")
        try:
            return self._build(self._load_yaml(source), source)
        except DiagnosableError as e:
            raise NetworkBuildError(e.get_diagnostic_report()) from e

    def load_dict(self, config: Mapping[str, Any], source_file: Optional[Path] = None) -> Network:
        """Validate and build a finalized network from an already parsed configuration."""
        try:
            if not isinstance(config, Mapping):
                raise LoaderError(details="The configuration root must be a mapping.", file_path=source_file)
            return self._build(dict(config), source_file)
        except DiagnosableError as e:
            raise NetworkBuildError(e.get_diagnostic_report()) from e

    def _load_yaml(self, source: Path) -> Dict[str, Any]:
        if not source.is_file():
            raise LoaderError(details=f"Configuration file not found at path: {source}", file_path=source)
        try:
            with source.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except PermissionError as e:
            raise LoaderError(details=f"Permission denied when trying to read file: {e}", file_path=source) from e
        except yaml.YAMLError as e:
            raise LoaderError(details=f"Invalid YAML syntax: {e}", file_path=source) from e
        if content is None:
            raise LoaderError(details="The YAML file is empty or contains no valid content.", file_path=source)
        if not isinstance(content, dict):
            raise LoaderError(details="The root of the YAML file must be a dictionary (mapping).", file_path=source)
        return content

    def _build(self, config: Dict[str, Any], source_file: Optional[Path]) -> Network:
        if not self._validator.validate(config):
            raise SchemaValidationError(errors=self._validator.errors, file_path=source_file)
        data = self._validator.document

        raw_period = data.get("simulation_parameters", {}).get("cardiac_period", DEFAULT_CARDIAC_PERIOD)
        cardiac_period = self._convert("simulation_parameters", "cardiac_period", raw_period, TIME_UNITS)
        default_name = source_file.stem if source_file else "network"
        network = Network(name=data.get("network_name", default_name), cardiac_period=cardiac_period)

        for block_data in data["blocks"]:
            block = network.add_block(block_data["type"], block_data["name"])
            self._apply_parameters(block.name, block.params, block.set_param, block_data.get("parameters", {}))

            af_data = block_data.get("activation_function")
            if af_data is not None:
                activation = create_activation_function(af_data["type"], network.cardiac_period)
                self._apply_parameters(
                    f"{block.name}.activation_function", activation.params, activation.set_param,
                    af_data.get("parameters", {}),
                )
                activation.finalize()
                block.set_activation_function(activation)
            elif block.block_class is BlockClass.CHAMBER:
                raise ActivationFunctionMissingError(block=block.name)

        network.finalize()
        logger.info(f"--- Network '{network.name}' loaded with {len(network)} blocks. ---")
        return network

    @staticmethod
    def _convert(owner: str, name: str, raw_value: Any, units: Optional[str]) -> float:
        try:
            return to_declared_units(raw_value, units)
        except (PintError, ValueError, TypeError) as e:
            raise ParameterUnitError(
                owner=owner, name=name, user_input=str(raw_value),
                details=f"cannot be converted to '{units or 'dimensionless'}': {e}",
            ) from e

    def _apply_parameters(
        self,
        owner: str,
        params: ParameterValues,
        setter: Callable[[str, float], None],
        raw_values: Mapping[str, Any],
    ):
        for name, raw_value in raw_values.items():
            declaration = params.declaration(name)
            setter(name, self._convert(owner, name, raw_value, declaration.units))
        params.require_complete()
        logger.debug(f"Parameters of '{owner}': {dict(params.items())}")
