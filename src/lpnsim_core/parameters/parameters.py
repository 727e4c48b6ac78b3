# src/lpnsim_core/parameters/parameters.py

"""
Declarative parameter metadata and the per-owner parameter value store.

Blocks and activation functions declare their named inputs as an ordered mapping of
name -> `InputParameter`. The declaration order is significant for blocks: it is the
order in which parameters are registered in the network's global parameter vector,
and therefore the order of the block's `ParamId` enum.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Set, Tuple

from .exceptions import UndeclaredParameterError, MissingParameterError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InputParameter:
    """
    The explicit contract object describing a single declared input.

    Attributes:
        is_optional: Whether the loader may omit the input. Optional numeric inputs
                     start at `default_val`; required ones start at 0.0.
        is_array: Whether the input is an array (handled by the loader, never stored here).
        is_number: Whether the input is a scalar number stored in the value map.
        default_val: Starting value of an optional numeric input.
        units: pint unit string the value is expressed in, or None if dimensionless.
    """
    is_optional: bool = False
    is_array: bool = False
    is_number: bool = True
    default_val: float = 0.0
    units: Optional[str] = None


class ParameterValues:
    """
    Mapping from declared parameter name to its current scalar value.

    Owned exclusively by one block or activation function. Only numeric declared
    inputs are stored; any other name is rejected with `UndeclaredParameterError`.
    """

    def __init__(self, owner: str, declarations: Mapping[str, InputParameter]):
        self.owner = owner
        self._declarations: Dict[str, InputParameter] = dict(declarations)
        self._values: Dict[str, float] = {
            name: (param.default_val if param.is_optional else 0.0)
            for name, param in self._declarations.items()
            if param.is_number
        }
        self._explicitly_set: Set[str] = set()

    def _check_declared(self, name: str):
        if name not in self._values:
            raise UndeclaredParameterError(owner=self.owner, name=name, declared=list(self._values))

    def __getitem__(self, name: str) -> float:
        self._check_declared(name)
        return self._values[name]

    def __setitem__(self, name: str, value: float):
        self._check_declared(name)
        self._values[name] = float(value)
        self._explicitly_set.add(name)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def items(self) -> List[Tuple[str, float]]:
        return list(self._values.items())

    def declaration(self, name: str) -> InputParameter:
        self._check_declared(name)
        return self._declarations[name]

    def missing_required(self) -> List[str]:
        """Names of required numeric inputs that were never set explicitly."""
        return [
            name for name in self._values
            if not self._declarations[name].is_optional and name not in self._explicitly_set
        ]

    def require_complete(self):
        """Raises `MissingParameterError` if any required numeric input was never set."""
        missing = self.missing_required()
        if missing:
            raise MissingParameterError(owner=self.owner, missing=missing)

    def __repr__(self) -> str:
        return f"ParameterValues(owner='{self.owner}', values={self._values})"
