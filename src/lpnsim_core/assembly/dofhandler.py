# src/lpnsim_core/assembly/dofhandler.py
"""
The degree-of-freedom numbering authority of a network.

Global variable and equation indices are dense, zero based and handed out in
registration order. Indices are never reassigned or compacted while the handler
lives; the final counts size the global state vector and equation set.
"""

import logging
from typing import Dict, List, Sequence, Set, Tuple, TYPE_CHECKING

from ..constants import INTERFACE_VARIABLES
from .exceptions import DofRegistrationError

if TYPE_CHECKING:
    from ..blocks.base import Block

logger = logging.getLogger(__name__)


class DOFHandler:
    """Assigns globally unique indices to unknowns and equations."""

    def __init__(self):
        self._variables: List[str] = []
        self._equations: List[str] = []
        self._variable_index: Dict[str, int] = {}
        self._registered_owners: Set[str] = set()

    @property
    def num_variables(self) -> int:
        return len(self._variables)

    @property
    def num_equations(self) -> int:
        return len(self._equations)

    @property
    def size(self) -> Tuple[int, int]:
        """(number of equations, number of variables)."""
        return (self.num_equations, self.num_variables)

    @property
    def variable_names(self) -> List[str]:
        return list(self._variables)

    @property
    def equation_names(self) -> List[str]:
        return list(self._equations)

    def register_variable(self, name: str) -> int:
        """Register a named variable and return its global index."""
        if name in self._variable_index:
            raise DofRegistrationError(owner=name, details=f"variable '{name}' is already registered.")
        index = len(self._variables)
        self._variables.append(name)
        self._variable_index[name] = index
        return index

    def register_equation(self, name: str) -> int:
        """Register a named equation and return its global index."""
        self._equations.append(name)
        return len(self._equations) - 1

    def get_variable_index(self, name: str) -> int:
        try:
            return self._variable_index[name]
        except KeyError:
            raise KeyError(f"No variable named '{name}' is registered.") from None

    def get_variable_name(self, index: int) -> str:
        return self._variables[index]

    def register(
        self,
        component: "Block",
        num_equations: int,
        internal_variable_names: Sequence[str] = (),
    ) -> Tuple[List[int], List[int]]:
        """
        Allocate the variables and equations of one block.

        Variables are ordered inlet pressure, inlet flow, outlet pressure, outlet flow,
        then the internal variables in the given order.

        Args:
            component: The block registering its DOFs; its name is appended to every
                       variable name (e.g. 'flow_in:aorta').
            num_equations: Number of governing equations the block contributes.
            internal_variable_names: Names of internal state variables (e.g. ['Vc']).

        Returns:
            (global variable indices, global equation indices)
        """
        owner = component.name
        if owner in self._registered_owners:
            raise DofRegistrationError(owner=owner, details="block has already registered its DOFs.")
        if num_equations < 0:
            raise DofRegistrationError(owner=owner, details=f"equation count must be non-negative (got {num_equations}).")

        names = [f"{prefix}:{owner}" for prefix in INTERFACE_VARIABLES]
        names += [f"{internal}:{owner}" for internal in internal_variable_names]
        clashes = [n for n in names if n in self._variable_index]
        if clashes:
            raise DofRegistrationError(owner=owner, details=f"variable name(s) already registered: {clashes}.")

        var_ids = [self.register_variable(n) for n in names]
        eqn_ids = [self.register_equation(f"{owner}:{k}") for k in range(num_equations)]
        self._registered_owners.add(owner)

        logger.debug(f"Registered block '{owner}': variables {var_ids}, equations {eqn_ids}")
        return var_ids, eqn_ids

    def __repr__(self) -> str:
        return f"DOFHandler(num_equations={self.num_equations}, num_variables={self.num_variables})"
