# src/lpnsim_core/network/network.py

"""
Defines the `Network`, the context object that owns the blocks of one lumped-parameter
model together with their shared state: the DOF handler, the global parameter
vector and the current simulation time.

The network drives every block through its lifecycle on behalf of the external time
integrator:

1.  `finalize()`: every block registers its parameters and DOFs.
2.  `create_system()`: a `SparseSystem` is reserved from the summed triplet budgets.
3.  `update_constant()`: once per topology/parameter set.
4.  `update_time()`: once per time step.
5.  `update_solution()`: once per nonlinear iteration.

`update_gradient()` may be called at any point after finalization. Calls out of this
order raise `NetworkStateError`.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from ..assembly import DOFHandler, SparseSystem, TripletContributions
from ..blocks import Block, BlockPhase, BLOCK_REGISTRY, UnknownBlockTypeError
from ..constants import DEFAULT_CARDIAC_PERIOD
from .exceptions import NetworkStateError, DuplicateBlockError

logger = logging.getLogger(__name__)

_TIME_READY = {BlockPhase.CONSTANTS_WRITTEN, BlockPhase.TIME_UPDATED, BlockPhase.SOLUTION_UPDATED}
_SOLUTION_READY = {BlockPhase.TIME_UPDATED, BlockPhase.SOLUTION_UPDATED}


class Network:
    """A lumped-parameter network: its blocks, DOF numbering, parameters and time."""

    def __init__(self, name: str = "network", cardiac_period: float = DEFAULT_CARDIAC_PERIOD):
        self.name = name
        self.cardiac_period = float(cardiac_period)
        self.blocks: List[Block] = []
        self._blocks_by_name: Dict[str, Block] = {}
        self.dofhandler = DOFHandler()
        self.parameter_values: List[float] = []
        self.time: float = 0.0
        self._finalized = False

    @property
    def is_finalized(self) -> bool:
        return self._finalized

    # --- Construction ---

    def add_block(self, type_str: str, name: str) -> Block:
        """Instantiate a registered block type under a unique name."""
        if self._finalized:
            raise NetworkStateError(operation=f"add block '{name}'", details="the network is already finalized.")
        block_cls = BLOCK_REGISTRY.get(type_str)
        if block_cls is None:
            raise UnknownBlockTypeError(type_str=type_str, valid_types=list(BLOCK_REGISTRY))
        if name in self._blocks_by_name:
            raise DuplicateBlockError(name=name)

        block = block_cls(len(self.blocks), name, self)
        self.blocks.append(block)
        self._blocks_by_name[name] = block
        logger.debug(f"Network '{self.name}': added {block}")
        return block

    def get_block(self, name: str) -> Block:
        try:
            return self._blocks_by_name[name]
        except KeyError:
            raise KeyError(f"Network '{self.name}' has no block named '{name}'.") from None

    def add_parameter(self, value: float) -> int:
        """Append a value to the global parameter vector and return its index."""
        self.parameter_values.append(float(value))
        return len(self.parameter_values) - 1

    def finalize(self):
        """Register the parameters and DOFs of every block, in insertion order."""
        if self._finalized:
            raise NetworkStateError(operation="finalize", details="the network is already finalized.")
        for block in self.blocks:
            block.setup_params()
            block.setup_dofs(self.dofhandler)
        self._finalized = True
        logger.info(
            f"Network '{self.name}' finalized: {len(self.blocks)} blocks, "
            f"{self.dofhandler.num_variables} variables, {self.dofhandler.num_equations} equations, "
            f"{len(self.parameter_values)} parameters."
        )

    def get_num_triplets(self) -> TripletContributions:
        """Summed triplet budgets of all blocks."""
        return sum((block.num_triplets for block in self.blocks), TripletContributions())

    def create_system(self) -> SparseSystem:
        self._require_finalized("create the sparse system")
        return SparseSystem.for_network(self)

    # --- Phase updates ---

    def _require_finalized(self, operation: str):
        if not self._finalized:
            raise NetworkStateError(operation=operation, details="call finalize() first.")

    def _require_phase(self, allowed: Iterable[BlockPhase], operation: str, details: str):
        allowed = set(allowed)
        for block in self.blocks:
            if block.phase not in allowed:
                raise NetworkStateError(
                    operation=operation,
                    details=f"block '{block.name}' is in phase {block.phase.name}; {details}",
                )

    def _check_state_vectors(self, operation: str, *vectors: np.ndarray):
        for vector in vectors:
            if vector.shape != (self.dofhandler.num_variables,):
                raise ValueError(
                    f"Cannot {operation}: expected vectors of shape ({self.dofhandler.num_variables},), "
                    f"got {vector.shape}."
                )

    def update_constant(self, system: SparseSystem):
        self._require_finalized("update constant contributions")
        for block in self.blocks:
            with system.contributions_from(block):
                block.update_constant(system, self.parameter_values)
            block.phase = BlockPhase.CONSTANTS_WRITTEN
        logger.debug(f"Network '{self.name}': constant contributions written.")

    def update_time(self, system: SparseSystem, time: float):
        self._require_finalized("update time contributions")
        self._require_phase(_TIME_READY, "update time contributions", "call update_constant() first.")
        self.time = float(time)
        for block in self.blocks:
            with system.contributions_from(block):
                block.update_time(system, self.parameter_values)
            block.phase = BlockPhase.TIME_UPDATED
        logger.debug(f"Network '{self.name}': time contributions written at t={self.time}.")

    def update_solution(self, system: SparseSystem, y: Sequence[float], dy: Sequence[float]):
        self._require_finalized("update solution contributions")
        self._require_phase(_SOLUTION_READY, "update solution contributions", "call update_time() first.")
        y = np.asarray(y, dtype=float)
        dy = np.asarray(dy, dtype=float)
        self._check_state_vectors("update solution contributions", y, dy)
        for block in self.blocks:
            with system.contributions_from(block):
                block.update_solution(system, self.parameter_values, y, dy)
            block.phase = BlockPhase.SOLUTION_UPDATED

    def update_gradient(
        self,
        system: SparseSystem,
        y: Sequence[float],
        dy: Sequence[float],
        alpha: Optional[Sequence[float]] = None,
    ):
        """
        Write the parameter Jacobian and parameter residual of every block.

        Args:
            system: System whose `param_jacobian` and `param_residual` are written.
            y: Current solution.
            dy: Current time derivative of the solution.
            alpha: Parameter vector to evaluate at; defaults to the network's own values.
        """
        self._require_finalized("update parameter gradients")
        y = np.asarray(y, dtype=float)
        dy = np.asarray(dy, dtype=float)
        self._check_state_vectors("update parameter gradients", y, dy)
        alpha = np.asarray(self.parameter_values if alpha is None else alpha, dtype=float)
        if alpha.shape != (len(self.parameter_values),):
            raise ValueError(
                f"Cannot update parameter gradients: expected alpha of shape ({len(self.parameter_values)},), "
                f"got {alpha.shape}."
            )
        for block in self.blocks:
            with system.contributions_from(block):
                block.update_gradient(system.param_jacobian, system.param_residual, alpha, y, dy)

    # --- Lifecycle ---

    def teardown(self):
        """Release activation-function ownership and clear all DOF and parameter state."""
        for block in self.blocks:
            block.teardown()
        self.dofhandler = DOFHandler()
        self.parameter_values = []
        self.time = 0.0
        self._finalized = False
        logger.debug(f"Network '{self.name}' torn down.")

    def __enter__(self) -> "Network":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.teardown()
        return False

    def __iter__(self):
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)

    def __repr__(self) -> str:
        return (f"Network(name='{self.name}', blocks={len(self.blocks)}, "
                f"cardiac_period={self.cardiac_period}, finalized={self._finalized})")
