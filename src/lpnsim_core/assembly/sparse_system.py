# src/lpnsim_core/assembly/sparse_system.py

"""
The sparse assembly substrate of the global DAE system

    E(y) * dy/dt + F(y) * y + C(y, t) = 0

Blocks write coefficients into fixed-capacity triplet matrices keyed by
(equation index, variable index). Writes overwrite, they never accumulate: each key
is owned by exactly one block. Storage is reserved once from the summed per-block
triplet budgets and never resized, so a block writing more distinct entries than
it declared is reported immediately instead of silently growing the pattern.
"""

import logging
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple, TYPE_CHECKING

import numpy as np
import scipy.sparse as sp

from .exceptions import SparseWriteError

if TYPE_CHECKING:
    from ..blocks.base import Block
    from ..network.network import Network

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TripletContributions:
    """
    Number of triplets (row, column, value entries) a block contributes to each of
    the F, E and D matrices, summed over all of its update phases.
    """
    F: int = 0
    E: int = 0
    D: int = 0

    def __add__(self, other: "TripletContributions") -> "TripletContributions":
        if not isinstance(other, TripletContributions):
            return NotImplemented
        return TripletContributions(F=self.F + other.F, E=self.E + other.E, D=self.D + other.D)

    @property
    def total(self) -> int:
        return self.F + self.E + self.D


class TripletMatrix:
    """
    A fixed-capacity sparse matrix in coordinate form with overwrite semantics.

    Entries are addressed as ``matrix[row, col]``. The first write to a key claims the
    next free slot; later writes to the same key overwrite its value in place.
    """

    def __init__(self, name: str, shape: Tuple[int, int], capacity: int):
        self.name = name
        self.shape = shape
        self.capacity = capacity
        self.nnz = 0

        self._rows = np.zeros(capacity, dtype=np.int64)
        self._cols = np.zeros(capacity, dtype=np.int64)
        self._data = np.zeros(capacity, dtype=float)
        self._slots: Dict[Tuple[int, int], int] = {}
        self._slot_owner: List[Optional[str]] = [None] * capacity
        self._owned_counts: Dict[str, int] = defaultdict(int)
        # (owner name, budget) of the block currently writing, if any.
        self._writer: Optional[Tuple[str, int]] = None

    def bind(self, owner: str, budget: int):
        """Attribute all following new entries to `owner`, allowing at most `budget` of them."""
        self._writer = (owner, budget)

    def unbind(self):
        self._writer = None

    def owned_count(self, owner: str) -> int:
        """Number of distinct entries claimed by `owner`."""
        return self._owned_counts.get(owner, 0)

    def _allocate(self, key: Tuple[int, int], writer: Optional[str]) -> int:
        if self._writer is not None:
            owner, budget = self._writer
            if self._owned_counts[owner] >= budget:
                raise SparseWriteError(
                    matrix_name=self.name, key=key, block=owner,
                    details=f"a new entry would exceed the declared budget of {budget} triplet(s)."
                )
        if self.nnz >= self.capacity:
            raise SparseWriteError(
                matrix_name=self.name, key=key, block=writer,
                details=f"the reserved capacity of {self.capacity} entries is exhausted."
            )
        slot = self.nnz
        self._rows[slot], self._cols[slot] = key
        self._slots[key] = slot
        self._slot_owner[slot] = writer
        if writer is not None:
            self._owned_counts[writer] += 1
        self.nnz += 1
        return slot

    def __setitem__(self, key: Tuple[int, int], value: float):
        row, col = int(key[0]), int(key[1])
        writer = self._writer[0] if self._writer else None
        if not (0 <= row < self.shape[0] and 0 <= col < self.shape[1]):
            raise SparseWriteError(
                matrix_name=self.name, key=(row, col), block=writer,
                details=f"index lies outside the {self.shape[0]}x{self.shape[1]} system."
            )

        slot = self._slots.get((row, col))
        if slot is None:
            slot = self._allocate((row, col), writer)
        elif writer is not None and self._slot_owner[slot] not in (None, writer):
            raise SparseWriteError(
                matrix_name=self.name, key=(row, col), block=writer,
                details=f"the entry is owned by block '{self._slot_owner[slot]}'."
            )
        self._data[slot] = value

    def __getitem__(self, key: Tuple[int, int]) -> float:
        slot = self._slots.get((int(key[0]), int(key[1])))
        return 0.0 if slot is None else float(self._data[slot])

    def __contains__(self, key: object) -> bool:
        return key in self._slots

    def keys(self) -> Iterator[Tuple[int, int]]:
        return iter(self._slots)

    def tocoo(self) -> sp.coo_matrix:
        n = self.nnz
        return sp.coo_matrix((self._data[:n].copy(), (self._rows[:n], self._cols[:n])), shape=self.shape)

    def tocsr(self) -> sp.csr_matrix:
        return self.tocoo().tocsr()

    def toarray(self) -> np.ndarray:
        return self.tocoo().toarray()

    def dot(self, x: np.ndarray) -> np.ndarray:
        """Matrix-vector product without building a compressed matrix."""
        x = np.asarray(x, dtype=float)
        n = self.nnz
        return np.bincount(
            self._rows[:n], weights=self._data[:n] * x[self._cols[:n]], minlength=self.shape[0]
        ).astype(float)

    __matmul__ = dot

    def __repr__(self) -> str:
        return f"TripletMatrix(name='{self.name}', shape={self.shape}, nnz={self.nnz}, capacity={self.capacity})"


class SparseSystem:
    """
    Owns the global E, F, D matrices, the C vector, and the parameter-sensitivity
    structures (parameter Jacobian and residual) of one network assembly.

    The system is created once per network assembly and repopulated by every phase
    call of the blocks; it is never resized afterwards.
    """

    def __init__(
        self,
        num_equations: int,
        num_variables: int,
        num_triplets: TripletContributions,
        num_parameters: int = 0,
        gradient_capacity: int = 0,
    ):
        self.num_equations = num_equations
        self.num_variables = num_variables
        self.num_parameters = num_parameters

        shape = (num_equations, num_variables)
        self.F = TripletMatrix("F", shape, num_triplets.F)
        self.E = TripletMatrix("E", shape, num_triplets.E)
        self.D = TripletMatrix("D", shape, num_triplets.D)
        self.C = np.zeros(num_equations, dtype=float)

        self.param_jacobian = TripletMatrix("dR/dalpha", (num_equations, num_parameters), gradient_capacity)
        self.param_residual = np.zeros(num_equations, dtype=float)

        logger.info(
            f"SparseSystem reserved for {num_equations} equations x {num_variables} variables "
            f"(F={num_triplets.F}, E={num_triplets.E}, D={num_triplets.D}, "
            f"gradient={gradient_capacity} entries over {num_parameters} parameters)."
        )

    @classmethod
    def for_network(cls, network: "Network") -> "SparseSystem":
        """Size and reserve a system from a finalized network's DOFs and triplet budgets."""
        num_equations, num_variables = network.dofhandler.size
        gradient_capacity = sum(
            len(block.global_eqn_ids) * len(block.global_param_ids) for block in network.blocks
        )
        return cls(
            num_equations,
            num_variables,
            network.get_num_triplets(),
            num_parameters=len(network.parameter_values),
            gradient_capacity=gradient_capacity,
        )

    @property
    def matrices(self) -> Dict[str, TripletMatrix]:
        return {"F": self.F, "E": self.E, "D": self.D}

    @contextmanager
    def contributions_from(self, block: "Block"):
        """
        Attribute every new entry written inside the context to `block`, enforcing its
        declared triplet budget per matrix and exclusive ownership of each key.
        """
        budgets = block.num_triplets
        bound = [
            (self.F, budgets.F),
            (self.E, budgets.E),
            (self.D, budgets.D),
            (self.param_jacobian, len(block.global_eqn_ids) * len(block.global_param_ids)),
        ]
        for matrix, budget in bound:
            matrix.bind(block.name, budget)
        try:
            yield self
        finally:
            for matrix, _ in bound:
                matrix.unbind()

    def triplet_counts(self) -> TripletContributions:
        """The number of entries actually written so far to F, E and D."""
        return TripletContributions(F=self.F.nnz, E=self.E.nnz, D=self.D.nnz)

    def residual(self, y: np.ndarray, dy: np.ndarray) -> np.ndarray:
        """Residual of the assembled system, -(E*dy + F*y + C)."""
        return -(self.E.dot(dy) + self.F.dot(y) + self.C)

    def jacobian(self, e_coeff: float) -> sp.csr_matrix:
        """
        Jacobian of the residual equation with respect to y, F + D + e_coeff * E, where
        e_coeff is the integrator's d(dy)/dy factor.
        """
        return (self.F.tocsr() + self.D.tocsr() + e_coeff * self.E.tocsr()).tocsr()

    def __repr__(self) -> str:
        return (f"SparseSystem(num_equations={self.num_equations}, num_variables={self.num_variables}, "
                f"num_parameters={self.num_parameters})")
