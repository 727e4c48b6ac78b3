# src/lpnsim_core/blocks/base.py

import logging
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import ClassVar, Dict, List, Sequence, Tuple, Type, TYPE_CHECKING

import numpy as np

from ..parameters import InputParameter, ParameterValues
from ..assembly import DOFHandler, SparseSystem, TripletContributions, TripletMatrix
from .base_enums import BlockClass, BlockPhase
from .exceptions import BlockError

if TYPE_CHECKING:
    from ..activation import ActivationFunction
    from ..network.network import Network


logger = logging.getLogger(__name__)


class Block(ABC):
    """
    The abstract base class for all network blocks in LPNSim Core.

    A block owns a contiguous set of global unknowns (inlet pressure, inlet flow,
    outlet pressure, outlet flow, then its internal variables) and a fixed number of
    governing equations. It contributes to the global system only through its phase
    methods, each of which writes a fixed pattern of entries:

    - `update_constant`: entries that never change for a fixed parameter set.
    - `update_time`: entries that depend explicitly on simulation time.
    - `update_solution`: entries that depend on the current iterate (y, dy).
    - `update_gradient`: entries of the parameter Jacobian and parameter residual.

    Subclasses declare their shape as class attributes. `num_triplets` must count
    every distinct F, E and D entry written across all phases; writing more is a
    `SparseWriteError`.
    """
    block_type_str: ClassVar[str] = "BaseBlock"
    block_class: ClassVar[BlockClass] = BlockClass.VESSEL
    num_equations: ClassVar[int] = 0
    internal_variables: ClassVar[Tuple[str, ...]] = ()
    num_triplets: ClassVar[TripletContributions] = TripletContributions()

    class ParamId(IntEnum):
        """Local indices of the numeric parameters, in declaration order."""
        pass

    def __init__(self, block_id: int, name: str, network: "Network"):
        """
        Args:
            block_id: Position of the block within its network.
            name: Unique name of the block (e.g. 'aorta'); suffixes all its variable names.
            network: The owning network, holding the global parameter vector and time.
        """
        self.block_id = block_id
        self.name = name
        self.network = network
        self.params = ParameterValues(owner=name, declarations=self.declare_parameters())

        self.global_var_ids: List[int] = []
        self.global_eqn_ids: List[int] = []
        self.global_param_ids: List[int] = []
        self.phase = BlockPhase.UNREGISTERED
        logger.debug(f"Initialized {type(self).__name__} '{self.name}'")

    @classmethod
    @abstractmethod
    def declare_parameters(cls) -> Dict[str, InputParameter]:
        """Declare the named inputs of this block. Numeric inputs follow the ParamId order."""
        pass

    # --- Parameters ---

    def set_param(self, name: str, value: float):
        """
        Set a declared parameter. Once the block has registered its parameters, the
        new value is also written to the network's global parameter vector.
        """
        self.params[name] = value
        if self.global_param_ids:
            local_index = list(self.params).index(name)
            self.network.parameter_values[self.global_param_ids[local_index]] = self.params[name]

    def get_param(self, name: str) -> float:
        return self.params[name]

    def setup_params(self):
        """Register every numeric parameter with the network, in declaration order."""
        if self.global_param_ids:
            raise BlockError(block=self.name, details="parameters are already registered with the network.")
        self.global_param_ids = [self.network.add_parameter(value) for _, value in self.params.items()]

    def setup_dofs(self, dofhandler: DOFHandler):
        """Obtain global variable and equation indices from the DOF handler."""
        self.global_var_ids, self.global_eqn_ids = dofhandler.register(
            self, self.num_equations, self.internal_variables
        )
        self.phase = BlockPhase.DOFS_ASSIGNED

    def teardown(self):
        """Forget all global indices so the block may be registered again."""
        self.global_var_ids = []
        self.global_eqn_ids = []
        self.global_param_ids = []
        self.phase = BlockPhase.UNREGISTERED

    # --- Phase contributions ---

    @abstractmethod
    def update_constant(self, system: SparseSystem, parameters: Sequence[float]):
        """Write the contributions that are constant for a fixed parameter set."""
        pass

    def update_time(self, system: SparseSystem, parameters: Sequence[float]):
        """Write time-dependent contributions. Default is a no-op."""
        pass

    def update_solution(self, system: SparseSystem, parameters: Sequence[float], y: np.ndarray, dy: np.ndarray):
        """Write solution-dependent contributions. Default is a no-op."""
        pass

    def update_gradient(
        self,
        jacobian: TripletMatrix,
        residual: np.ndarray,
        alpha: np.ndarray,
        y: np.ndarray,
        dy: np.ndarray,
    ):
        """
        Write the derivatives of this block's equations with respect to its parameters
        into `jacobian` and the equation values into `residual`, both evaluated at the
        parameter vector `alpha`. Default is a no-op.
        """
        pass

    def set_activation_function(self, activation_function: "ActivationFunction"):
        raise BlockError(
            block=self.name,
            details=f"{type(self).__name__} is a {self.block_class.name.lower()} block and does not accept an activation function.",
        )

    def __str__(self) -> str:
        return f"{type(self).__name__}('{self.name}')"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(block_id={self.block_id}, name='{self.name}', phase={self.phase.name})"


# --- Global Block Registry and Decorator ---

BLOCK_REGISTRY: Dict[str, Type[Block]] = {}


def register_block(type_str: str):
    """
    A class decorator to register a block class in the global block registry,
    making it available to `Network.add_block` and the network loader.
    """
    def decorator(cls: Type[Block]):
        if not issubclass(cls, Block):
            raise TypeError(f"Class {cls.__name__} must inherit from Block.")

        try:
            params = cls.declare_parameters()
            if not isinstance(params, dict) or not all(
                isinstance(k, str) and isinstance(v, InputParameter) for k, v in params.items()
            ):
                raise TypeError(
                    f"Block class '{cls.__name__}' violates API contract. "
                    f"declare_parameters() must return a Dict[str, InputParameter]."
                )
        except Exception as e:
            raise TypeError(
                f"A failure occurred while attempting to validate the API contract of "
                f"block class '{cls.__name__}'. Error during call to declare_parameters(): {e}"
            ) from e

        numeric = [name for name, p in params.items() if p.is_number]
        param_ids = [(member.name, int(member)) for member in cls.ParamId]
        if [index for _, index in param_ids] != list(range(len(numeric))):
            raise TypeError(
                f"Block class '{cls.__name__}' violates API contract. ParamId must number its "
                f"{len(numeric)} numeric parameter(s) {numeric} as 0..{len(numeric) - 1}, got {param_ids}."
            )

        if not isinstance(cls.num_equations, int) or cls.num_equations < 0:
            raise TypeError(f"Block class '{cls.__name__}' must declare a non-negative integer num_equations.")
        internals = tuple(cls.internal_variables)
        if not all(isinstance(v, str) and v for v in internals) or len(set(internals)) != len(internals):
            raise TypeError(
                f"Block class '{cls.__name__}' must declare unique, non-empty internal_variables, got {internals}."
            )
        if not isinstance(cls.num_triplets, TripletContributions):
            raise TypeError(f"Block class '{cls.__name__}' must declare num_triplets as TripletContributions.")
        if not isinstance(cls.block_class, BlockClass):
            raise TypeError(f"Block class '{cls.__name__}' must declare a BlockClass block_class.")

        if type_str in BLOCK_REGISTRY:
            logger.warning(f"Block type '{type_str}' is being redefined/overwritten.")
        cls.block_type_str = type_str
        BLOCK_REGISTRY[type_str] = cls
        logger.debug(f"Registered block type '{type_str}' -> {cls.__name__}")
        return cls
    return decorator
