# src/lpnsim_core/blocks/chambers.py

import logging
from enum import IntEnum
from typing import Dict, Optional, Sequence

from ..activation import ActivationFunction
from ..assembly import SparseSystem, TripletContributions
from ..parameters import InputParameter
from ..units import ELASTANCE_UNITS, VOLUME_UNITS
from .base import Block, register_block
from .base_enums import BlockClass
from .exceptions import ActivationFunctionMissingError

logger = logging.getLogger(__name__)


@register_block("LinearElastanceChamber")
class LinearElastanceChamber(Block):
    """
    Cardiac chamber with a linear, time-varying elastance (Regazzoni et al. 2022).

    Unknowns y = [P_in, Q_in, P_out, Q_out, Vc] and governing equations

        P_in - E(t) (Vc - Vrest) = 0
        P_in - P_out = 0
        Q_in - Q_out - dVc/dt = 0

    with E(t) = Epass + Emax * A(t), where A is the injected activation function
    evaluated at the network time.
    """
    block_class = BlockClass.CHAMBER
    num_equations = 3
    internal_variables = ("Vc",)
    num_triplets = TripletContributions(F=6, E=1, D=0)

    class ParamId(IntEnum):
        EMAX = 0
        EPASS = 1
        VREST = 2

    @classmethod
    def declare_parameters(cls) -> Dict[str, InputParameter]:
        return {
            "Emax": InputParameter(units=ELASTANCE_UNITS),
            "Epass": InputParameter(units=ELASTANCE_UNITS),
            "Vrest": InputParameter(units=VOLUME_UNITS),
        }

    def __init__(self, block_id: int, name: str, network):
        super().__init__(block_id, name, network)
        self.activation_function: Optional[ActivationFunction] = None
        # Elastance written by the last time update.
        self.elastance: Optional[float] = None

    def set_activation_function(self, activation_function: ActivationFunction):
        """
        Take exclusive ownership of `activation_function`, releasing any previously
        held one. An instance already owned by another block is rejected.
        """
        activation_function.claim(self.name)
        if self.activation_function is not None and self.activation_function is not activation_function:
            self.activation_function.release()
        self.activation_function = activation_function
        logger.debug(f"Chamber '{self.name}' now owns {activation_function!r}")

    def teardown(self):
        super().teardown()
        if self.activation_function is not None:
            self.activation_function.release()
            self.activation_function = None

    def update_constant(self, system: SparseSystem, parameters: Sequence[float]):
        eqn, var = self.global_eqn_ids, self.global_var_ids

        system.F[eqn[0], var[0]] = 1.0

        system.F[eqn[1], var[0]] = 1.0
        system.F[eqn[1], var[2]] = -1.0

        system.F[eqn[2], var[1]] = 1.0
        system.F[eqn[2], var[3]] = -1.0
        system.E[eqn[2], var[4]] = -1.0

    def compute_elastance(self, parameters: Sequence[float]) -> float:
        if self.activation_function is None:
            raise ActivationFunctionMissingError(block=self.name)
        emax = parameters[self.global_param_ids[self.ParamId.EMAX]]
        epass = parameters[self.global_param_ids[self.ParamId.EPASS]]
        return epass + emax * self.activation_function.compute(self.network.time)

    def update_time(self, system: SparseSystem, parameters: Sequence[float]):
        self.elastance = self.compute_elastance(parameters)
        eqn, var = self.global_eqn_ids, self.global_var_ids

        # P_in - E(t) Vc + E(t) Vrest = 0
        system.F[eqn[0], var[4]] = -self.elastance
        system.C[eqn[0]] = self.elastance * parameters[self.global_param_ids[self.ParamId.VREST]]
