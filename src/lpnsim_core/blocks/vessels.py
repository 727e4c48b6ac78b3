# src/lpnsim_core/blocks/vessels.py

"""
Vessel segments: resistive, capacitive, inductive blocks with an optional
flow-dependent stenosis resistance.

Both variants use the local unknowns y = [P_in, Q_in, P_out, Q_out] and the
stenosis resistance S = stenosis_coefficient * |Q|, which makes the pressure drop
quadratic in the flow. The value of S*Q is written into F at the current iterate and
its extra derivative into D.
"""

import logging
from enum import IntEnum
from typing import Dict, Sequence

import numpy as np

from ..assembly import SparseSystem, TripletContributions, TripletMatrix
from ..parameters import InputParameter
from ..units import RESISTANCE_UNITS, CAPACITANCE_UNITS, INDUCTANCE_UNITS, STENOSIS_COEFFICIENT_UNITS
from .base import Block, register_block
from .base_enums import BlockClass

logger = logging.getLogger(__name__)


def _vessel_parameters() -> Dict[str, InputParameter]:
    return {
        "R_poiseuille": InputParameter(units=RESISTANCE_UNITS),
        "C": InputParameter(is_optional=True, units=CAPACITANCE_UNITS),
        "L": InputParameter(is_optional=True, units=INDUCTANCE_UNITS),
        "stenosis_coefficient": InputParameter(is_optional=True, units=STENOSIS_COEFFICIENT_UNITS),
    }


@register_block("BloodVessel")
class BloodVessel(Block):
    """
    Vessel with the capacitor after the resistor (R-C-L arrangement).

    Governing equations:

        P_in - P_out - (R + S) Q_in - L dQ_out/dt = 0
        Q_in - Q_out - C dP_in/dt + C (R + 2 S) dQ_in/dt = 0

    with S = stenosis_coefficient * |Q_in|.
    """
    block_class = BlockClass.VESSEL
    num_equations = 2
    internal_variables = ()
    num_triplets = TripletContributions(F=5, E=3, D=2)

    class ParamId(IntEnum):
        RESISTANCE = 0
        CAPACITANCE = 1
        INDUCTANCE = 2
        STENOSIS_COEFFICIENT = 3

    @classmethod
    def declare_parameters(cls) -> Dict[str, InputParameter]:
        return _vessel_parameters()

    def update_constant(self, system: SparseSystem, parameters: Sequence[float]):
        capacitance = parameters[self.global_param_ids[self.ParamId.CAPACITANCE]]
        inductance = parameters[self.global_param_ids[self.ParamId.INDUCTANCE]]
        eqn, var = self.global_eqn_ids, self.global_var_ids

        system.E[eqn[0], var[3]] = -inductance
        system.E[eqn[1], var[0]] = -capacitance
        system.F[eqn[0], var[0]] = 1.0
        system.F[eqn[0], var[2]] = -1.0
        system.F[eqn[1], var[1]] = 1.0
        system.F[eqn[1], var[3]] = -1.0

    def update_solution(self, system: SparseSystem, parameters: Sequence[float], y: np.ndarray, dy: np.ndarray):
        resistance = parameters[self.global_param_ids[self.ParamId.RESISTANCE]]
        capacitance = parameters[self.global_param_ids[self.ParamId.CAPACITANCE]]
        stenosis_coeff = parameters[self.global_param_ids[self.ParamId.STENOSIS_COEFFICIENT]]
        eqn, var = self.global_eqn_ids, self.global_var_ids

        q_in = y[var[1]]
        dq_in = dy[var[1]]
        stenosis_resistance = stenosis_coeff * abs(q_in)

        system.E[eqn[1], var[1]] = capacitance * (resistance + 2.0 * stenosis_resistance)
        system.F[eqn[0], var[1]] = -resistance - stenosis_resistance
        system.D[eqn[0], var[1]] = -stenosis_resistance
        # np.sign(0) == 0, so zero flow contributes nothing here.
        system.D[eqn[1], var[1]] = 2.0 * capacitance * stenosis_coeff * np.sign(q_in) * dq_in

    def update_gradient(
        self,
        jacobian: TripletMatrix,
        residual: np.ndarray,
        alpha: np.ndarray,
        y: np.ndarray,
        dy: np.ndarray,
    ):
        eqn, var, pid = self.global_eqn_ids, self.global_var_ids, self.global_param_ids
        y0, y1, y2, y3 = (y[var[k]] for k in range(4))
        dy0, dy1, dy3 = dy[var[0]], dy[var[1]], dy[var[3]]

        resistance = alpha[pid[self.ParamId.RESISTANCE]]
        capacitance = alpha[pid[self.ParamId.CAPACITANCE]]
        inductance = alpha[pid[self.ParamId.INDUCTANCE]]
        stenosis_coeff = alpha[pid[self.ParamId.STENOSIS_COEFFICIENT]]
        stenosis_resistance = stenosis_coeff * abs(y1)

        jacobian[eqn[0], pid[self.ParamId.RESISTANCE]] = -y1
        jacobian[eqn[0], pid[self.ParamId.INDUCTANCE]] = -dy3
        jacobian[eqn[0], pid[self.ParamId.STENOSIS_COEFFICIENT]] = -abs(y1) * y1

        jacobian[eqn[1], pid[self.ParamId.RESISTANCE]] = capacitance * dy1
        jacobian[eqn[1], pid[self.ParamId.CAPACITANCE]] = -dy0 + (resistance + 2.0 * stenosis_resistance) * dy1
        jacobian[eqn[1], pid[self.ParamId.STENOSIS_COEFFICIENT]] = 2.0 * capacitance * abs(y1) * dy1

        residual[eqn[0]] = y0 - (resistance + stenosis_resistance) * y1 - y2 - inductance * dy3
        residual[eqn[1]] = (y1 - y3 - capacitance * dy0
                            + capacitance * (resistance + 2.0 * stenosis_resistance) * dy1)


@register_block("BloodVesselCRL")
class BloodVesselCRL(Block):
    """
    Vessel with the capacitor at the inlet (C-R-L arrangement); the stenosis
    resistance acts on the outlet flow.

        P_in - P_out - (R + S) Q_out - L dQ_out/dt = 0
        Q_in - Q_out - C dP_in/dt = 0

    with S = stenosis_coefficient * |Q_out|.
    """
    block_class = BlockClass.VESSEL
    num_equations = 2
    internal_variables = ()
    num_triplets = TripletContributions(F=5, E=2, D=1)

    class ParamId(IntEnum):
        RESISTANCE = 0
        CAPACITANCE = 1
        INDUCTANCE = 2
        STENOSIS_COEFFICIENT = 3

    @classmethod
    def declare_parameters(cls) -> Dict[str, InputParameter]:
        return _vessel_parameters()

    def update_constant(self, system: SparseSystem, parameters: Sequence[float]):
        capacitance = parameters[self.global_param_ids[self.ParamId.CAPACITANCE]]
        inductance = parameters[self.global_param_ids[self.ParamId.INDUCTANCE]]
        eqn, var = self.global_eqn_ids, self.global_var_ids

        system.E[eqn[0], var[3]] = -inductance
        system.E[eqn[1], var[0]] = -capacitance
        system.F[eqn[0], var[0]] = 1.0
        system.F[eqn[0], var[2]] = -1.0
        system.F[eqn[1], var[1]] = 1.0
        system.F[eqn[1], var[3]] = -1.0

    def update_solution(self, system: SparseSystem, parameters: Sequence[float], y: np.ndarray, dy: np.ndarray):
        resistance = parameters[self.global_param_ids[self.ParamId.RESISTANCE]]
        stenosis_coeff = parameters[self.global_param_ids[self.ParamId.STENOSIS_COEFFICIENT]]
        eqn, var = self.global_eqn_ids, self.global_var_ids

        stenosis_resistance = stenosis_coeff * abs(y[var[3]])
        system.F[eqn[0], var[3]] = -resistance - stenosis_resistance
        system.D[eqn[0], var[3]] = -stenosis_resistance

    def update_gradient(
        self,
        jacobian: TripletMatrix,
        residual: np.ndarray,
        alpha: np.ndarray,
        y: np.ndarray,
        dy: np.ndarray,
    ):
        eqn, var, pid = self.global_eqn_ids, self.global_var_ids, self.global_param_ids
        y0, y1, y2, y3 = (y[var[k]] for k in range(4))
        dy0, dy3 = dy[var[0]], dy[var[3]]

        resistance = alpha[pid[self.ParamId.RESISTANCE]]
        capacitance = alpha[pid[self.ParamId.CAPACITANCE]]
        inductance = alpha[pid[self.ParamId.INDUCTANCE]]
        stenosis_coeff = alpha[pid[self.ParamId.STENOSIS_COEFFICIENT]]
        stenosis_resistance = stenosis_coeff * abs(y3)

        jacobian[eqn[0], pid[self.ParamId.RESISTANCE]] = -y3
        jacobian[eqn[0], pid[self.ParamId.INDUCTANCE]] = -dy3
        jacobian[eqn[0], pid[self.ParamId.STENOSIS_COEFFICIENT]] = -abs(y3) * y3
        jacobian[eqn[1], pid[self.ParamId.CAPACITANCE]] = -dy0

        residual[eqn[0]] = y0 - y2 - (resistance + stenosis_resistance) * y3 - inductance * dy3
        residual[eqn[1]] = y1 - y3 - capacitance * dy0
