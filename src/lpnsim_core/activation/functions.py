# src/lpnsim_core/activation/functions.py
"""
Time-periodic activation functions that drive the elastance of cardiac chambers.

Every activation function maps a simulation time to a normalized contraction signal
in [0, 1] over one cardiac cycle. Concrete strategies are registered by type name
with `@register_activation` and built with `create_activation_function`.
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import ClassVar, Dict, Optional, Type

import numpy as np

from ..constants import TWO_HILL_NORMALIZATION_DT, TWO_HILL_SCAN_CHUNK
from ..parameters import InputParameter, ParameterValues
from ..units import TIME_UNITS
from .exceptions import (
    UnknownActivationTypeError,
    ActivationNormalizationError,
    ActivationParameterError,
    ActivationNotFinalizedError,
    ActivationOwnershipError,
    InvalidCardiacPeriodError,
)

logger = logging.getLogger(__name__)


class ActivationFunction(ABC):
    """
    The abstract base class of the activation-function strategy family.

    The cardiac period is fixed at construction and must be positive. Parameters start
    at their declared defaults and are filled in by the loader with `set_param`;
    `finalize()` is then called once before the first `compute()`.
    """
    type_str: ClassVar[str] = "BaseActivation"

    def __init__(self, cardiac_period: float):
        cardiac_period = float(cardiac_period)
        if not cardiac_period > 0.0:
            raise InvalidCardiacPeriodError(type_str=type(self).type_str, cardiac_period=cardiac_period)
        self._cardiac_period = cardiac_period
        self.params = ParameterValues(owner=type(self).type_str, declarations=self.declare_parameters())
        # Name of the block holding exclusive ownership, set on injection.
        self.owner: Optional[str] = None
        logger.debug(f"Created {type(self).__name__} with cardiac period {self._cardiac_period}")

    @property
    def cardiac_period(self) -> float:
        return self._cardiac_period

    @classmethod
    @abstractmethod
    def declare_parameters(cls) -> Dict[str, InputParameter]:
        """Declare the named inputs of this activation function."""
        pass

    @abstractmethod
    def compute(self, time: float) -> float:
        """
        Compute the activation value at the given time.

        Args:
            time: Current simulation time.

        Returns:
            Activation value, nominally between 0 and 1.
        """
        pass

    def set_param(self, name: str, value: float):
        """Set a declared scalar parameter by name."""
        self.params[name] = value

    def get_param(self, name: str) -> float:
        return self.params[name]

    def finalize(self):
        """Called once after all parameters are set. Default is a no-op."""
        pass

    def claim(self, owner: str):
        """Mark this instance as exclusively owned by the block named `owner`."""
        if self.owner is not None and self.owner != owner:
            raise ActivationOwnershipError(
                type_str=type(self).type_str, current_owner=self.owner, requested_owner=owner
            )
        self.owner = owner

    def release(self):
        self.owner = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cardiac_period={self._cardiac_period}, params={dict(self.params.items())})"


# --- Global Activation Registry and Decorator ---

ACTIVATION_REGISTRY: Dict[str, Type[ActivationFunction]] = {}


def register_activation(type_str: str):
    """
    A class decorator to register an activation function class by its type name,
    making it available to `create_activation_function` and the network loader.
    """
    def decorator(cls: Type[ActivationFunction]):
        if not issubclass(cls, ActivationFunction):
            raise TypeError(f"Class {cls.__name__} must inherit from ActivationFunction.")

        params = cls.declare_parameters()
        if not isinstance(params, dict) or not all(
            isinstance(k, str) and isinstance(v, InputParameter) for k, v in params.items()
        ):
            raise TypeError(
                f"Activation class '{cls.__name__}' violates API contract. "
                f"declare_parameters() must return a Dict[str, InputParameter]."
            )

        if type_str in ACTIVATION_REGISTRY:
            logger.warning(f"Activation function type '{type_str}' is being redefined/overwritten.")
        cls.type_str = type_str
        ACTIVATION_REGISTRY[type_str] = cls
        logger.debug(f"Registered activation function type '{type_str}' -> {cls.__name__}")
        return cls
    return decorator


def create_activation_function(type_str: str, cardiac_period: float) -> ActivationFunction:
    """
    Create an activation function with default parameter values from its type name.

    Args:
        type_str: One of the registered names, e.g. "half_cosine", "piecewise_cosine", "two_hill".
        cardiac_period: Cardiac cycle period.

    Raises:
        UnknownActivationTypeError: If `type_str` is not registered.
    """
    cls = ACTIVATION_REGISTRY.get(type_str)
    if cls is None:
        raise UnknownActivationTypeError(type_str=type_str, valid_types=list(ACTIVATION_REGISTRY))
    return cls(cardiac_period)


@register_activation("half_cosine")
class HalfCosineActivation(ActivationFunction):
    """
    Half cosine wave during the contraction period.

    A(t) = 0.5 * (1 - cos(2 pi t_contract / t_twitch)) if t_contract <= t_twitch, else 0,
    where t_contract = max(0, t_in_cycle - t_active). The derivative is discontinuous
    at t_contract = t_twitch. `finalize()` is optional; `t_twitch` is validated on
    every call.
    """

    @classmethod
    def declare_parameters(cls) -> Dict[str, InputParameter]:
        return {
            "t_active": InputParameter(units=TIME_UNITS),
            "t_twitch": InputParameter(units=TIME_UNITS),
        }

    def _checked_twitch(self) -> float:
        t_twitch = self.params["t_twitch"]
        if not t_twitch > 0.0:
            raise ActivationParameterError(
                type_str=self.type_str, name="t_twitch", value=t_twitch, details="twitch duration must be positive."
            )
        return t_twitch

    def finalize(self):
        self._checked_twitch()

    def compute(self, time: float) -> float:
        t_twitch = self._checked_twitch()
        t_in_cycle = math.fmod(time, self.cardiac_period)
        t_active = self.params["t_active"]

        t_contract = max(0.0, t_in_cycle - t_active)
        if t_contract <= t_twitch:
            return 0.5 * (1.0 - math.cos(2.0 * math.pi * t_contract / t_twitch))
        return 0.0


@register_activation("piecewise_cosine")
class PiecewiseCosineActivation(ActivationFunction):
    """
    Separate contraction and relaxation phases, each a cosine ramp (Regazzoni chamber model).

    The contraction window [contract_start, contract_start + contract_duration) is
    checked first, then the relaxation window; each is taken modulo the cardiac period
    relative to its own start time.
    """

    @classmethod
    def declare_parameters(cls) -> Dict[str, InputParameter]:
        return {
            "contract_start": InputParameter(units=TIME_UNITS),
            "relax_start": InputParameter(units=TIME_UNITS),
            "contract_duration": InputParameter(units=TIME_UNITS),
            "relax_duration": InputParameter(units=TIME_UNITS),
        }

    def compute(self, time: float) -> float:
        contract_start = self.params["contract_start"]
        relax_start = self.params["relax_start"]
        contract_duration = self.params["contract_duration"]
        relax_duration = self.params["relax_duration"]

        phase = math.fmod(time - contract_start, self.cardiac_period)
        if 0.0 <= phase < contract_duration:
            return 0.5 * (1.0 - math.cos(math.pi * phase / contract_duration))

        phase = math.fmod(time - relax_start, self.cardiac_period)
        if 0.0 <= phase < relax_duration:
            return 0.5 * (1.0 + math.cos(math.pi * phase / relax_duration))
        return 0.0


@register_activation("two_hill")
class TwoHillActivation(ActivationFunction):
    """
    Two-hill activation (https://link.springer.com/article/10.1007/s10439-022-03047-3).

    A(t) = N * g1 / (1 + g1) * 1 / (1 + g2), with g1 = (t_s / tau_1)^m1,
    g2 = (t_s / tau_2)^m2 and t_s = (t - t_shift) mod T wrapped into [0, T).
    The normalization N makes the maximum over one period equal to 1 and is computed
    by `finalize()`; computing without it is an error.
    """

    @classmethod
    def declare_parameters(cls) -> Dict[str, InputParameter]:
        return {
            "t_shift": InputParameter(units=TIME_UNITS),
            "tau_1": InputParameter(units=TIME_UNITS),
            "tau_2": InputParameter(units=TIME_UNITS),
            "m1": InputParameter(),
            "m2": InputParameter(),
        }

    def __init__(self, cardiac_period: float):
        super().__init__(cardiac_period)
        self._normalization_factor: Optional[float] = None

    @property
    def normalization_factor(self) -> Optional[float]:
        return self._normalization_factor

    def set_param(self, name: str, value: float):
        super().set_param(name, value)
        # The stored normalization belongs to the old parameter set.
        self._normalization_factor = None

    @staticmethod
    def _two_hill(t_shifted, tau_1: float, tau_2: float, m1: float, m2: float):
        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            g1 = np.power(np.divide(t_shifted, tau_1), m1)
            g2 = np.power(np.divide(t_shifted, tau_2), m2)
            return (g1 / (1.0 + g1)) * (1.0 / (1.0 + g2))

    def _calculate_normalization_factor(self) -> float:
        tau_1, tau_2 = self.params["tau_1"], self.params["tau_2"]
        m1, m2 = self.params["m1"], self.params["m2"]

        # Samples i * dt for i in [0, n), evaluated a bounded chunk at a time.
        num_samples = int(math.ceil(self.cardiac_period / TWO_HILL_NORMALIZATION_DT))
        max_value = 0.0
        for start in range(0, num_samples, TWO_HILL_SCAN_CHUNK):
            stop = min(start + TWO_HILL_SCAN_CHUNK, num_samples)
            t_scan = np.arange(start, stop, dtype=float) * TWO_HILL_NORMALIZATION_DT
            values = self._two_hill(t_scan, tau_1, tau_2, m1, m2)
            max_value = max(max_value, float(values[~np.isnan(values)].max(initial=0.0)))

        if not (max_value > 0.0) or not math.isfinite(max_value):
            raise ActivationNormalizationError(
                details=(f"max activation value must be positive and finite (got {max_value}). "
                         f"Check tau_1, tau_2, m1, m2 are valid (e.g., tau_1 > 0, tau_2 > 0)."),
                cardiac_period=self.cardiac_period,
            )
        logger.debug(f"Two-hill normalization maximum {max_value:.6e} over {num_samples} samples.")
        return 1.0 / max_value

    def finalize(self):
        self._normalization_factor = self._calculate_normalization_factor()

    def compute(self, time: float) -> float:
        if self._normalization_factor is None:
            raise ActivationNotFinalizedError(type_str=self.type_str)

        t_in_cycle = math.fmod(time, self.cardiac_period)
        t_shifted = math.fmod(t_in_cycle - self.params["t_shift"], self.cardiac_period)
        if t_shifted < 0.0:
            t_shifted += self.cardiac_period

        raw = self._two_hill(
            t_shifted, self.params["tau_1"], self.params["tau_2"], self.params["m1"], self.params["m2"]
        )
        return self._normalization_factor * float(raw)
