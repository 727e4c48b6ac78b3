# --- src/lpnsim_core/units.py ---
import logging
from typing import Optional, Union

import pint

logger = logging.getLogger(__name__)
ureg = pint.UnitRegistry()
Quantity = ureg.Quantity
logger.info("Pint Unit Registry initialized.")


# Blocks work in the CGS system customary for 0D hemodynamics. A parameter's declared
# unit string is always expressed in these base quantities.
PRESSURE_UNITS = "dyn / cm**2"
FLOW_UNITS = "cm**3 / s"
VOLUME_UNITS = "cm**3"
TIME_UNITS = "s"

RESISTANCE_UNITS = "dyn * s / cm**5"
CAPACITANCE_UNITS = "cm**5 / dyn"
INDUCTANCE_UNITS = "dyn * s**2 / cm**5"
STENOSIS_COEFFICIENT_UNITS = "dyn * s**2 / cm**8"
ELASTANCE_UNITS = "dyn / cm**5"

logger.debug(f"Model base units: pressure [{PRESSURE_UNITS}], flow [{FLOW_UNITS}], time [{TIME_UNITS}].")


def to_declared_units(value: Union[int, float, str], units: Optional[str]) -> float:
    """
    Converts a raw configuration value to a float magnitude in the declared units.

    Plain numbers are taken to already be in the declared units. Strings are parsed by
    pint (e.g. ``"0.8 s"``, ``"2 mmHg/mL"``) and converted; a unit-less string is only
    accepted for dimensionless parameters or parameters without declared units.

    Raises:
        pint.DimensionalityError: The string's dimension does not match ``units``.
        pint.UndefinedUnitError: The string names a unit pint does not know.
        ValueError: The value is neither a number nor a parsable quantity string.
    """
    if isinstance(value, bool):
        raise ValueError(f"Boolean value {value!r} is not a valid numeric parameter.")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise ValueError(f"Value {value!r} of type '{type(value).__name__}' is not numeric.")

    qty = Quantity(value)
    if units is None:
        if not qty.dimensionless:
            raise pint.DimensionalityError(qty.units, ureg.dimensionless)
        return float(qty.to(ureg.dimensionless).magnitude)
    return float(qty.to(units).magnitude)
