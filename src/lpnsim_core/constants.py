# --- src/lpnsim_core/constants.py ---
import logging

logger = logging.getLogger(__name__)

# --- DOF Numbering ---

#: Interface variables every block owns, in global-index order. Internal variables
#: declared by a block follow these four.
INTERFACE_VARIABLES = ("pressure_in", "flow_in", "pressure_out", "flow_out")

#: Number of interface variables allocated per block before its internal variables.
NUM_INTERFACE_VARIABLES: int = len(INTERFACE_VARIABLES)

# --- Activation Functions ---

#: Step of the forward scan that finds the two-hill normalization maximum.
#: Units: the time unit of the cardiac period (seconds in the CGS model units).
TWO_HILL_NORMALIZATION_DT: float = 1.0e-5

#: Maximum number of samples evaluated at once by the normalization scan.
TWO_HILL_SCAN_CHUNK: int = 1_000_000

#: Default cardiac cycle period for a network whose configuration does not set one (s).
DEFAULT_CARDIAC_PERIOD: float = 1.0

logger.debug("Defined core constants: INTERFACE_VARIABLES, TWO_HILL_NORMALIZATION_DT, TWO_HILL_SCAN_CHUNK, DEFAULT_CARDIAC_PERIOD")
