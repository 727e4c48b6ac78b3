# --- src/lpnsim_core/log_config.py ---
import logging
import os
import sys
from typing import Optional, Union

PACKAGE_LOGGER_NAME = "lpnsim_core"
LOG_LEVEL_ENV_VAR = "LPNSIM_LOG_LEVEL"
DEFAULT_LOG_LEVEL = logging.INFO


def setup_logging(level: Optional[Union[int, str]] = None):
    """
    Configures the package logger to write to stdout.

    The level defaults to the ``LPNSIM_LOG_LEVEL`` environment variable, then INFO.
    An unrecognized level falls back to INFO with a warning instead of failing the
    package import. Only the ``lpnsim_core`` logger is touched so that an embedding
    application keeps control of the root logger; records still propagate to it.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO")
    if isinstance(level, str):
        level = level.strip().upper()

    log_formatter = logging.Formatter(
        "%(asctime)s [%(levelname)-5.5s] [%(name)s] %(message)s"
    )
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)

    # Re-running setup must not stack handlers.
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)
    package_logger.addHandler(console_handler)
    try:
        package_logger.setLevel(level)
    except (ValueError, TypeError):
        package_logger.setLevel(DEFAULT_LOG_LEVEL)
        package_logger.warning(
            f"Unrecognized log level {level!r} (from {LOG_LEVEL_ENV_VAR} or setup_logging); using INFO."
        )
    package_logger.debug(f"Logging configured at level {logging.getLevelName(package_logger.level)}.")
