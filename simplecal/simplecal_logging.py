"""
Central logging configuration for simplecal.

Console output goes through a colorlog formatter; per-module levels keep the
expansion modules quiet unless debug logging is requested.
"""

import logging
import os
import sys
from typing import Optional

from colorlog import ColoredFormatter

LOG_FORMAT = "%(asctime)s %(log_color)s%(levelname)-7s%(reset)s %(name)s: %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

SIMPLECAL_MODULES = [
    "simplecal",
    "simplecal.rrule_codec",
    "simplecal.exdate_set",
    "simplecal.occurrence_generator",
    "simplecal.exception_index",
    "simplecal.series_expander",
    "simplecal.mutation_planner",
    "simplecal.event_store",
]


def configure_logging(debug_mode: bool = False, force_debug: Optional[bool] = None) -> None:
    """
    Configure logging for simplecal.

    Args:
        debug_mode: Whether to enable debug logging for simplecal modules
        force_debug: Override debug mode setting (None to use env var detection)

    Environment Variables:
        SIMPLECAL_DEBUG: Set to '1', 'true', 'yes' to force debug logging
        SIMPLECAL_LOG_LEVEL: Override root log level (DEBUG, INFO, WARNING, ERROR)
    """
    env_debug = os.getenv("SIMPLECAL_DEBUG", "").lower() in ("1", "true", "yes")
    env_log_level = os.getenv("SIMPLECAL_LOG_LEVEL", "").upper()

    if force_debug is not None:
        final_debug = force_debug
    elif env_debug:
        final_debug = True
    else:
        final_debug = debug_mode

    root_level = logging.DEBUG if final_debug else logging.INFO
    if env_log_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
        root_level = getattr(logging, env_log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(root_level)

    # Only add a handler if none exist to avoid duplicate output
    if not root_logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS))
        root_logger.addHandler(handler)

    module_level = logging.DEBUG if final_debug else logging.INFO
    for module in SIMPLECAL_MODULES:
        logging.getLogger(module).setLevel(module_level)

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s, simplecal=%s",
        logging.getLevelName(root_level),
        logging.getLevelName(module_level),
    )


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in SIMPLECAL_MODULES:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
