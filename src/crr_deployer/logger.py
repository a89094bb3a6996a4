import logging
import sys
import traceback
from colorlog import ColoredFormatter

LOGGER_NAME = "crr_deployer"

DEBUG_MODE = False


def setup_logger(debug_mode=False):
    """
    Configure the package logger.

    Modules log through logging.getLogger(__name__), which propagates to
    this logger, so one handler covers the whole package.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)

        formatter = ColoredFormatter(
            "%(log_color)s[%(levelname)s] %(message)s",
            log_colors={
                "DEBUG":    "cyan",
                "INFO":     "green",
                "WARNING":  "yellow",
                "ERROR":    "red",
                "CRITICAL": "red,bg_white",
            }
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    return logger


def configure_logger(debug_mode=False):
    """Re-setup the logger for the given mode."""
    global logger, DEBUG_MODE
    DEBUG_MODE = debug_mode
    logger = setup_logger(debug_mode=DEBUG_MODE)
    if DEBUG_MODE:
        logger.debug("Debug mode is active.")
    return logger


def print_stack_trace():
    """Log the current exception's stack trace if debug mode is enabled."""
    if DEBUG_MODE:
        logger.error(traceback.format_exc())


# Logger defaults to INFO unless reconfigured later.
logger = setup_logger(debug_mode=DEBUG_MODE)
