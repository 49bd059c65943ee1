"""
config.py
- Defines global configuration values derived from environment variables.
- Used as defaults by the options loader and the entrypoint.
- Configures loguru sinks for the whole process.
"""

import os
import sys

from loguru import logger

from label_watcher.core.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_WAIT,
    DEFAULT_STATUS_PORT,
    POLL_INTERVAL_SECONDS,
)


def env_flag(name, default="false"):
    return os.getenv(name, default).lower() == "true"


def env_int(name, default):
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


def env_float(name, default):
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


# --- Runtime Behavior Flags ---
DEBUG = env_flag("DEBUG")
INITIAL_SYNC = env_flag("INITIAL_SYNC", "true")

# --- Controller & Agent ---
CONTROLLER_URL = os.getenv("CONTROLLER_URL")
AGENT_NAME = os.getenv("AGENT_NAME")
LABELS_FILE = os.getenv("LABELS_FILE")
CONTROLLER_USERNAME = os.getenv("CONTROLLER_USERNAME")
CONTROLLER_PASSWORD = os.getenv("CONTROLLER_PASSWORD")
CONTROLLER_PASSWORD_FILE = os.getenv("CONTROLLER_PASSWORD_FILE")
DISABLE_SSL_VERIFICATION = env_flag("DISABLE_SSL_VERIFICATION")
CA_BUNDLE = os.getenv("CA_BUNDLE")

# --- Timing ---
REQUEST_TIMEOUT = env_float("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT)
MAX_RETRIES = env_int("MAX_RETRIES", DEFAULT_MAX_RETRIES)
RETRY_WAIT = env_float("RETRY_WAIT", DEFAULT_RETRY_WAIT)
POLL_INTERVAL = env_float("POLL_INTERVAL", POLL_INTERVAL_SECONDS)

# --- Logging & Status ---
LOG_FILE = os.getenv("LOG_FILE")
STATUS_PORT = env_int("STATUS_PORT", DEFAULT_STATUS_PORT)
SENTRY_DSN = os.getenv("SENTRY_DSN")

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def configure_logging(debug=DEBUG, log_file=None):
    """
    Replace loguru's default sink with the project format.

    Args:
        debug (bool): Log at DEBUG instead of INFO.
        log_file (str): Optional path for an additional rotating file sink.
    """
    level = "DEBUG" if debug else "INFO"
    logger.remove()
    logger.add(sys.stderr, level=level, colorize=True, format=LOG_FORMAT)
    if log_file:
        logger.add(
            log_file,
            level=level,
            format=LOG_FORMAT,
            colorize=False,
            rotation="10 MB",
            retention=5,
        )
