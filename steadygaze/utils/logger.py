"""
Logging configuration for SteadyGaze.

Every module logs through a child of the "steadygaze" logger, so one call
to setup_logger() configures the whole package. Calibration timers fire on
their own threads, hence the thread name in the format.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

# Package root logger; modules use get_logger(__name__) beneath it
LOGGER_NAME = "steadygaze"

LOG_LEVEL_ENV = "STEADYGAZE_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"

LOG_FORMAT = "%(asctime)s - %(name)s [%(threadName)s] - %(levelname)s - %(message)s"


def default_log_level() -> str:
    """Log level from STEADYGAZE_LOG_LEVEL, WARNING if unset."""
    return os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)


def setup_logger(
    name: str = LOGGER_NAME,
    level: Optional[str] = None,
    log_file: Optional[Path] = None,
    enable_file_logging: bool = False,
) -> logging.Logger:
    """
    Configure the package logger with console and optional file output.

    Calling again only changes the level; handlers are attached once.

    Args:
        name: Logger name (the package root by default)
        level: Level name; falls back to STEADYGAZE_LOG_LEVEL
        log_file: Path to log file (optional)
        enable_file_logging: Also write to log_file (default: False)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    numeric_level = getattr(logging, (level or default_log_level()).upper(), logging.WARNING)
    logger.setLevel(numeric_level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
        return logger

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if enable_file_logging and log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            logger.info(f"File logging enabled: {log_file}")
        except OSError as e:
            logger.warning(f"Failed to enable file logging: {e}")

    # Host applications keep their own root configuration
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger.

    Names outside the package are placed under it, so they share its handlers.
    """
    if name != LOGGER_NAME and not name.startswith(LOGGER_NAME + "."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)
