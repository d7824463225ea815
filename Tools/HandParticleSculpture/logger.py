"""
Logging for HandParticleSculpture.

All modules log through children of one "HandParticleSculpture" logger.
setup_logging() attaches a console handler and, optionally, a rotating
log file under %APPDATA%/HandParticleSculpture/logs (Windows) or
~/.hand_particle_sculpture/logs (elsewhere).
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import LOG_FILENAME, LOG_MAX_BYTES, LOG_BACKUP_COUNT

BASE_LOGGER_NAME = "HandParticleSculpture"

_CONSOLE_FORMAT = logging.Formatter("%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%H:%M:%S")
_FILE_FORMAT = logging.Formatter(
    "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s:%(lineno)d | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)


def get_log_directory() -> Path:
    """Directory for log files, created on first use."""
    appdata = os.environ.get("APPDATA")
    if appdata:
        log_dir = Path(appdata) / "HandParticleSculpture" / "logs"
    else:
        log_dir = Path.home() / ".hand_particle_sculpture" / "logs"

    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def setup_logging(
    debug: bool = False,
    log_to_file: bool = True,
    log_filename: Optional[str] = None
) -> logging.Logger:
    """
    Configure the application logger. Calling it again replaces the handlers.

    Args:
        debug: Log DEBUG messages to the console too.
        log_to_file: Also write a rotating log file (always at DEBUG).
        log_filename: File name inside the log directory.

    Returns:
        The base application logger.
    """
    console_level = logging.DEBUG if debug else logging.INFO

    logger = logging.getLogger(BASE_LOGGER_NAME)
    logger.setLevel(logging.DEBUG if log_to_file else console_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(_CONSOLE_FORMAT)
    logger.addHandler(console)

    if log_to_file:
        log_path = get_log_directory() / (log_filename or LOG_FILENAME)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_FILE_FORMAT)
        logger.addHandler(file_handler)
        logger.debug(f"Log file: {log_path}")

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a component logger.

    Args:
        name: Component name, e.g. "GestureStabilizer". None returns the
            base logger.
    """
    base_logger = logging.getLogger(BASE_LOGGER_NAME)
    return base_logger.getChild(name) if name else base_logger
