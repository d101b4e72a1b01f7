"""
Unified Logging Module
======================

Single logging entry point for the attendance ingestion package.

Usage:
    from attendance_ingest.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Processing workbook: %s", filename)
    logger.debug("Date column %d classified as %s", col, rule)
"""

import logging
import sys
from typing import Optional

# Default log format with timestamp, level, and module name
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LEVEL = logging.INFO

ROOT_LOGGER_NAME = "attendance_ingest"

# Global flag to track if root logger has been configured
_root_configured = False


def _configure_root_logger() -> None:
    """
    Attach a stdout handler to the package root logger.

    Runs once; guarded by the module-level ``_root_configured`` flag.
    """
    global _root_configured
    if _root_configured:
        return

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT))

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(DEFAULT_LEVEL)
    root_logger.addHandler(console_handler)
    root_logger.propagate = False

    _root_configured = True


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Return a logger for *name* (normally the caller's ``__name__``).

    Args:
        name: logger name
        level: optional level; the package default (INFO) applies otherwise
    """
    _configure_root_logger()

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger


def set_level(level, logger_name: Optional[str] = None) -> None:
    """
    Set the level of one logger, or of the package root logger.

    ``level`` may be an int or a level name such as ``"DEBUG"``.

    Examples:
        set_level(logging.DEBUG)  # debug for every attendance_ingest module
        set_level("DEBUG", "attendance_ingest.extractors.biometric_extractor")
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = DEFAULT_LEVEL
    logger = logging.getLogger(logger_name or ROOT_LOGGER_NAME)
    logger.setLevel(level)
