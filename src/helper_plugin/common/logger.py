"""
Logging setup shared by all helper plugin modules.

Module loggers propagate to the ``helper_plugin`` package logger, which owns
the single stream handler and the effective level.
"""

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

PACKAGE_LOGGER = "helper_plugin"


def _level_from_name(level_name: str) -> int:
    return getattr(logging, level_name.upper(), logging.INFO)


def _package_logger() -> logging.Logger:
    """Get the package logger, attaching its handler on first use."""
    logger = logging.getLogger(PACKAGE_LOGGER)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    if os.environ.get("HELPER_LOG_LEVEL"):
        logger.setLevel(_level_from_name(os.environ["HELPER_LOG_LEVEL"]))

    return logger


def set_log_level(level: str) -> None:
    """
    Set the level of every helper plugin logger.

    Args:
        level: Level name (e.g. 'DEBUG'); unknown names mean INFO
    """
    _package_logger().setLevel(_level_from_name(level))


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get a logger that reports through the package handler.

    Args:
        name: Logger name under ``helper_plugin``, usually ``__name__``
        level: Level name for this logger only. If None, the package level applies
            (HELPER_LOG_LEVEL, then logging.level from config, then INFO)

    Returns:
        Configured logger
    """
    _package_logger()

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(_level_from_name(level))
    return logger
