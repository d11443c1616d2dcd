"""Logging helpers shared by every module of the package."""
from __future__ import annotations

import logging
import os
import sys
from typing import Optional

PACKAGE_LOGGER = "sitemap_from_files"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _normalise_level(level: Optional[str | int]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        value = level.strip().upper()
        if value.isdigit():
            return int(value)
        mapped = logging.getLevelName(value)
        if isinstance(mapped, int):
            return mapped
    return logging.WARNING


def configure_logging(level: Optional[str | int] = None) -> logging.Logger:
    """Send package logs to stderr at the requested level.

    stdout is reserved for the sitemap itself, so only a stderr handler is
    installed. Calling this again replaces the previous handler.
    """

    if level is None:
        level = os.getenv("LOG_LEVEL")
    log_level = _normalise_level(level)

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(log_level)
    logger.propagate = False
    return logger
