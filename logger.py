"""Logging configuration for the reminder service."""

import logging
import sys
from datetime import datetime
from typing import Optional

from config import LOG_DIR, LOG_LEVEL

LOGGER_NAME = "diet_reminders"


def _resolve_level(name: Optional[str]) -> int:
    """Level number for a name like "DEBUG"; unknown names fall back to INFO."""
    level = logging.getLevelName((name or "").upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Log to a dated file and, when attached to a terminal, the console.

    Args:
        level: Level name, defaults to LOG_LEVEL from the environment
    """
    log_level = _resolve_level(level or LOG_LEVEL)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_level)
    logger.handlers.clear()

    file_handler = logging.FileHandler(LOG_DIR / f"{datetime.now():%Y-%m-%d}.log", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(module)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))
    logger.addHandler(file_handler)

    if sys.stdout is not None and sys.stdout.isatty():
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(message)s",
            datefmt="%H:%M:%S"
        ))
        logger.addHandler(console_handler)

    return logger


# Global logger instance
logger = setup_logging()
