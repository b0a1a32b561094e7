"""
Logging helpers.

Never log the Gemini API key or the full model text; truncate raw payloads.
"""
from __future__ import annotations
import logging
from typing import Optional

from ..config import settings


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a configured logger for the specified module.

    Args:
        name: Module name (typically __name__)
        level: Optional logging level (defaults to settings.log_level)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if level is None:
        level = logging.getLevelName(settings.log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger.setLevel(level)

    # avoid duplicate handlers on re-import
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def truncate(text: str, limit: int = 200) -> str:
    """Shorten provider text for log lines."""
    return text if len(text) <= limit else text[:limit] + "..."
