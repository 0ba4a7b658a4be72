"""Logging helpers for md-reformat."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "md_reformat"


def setup_logger(level: str = "WARNING") -> logging.Logger:
    """Route package logging to a rich handler on stderr.

    Args:
        level: Logging level name; unknown names fall back to WARNING.

    Returns:
        logging.Logger: The package logger.

    Examples:
        setup_logger("DEBUG")
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    console = Console(stderr=True, highlight=False)
    handler = RichHandler(console=console, show_time=False, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers = [handler]
    logger.setLevel(numeric_level)
    logger.propagate = False
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the logger for `name`, or the package logger."""
    return logging.getLogger(name or LOGGER_NAME)
