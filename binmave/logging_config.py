"""Logging setup for the CLI and the TUI."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """Configure the ``binmave`` logger.

    The terminal belongs to the TUI, so records only go to a file when one
    is given; otherwise a NullHandler swallows them.

    Args:
        level: Level name such as "DEBUG" or "INFO".
        log_file: Optional path of the log file (appended to).

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger("binmave")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = logging.NullHandler()
    logger.addHandler(handler)
    return logger
