"""Logging helpers."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
LOGGER_NAME = "gravatar_fdw"


def configure_logging(verbose: bool = False) -> None:
    """Configure application logging once for CLI usage.

    urllib3 connection chatter is only shown in verbose mode.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("urllib3").setLevel(logging.DEBUG if verbose else logging.WARNING)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the package logger, or one of its children."""
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)
