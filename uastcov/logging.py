"""Logging helpers; every record goes to stderr because stdout carries the report."""

from __future__ import annotations

import logging
import sys

_ROOT = "uastcov"
_FORMAT = "[uastcov] %(levelname)s %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(*, verbose: bool = False) -> logging.Logger:
    """Install a single stderr handler on the ``uastcov`` logger.

    Calling it again replaces the handler, so repeated CLI invocations in one
    process do not duplicate output.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = get_logger()
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "get_logger"]
