"""Logging setup for frametime."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure and return the root frametime logger."""
    logger = logging.getLogger("frametime")
    logger.setLevel(level.upper())
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str = "frametime") -> logging.Logger:
    """Return a logger under the frametime namespace."""
    if name != "frametime" and not name.startswith("frametime."):
        name = f"frametime.{name}"
    return logging.getLogger(name)
