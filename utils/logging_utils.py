"""
Logger setup shared by the grid engine and the map generator.
"""

from __future__ import annotations

import logging

# Root logger name for the whole project
LOGGER_NAME = "hexloop"

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"


def get_logger(name: str = "") -> logging.Logger:
    """
    Return a project logger, configuring the root project handler once.

    Child loggers ("hexloop.solver", "hexloop.generator", ...) propagate to
    the project logger, so only that one carries a handler.
    """
    root = logging.getLogger(LOGGER_NAME)

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)

    if not name:
        return root
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def set_level(level: int) -> None:
    """Change the verbosity of every project logger."""
    get_logger().setLevel(level)
