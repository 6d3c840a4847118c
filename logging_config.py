"""Logging configuration for the storefront API.

All modules log below the ``storefront`` logger so a single call to
``setup_logging`` at startup controls level and output for the whole service.
"""

import logging
import sys
from typing import Union

__all__ = [
    "setup_logging",
    "get_logger",
    "ROOT_LOGGER",
]

ROOT_LOGGER = "storefront"


class ColoredConsoleHandler(logging.StreamHandler):
    """Console handler with colored level names when writing to a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if hasattr(self.stream, "isatty") and self.stream.isatty():
            color = self.COLORS.get(record.levelname, "")
            if color:
                message = message.replace(
                    f"[{record.levelname}]", f"[{color}{record.levelname}{self.RESET}]", 1
                )
        return message


def setup_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Set up the service logger.

    Args:
        level: Logging level, as a number or a name such as ``"DEBUG"``

    Returns:
        The configured ``storefront`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # Clear existing handlers so repeated startups don't duplicate output
    logger.handlers.clear()

    console_handler = ColoredConsoleHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logger.addHandler(console_handler)
    logger.propagate = False

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Get a logger below the service root (``storefront.<name>``)."""
    if name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
