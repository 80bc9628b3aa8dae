"""
Logging utilities for rangekeeper.

All diagnostic output goes through loggers in the ``rangekeeper``
namespace. The library itself only ever attaches a ``NullHandler``; the
CLI calls :func:`setup_logging` once per invocation to install a stderr
handler at the level implied by ``-v`` flags.
"""

from __future__ import annotations

import os
import sys
import copy
import logging
import threading
from typing import IO, Optional

from rangekeeper.constants import (
    TOOL_NAME,
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

_logging_configured: bool = False
_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name with ANSI escapes."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if not (color and self.use_color and _stderr_supports_color()):
            return super().format(record)

        # Other handlers share the record; colour a copy only.
        colored = copy.copy(record)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def _stderr_supports_color() -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stderr.isatty()
    except (AttributeError, OSError):
        return False


def verbosity_to_level(verbose: int) -> int:
    """Map a ``-v`` count to a logging level.

    0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure the ``rangekeeper`` logger hierarchy.

    Safe to call repeatedly; each call replaces the previous handler.

    Args:
        level: Logging level (e.g. ``logging.INFO``).
        verbose: Use the verbose format with timestamps and logger names.
        stream: Output stream; defaults to ``sys.stderr``.
    """
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(TOOL_NAME)
        root_logger.handlers.clear()
        root_logger.setLevel(level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(
            ColoredFormatter(
                LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
                datefmt=LOG_DATE_FORMAT,
                use_color=not os.environ.get("NO_COLOR"),
            )
        )

        root_logger.addHandler(handler)
        root_logger.propagate = False
        _logging_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger within the ``rangekeeper`` namespace.

    ``get_logger("cache")`` and ``get_logger("rangekeeper.cache")`` return
    the same logger.
    """
    if not name or name == TOOL_NAME:
        logger = logging.getLogger(TOOL_NAME)
    elif name.startswith(f"{TOOL_NAME}."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{TOOL_NAME}.{name}")

    if not logger.handlers and (not logger.parent or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger


def is_logging_configured() -> bool:
    """Return True if :func:`setup_logging` has run."""
    return _logging_configured


def disable_logging() -> None:
    """Silence all rangekeeper logging output."""
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(TOOL_NAME)
        root_logger.handlers.clear()
        root_logger.addHandler(logging.NullHandler())
        root_logger.setLevel(logging.NOTSET)
        _logging_configured = False
