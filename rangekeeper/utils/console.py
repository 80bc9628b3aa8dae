"""
Console output utilities for rangekeeper using Rich.

This module provides user-facing output helpers for CLI commands.
For diagnostic or debug output, use :mod:`rangekeeper.utils.logger`.
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Dict, List, Optional

from rich.table import Table
from rich.theme import Theme
from rich.console import Console

RANGEKEEPER_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
    }
)

#: Colour used for each update classification.
UPDATE_TYPE_COLORS: Dict[str, str] = {
    "major": "red",
    "minor": "cyan",
    "patch": "green",
}

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    """Return True if coloured output should be enabled."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    """Return the process-wide Rich console, creating it on first use."""
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=RANGEKEEPER_THEME,
                    no_color=not use_color,
                    highlight=False,
                )
    return _console


def reconfigure_console() -> None:
    """Drop the cached console so the next call re-reads ``NO_COLOR``."""
    global _console
    with _console_lock:
        _console = None


def get_raw_console() -> Console:
    """Return the underlying Rich console."""
    return _get_console()


# ---------------------------------------------------------------------------
# Status messages
# ---------------------------------------------------------------------------


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _get_console().print(f"{prefix} {message}", style="success", markup=False)


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _get_console().print(f"{prefix} {message}", style="error", markup=False)


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _get_console().print(f"{prefix} {message}", style="warning", markup=False)


# ---------------------------------------------------------------------------
# Structured output
# ---------------------------------------------------------------------------


def print_table(
    data: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
    show_header: bool = True,
) -> None:
    """Render a list of row dictionaries as a borderless Rich table.

    Args:
        data: Row dictionaries; values may contain Rich markup.
        headers: Column order. Defaults to the keys of the first row.
        title: Optional table title.
        column_styles: Per-column ``style`` / ``justify`` / ``no_wrap``.
        show_header: Whether to print the header row.
    """
    if not data:
        return

    if headers is None:
        headers = list(data[0].keys())

    table = Table(
        title=title,
        show_header=show_header,
        header_style="bold",
        box=None,
        pad_edge=False,
    )

    column_styles = column_styles or {}
    for header in headers:
        config = column_styles.get(header, {})
        table.add_column(
            header,
            style=config.get("style"),
            justify=config.get("justify", "left"),
            no_wrap=config.get("no_wrap", True),
        )

    for row in data:
        table.add_row(*(str(row.get(h, "")) for h in headers))

    _get_console().print(table)


def colorize_update_type(text: str, update_type: str) -> str:
    """Wrap *text* in Rich markup coloured by *update_type*.

    Major is red, minor cyan, patch green and anything else yellow.

    Example:
        >>> colorize_update_type("^2.0.0", "major")
        '[red]^2.0.0[/red]'
    """
    color = UPDATE_TYPE_COLORS.get(update_type.lower(), "yellow")
    return f"[{color}]{text}[/{color}]"
