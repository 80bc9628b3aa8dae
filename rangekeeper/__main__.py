"""
Executable module for rangekeeper.

Running:
    python -m rangekeeper

is equivalent to:
    rangekeeper

This module simply forwards execution to the CLI entrypoint defined in
`rangekeeper.cli`.
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: ImportError) -> None:
    """Explain on stderr why the CLI could not be loaded."""
    try:
        from rangekeeper.__version__ import __version__
    except ImportError:
        __version__ = "<unknown>"

    sys.stderr.write(f"rangekeeper version: {__version__}\n")
    sys.stderr.write(f"Python version: {sys.version}\n")
    sys.stderr.write("\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    """
    Main entrypoint when executing `python -m rangekeeper`.

    Returns:
        Exit code returned by the CLI, or 1 if it cannot be imported.
    """
    try:
        # Import lazily so a missing dependency gets a readable message
        from rangekeeper.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
