"""
Command-line interface for rangekeeper.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from rangekeeper.config import load_config
from rangekeeper.__version__ import __version__
from rangekeeper.context import RangekeeperContext
from rangekeeper.exceptions import ConfigError, RangekeeperError
from rangekeeper.utils.logger import get_logger, setup_logging, verbosity_to_level
from rangekeeper.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="RANGEKEEPER_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="RANGEKEEPER_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="rangekeeper",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """rangekeeper — find newer versions of npm dependencies.

    \b
    Available commands:
      rangekeeper check            Check package.json for newer versions
      rangekeeper clear-cache      Delete the registry version cache

    \b
    Examples:
      rangekeeper check
      rangekeeper check -t minor -u
      rangekeeper -v check --reject '@types/*'

    Use ``rangekeeper COMMAND --help`` for command-specific options.
    """
    # Respect NO_COLOR for downstream libraries
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    _configure_logging(verbose)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    rangekeeper_ctx = RangekeeperContext()
    rangekeeper_ctx.config_path = config or loaded_config.source_path
    rangekeeper_ctx.color = color
    rangekeeper_ctx.verbose = verbose
    rangekeeper_ctx.config = loaded_config
    ctx.obj = rangekeeper_ctx

    logger.debug("rangekeeper v%s", __version__)
    logger.debug("Config path: %s", rangekeeper_ctx.config_path)
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int) -> None:
    """Configure logging level based on verbosity flags."""
    level = verbosity_to_level(verbose)
    setup_logging(level=level, verbose=verbose >= 2)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


# Register CLI subcommands
from rangekeeper.commands.check import check  # noqa: E402
from rangekeeper.commands.clear_cache import clear_cache  # noqa: E402

cli.add_command(check)
cli.add_command(clear_cache)


def main() -> int:
    """Main entry point for the rangekeeper CLI.

    Returns:
        Exit code:
            0   Success (or no action required by ``--error-level``)
            1   Updates found / application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        cli(standalone_mode=False)
        return 0

    except click.exceptions.Exit as exc:
        return exc.exit_code

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.Abort:
        print_warning("Aborted")
        return 1

    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1

    except RangekeeperError as exc:
        print_error(str(exc))
        logger.debug(
            "RangekeeperError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
