"""Check command implementation for rangekeeper.

Reads the dependency ranges of a ``package.json``, resolves them against
the registry and reports which can move to a newer version under the
selected target policy.

The command wires together three pieces:

1. **manifest** — extracts registry dependencies for the chosen dep types.
2. **filters** — narrows them with ``--filter`` / ``--reject``.
3. **resolve** — the cached, concurrent resolution pipeline.

Typical usage::

    # Show every dependency with a newer version
    $ rangekeeper check

    # Only stay within the current major, and rewrite package.json
    $ rangekeeper check -t minor -u

    # Machine-readable output
    $ rangekeeper check --json
"""

from __future__ import annotations

import sys
import json
import asyncio
import dataclasses
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from rangekeeper.config import RangekeeperConfig
from rangekeeper.constants import TARGET_POLICIES
from rangekeeper.context import pass_context, RangekeeperContext
from rangekeeper.core import (
    resolve,
    apply_filters,
    extract_packages,
    parse_dep_types,
    find_package_json,
    read_package_json,
    write_updates,
    detect_package_manager,
)
from rangekeeper.models import ResolutionReport, UpdateRecord
from rangekeeper.utils import (
    get_logger,
    print_success,
    print_warning,
    print_table,
    get_raw_console,
    colorize_update_type,
)

logger = get_logger("commands.check")


@click.command()
@click.argument(
    "package_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=False,
)
@click.option(
    "--upgrade",
    "-u",
    is_flag=True,
    help="Overwrite the package file with the new ranges.",
)
@click.option(
    "--backup",
    is_flag=True,
    help="With --upgrade, keep a timestamped copy of the package file.",
)
@click.option(
    "--target",
    "-t",
    type=click.Choice(list(TARGET_POLICIES)),
    default=None,
    help="Highest kind of update to propose.",
)
@click.option("--filter", "filter_", default=None, help="Only check matching package names.")
@click.option("--reject", default=None, help="Skip matching package names.")
@click.option(
    "--dep",
    multiple=True,
    help="Dependency types to check: prod, dev, peer, optional (repeatable, comma separated).",
)
@click.option(
    "--cache-file",
    type=click.Path(dir_okay=False),
    default=None,
    envvar="RANGEKEEPER_CACHE_FILE",
    help="Path of the version cache file.",
)
@click.option(
    "--cache-ttl",
    type=click.IntRange(min=0),
    default=None,
    help="Cache entry lifetime in seconds.",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum concurrent registry requests.",
)
@click.option(
    "--registry",
    default=None,
    envvar="RANGEKEEPER_REGISTRY",
    help="npm registry base URL.",
)
@click.option("--pre/--no-pre", default=None, help="Include prerelease versions.")
@click.option(
    "--timeout",
    type=click.IntRange(min=1),
    default=None,
    help="Per-request timeout in milliseconds.",
)
@click.option(
    "--retries",
    type=click.IntRange(min=0),
    default=None,
    help="Retries per package after the first failure.",
)
@click.option("--json", "as_json", is_flag=True, help="Print {name: new range} as JSON.")
@click.option("--json-all", "as_json_all", is_flag=True, help="Print full update records as JSON.")
@click.option(
    "--error-level",
    type=click.IntRange(0, 2),
    default=None,
    help="0 or 1: exit 0 unless an error occurs; 2: also exit 1 when updates are found.",
)
@pass_context
def check(
    ctx: RangekeeperContext,
    package_file: Optional[Path],
    upgrade: bool,
    backup: bool,
    target: Optional[str],
    filter_: Optional[str],
    reject: Optional[str],
    dep: Tuple[str, ...],
    cache_file: Optional[str],
    cache_ttl: Optional[int],
    concurrency: Optional[int],
    registry: Optional[str],
    pre: Optional[bool],
    timeout: Optional[int],
    retries: Optional[int],
    as_json: bool,
    as_json_all: bool,
    error_level: Optional[int],
) -> None:
    """Check package.json for dependencies with newer versions.

    PACKAGE_FILE defaults to ``package.json`` in the current directory.
    Options left unset fall back to the configuration file, then to the
    built-in defaults.

    Exits:
        Depends on ``--error-level``; with the default (2) the exit code is
        1 when updates are available and were not written with ``-u``.
    """
    settings = _merge_settings(
        ctx.config,
        target=target,
        filter=filter_,
        reject=reject,
        dep=list(dep) or None,
        cache_file=cache_file,
        cache_ttl=cache_ttl,
        concurrency=concurrency,
        registry=registry,
        pre=pre,
        timeout=timeout,
        retries=retries,
        error_level=error_level,
    )
    logger.debug("Effective settings: %s", settings.to_log_dict())

    path = package_file or find_package_json()
    manifest = read_package_json(path)
    packages = extract_packages(manifest, parse_dep_types(settings.dep))

    try:
        packages = apply_filters(packages, settings.filter, settings.reject)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc

    machine_output = as_json or as_json_all

    if not packages:
        if not machine_output:
            print_warning(f"No dependencies to check in {path}")
        else:
            click.echo(json.dumps({} if as_json else [], indent=2))
        sys.exit(_exit_code(settings.error_level, has_updates=False, upgraded=False))

    logger.info("Checking %d package(s) from %s", len(packages), path)

    report = asyncio.run(resolve(packages, settings.to_resolution_options()))

    upgraded = False
    if upgrade and report.has_updates():
        write_updates(path, report.updates, backup=backup)
        upgraded = True

    if as_json:
        click.echo(json.dumps(_updates_as_mapping(report.updates), indent=2))
    elif as_json_all:
        click.echo(json.dumps([u.to_json() for u in report.updates], indent=2))
    else:
        _display_report(report)
        if upgraded:
            manager = detect_package_manager(path.resolve().parent)
            print_success(f"Updated {path}")
            get_raw_console().print(f"Run [bold]{manager} install[/bold] to install new versions")
        elif report.has_updates():
            get_raw_console().print(
                "\nRun [bold]rangekeeper check -u[/bold] to update your package.json"
            )

    if not report.cache_persisted and not machine_output:
        print_warning("Could not write the version cache; the next run will refetch")

    sys.exit(_exit_code(settings.error_level, report.has_updates(), upgraded))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _merge_settings(config: RangekeeperConfig, **overrides: Any) -> RangekeeperConfig:
    """Layer command-line values over *config*; ``None`` means "not given"."""
    given = {key: value for key, value in overrides.items() if value is not None}
    return dataclasses.replace(config, **given)


def _exit_code(error_level: int, has_updates: bool, upgraded: bool) -> int:
    """Map the outcome of a check to a process exit code.

    Example:
        >>> _exit_code(2, has_updates=True, upgraded=False)
        1
    """
    if error_level == 2 and has_updates and not upgraded:
        return 1
    return 0


def _updates_as_mapping(updates: List[UpdateRecord]) -> Dict[str, str]:
    return {update.name: update.new_range for update in updates}


def _display_report(report: ResolutionReport) -> None:
    """Render updates as a table followed by a one-line summary.

    Example output::

        react        ^17.0.2  →  ^18.3.1
        typescript   ~5.3.3   →  ~5.6.2

        2 updates found (1 fetched, 1 from cache) in 0.42s
    """
    console = get_raw_console()

    if report.updates:
        rows = [
            {
                "Package": update.name,
                "Current": update.current_range,
                "": "→",
                "New": colorize_update_type(update.new_range, update.update_classification),
            }
            for update in report.updates
        ]
        print_table(
            rows,
            headers=["Package", "Current", "", "New"],
            show_header=False,
            column_styles={"Package": {"style": "bold"}},
        )
        console.print("")
    else:
        print_success("All dependencies match the latest package versions", prefix=":)")

    count = len(report.updates)
    if count:
        headline = f"{count} update{'' if count == 1 else 's'} found"
    else:
        headline = f"Checked {report.packages_checked} packages"

    console.print(
        f"[dim]{headline}[/dim] "
        f"([green]{report.cache_misses} fetched[/green], "
        f"[cyan]{report.cache_hits} from cache[/cyan]) "
        f"[dim]in[/dim] [bold]{report.total_duration:.2f}s[/bold]"
    )
