"""Clear-cache command implementation for rangekeeper.

Deletes the registry version cache so the next ``check`` fetches every
package again.

Typical usage::

    $ rangekeeper clear-cache
    $ rangekeeper clear-cache --cache-file ./.cache/versions.json
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from rangekeeper.core import clear_cache as clear_version_cache
from rangekeeper.context import pass_context, RangekeeperContext
from rangekeeper.models import default_cache_path
from rangekeeper.utils import get_logger, print_success

logger = get_logger("commands.clear_cache")


@click.command("clear-cache")
@click.option(
    "--cache-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    envvar="RANGEKEEPER_CACHE_FILE",
    help="Path of the version cache file.",
)
@pass_context
def clear_cache(ctx: RangekeeperContext, cache_file: Optional[Path]) -> None:
    """Delete the registry version cache."""
    if cache_file is None:
        configured = ctx.config.cache_file
        cache_file = Path(configured).expanduser() if configured else default_cache_path()

    logger.debug("Clearing cache file %s", cache_file)
    existed = cache_file.exists()
    clear_version_cache(cache_file)

    if existed:
        print_success(f"Removed cache file {cache_file}")
    else:
        print_success(f"No cache file at {cache_file}")
