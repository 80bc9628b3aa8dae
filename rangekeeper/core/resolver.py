"""Resolution pipeline for rangekeeper.

:func:`resolve` turns a batch of declared dependencies into a
:class:`ResolutionReport` in a single pass:

1. Look every package up in the :class:`VersionCache`, remembering its
   position in the input.
2. Fetch all cache misses concurrently with :class:`RegistryFetcher`.
3. Store each successful fetch in the cache; failed fetches leave the cache
   untouched.
4. Prune and persist the cache. A persist failure is logged and reported
   through ``ResolutionReport.cache_persisted``, never raised.
5. Merge cached and fetched version lists back into input order; packages
   whose fetch failed are dropped.
6. Apply the target policy to each package and keep those with an
   eligible newer version.

Output order always follows input order, whatever order fetches complete in.

Typical usage::

    report = await resolve(
        [PackageDeclaration("lodash", "^4.17.0", "prod")],
        ResolutionOptions(target_policy="minor"),
    )
    for update in report.updates:
        print(update.name, update.current_range, "→", update.new_range)
"""

from __future__ import annotations

import time
import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from rangekeeper.core.cache import VersionCache
from rangekeeper.core.registry import RegistryFetcher
from rangekeeper.exceptions import RegistryError
from rangekeeper.models import (
    PackageDeclaration,
    ResolutionOptions,
    ResolutionReport,
    UpdateRecord,
    default_cache_path,
)
from rangekeeper.utils.logger import get_logger
from rangekeeper.utils.version_utils import (
    classify_update,
    construct_new_range,
    parse_base_version,
    resolve_target_version,
)

logger = get_logger("resolver")

__all__ = ["resolve", "resolve_sync", "build_update_record", "clear_cache"]


async def resolve(
    packages: Sequence[PackageDeclaration],
    options: Optional[ResolutionOptions] = None,
    *,
    fetcher: Optional[RegistryFetcher] = None,
    cache: Optional[VersionCache] = None,
) -> ResolutionReport:
    """Determine which *packages* have newer versions available.

    Args:
        packages: Declared dependencies, in the order results should keep.
        options: Resolution settings; defaults apply when omitted.
        fetcher: Fetcher to use instead of one built from *options*. An
            injected fetcher is not closed by this function.
        cache: Cache to use instead of the file named by *options*.

    Returns:
        The report of updates plus cache and timing statistics.
    """
    options = options or ResolutionOptions()
    total_start = time.perf_counter()

    logger.debug("Resolving %d package(s) with %s", len(packages), options.to_log_dict())

    if cache is None:
        cache = VersionCache.open(options.cache_file_path, options.cache_ttl_seconds)

    # ── Step 1: partition by cache lookup ─────────────────────────────
    versions_by_index: Dict[int, List[str]] = {}
    misses: List[Tuple[int, str]] = []

    for index, package in enumerate(packages):
        cached = cache.get(package.name)
        if cached is None:
            misses.append((index, package.name))
        else:
            versions_by_index[index] = cached.versions

    cache_hits = len(versions_by_index)
    cache_misses = len(misses)
    logger.info("%d package(s) from cache, %d to fetch", cache_hits, cache_misses)

    # ── Step 2: fetch misses ──────────────────────────────────────────
    fetch_start = time.perf_counter()
    fetched: Dict[str, Union[List[str], RegistryError]] = {}
    if misses:
        fetched = await _fetch_missing(
            [name for _, name in misses],
            options,
            fetcher,
        )
    fetch_duration = time.perf_counter() - fetch_start

    # ── Step 3: store successes, drop failures ────────────────────────
    for name, outcome in fetched.items():
        if isinstance(outcome, RegistryError):
            logger.warning("Skipping %s: %s", name, outcome.message)
        else:
            cache.set(name, outcome)

    for index, name in misses:
        outcome = fetched[name]
        if not isinstance(outcome, RegistryError):
            versions_by_index[index] = outcome

    # ── Step 4: prune and persist ─────────────────────────────────────
    cache.prune()
    cache_persisted = cache.persist()

    # ── Steps 5-6: merge in input order and apply the target policy ───
    updates: List[UpdateRecord] = []
    for index in sorted(versions_by_index):
        record = build_update_record(
            packages[index],
            versions_by_index[index],
            str(options.target_policy),
            options.include_prerelease,
        )
        if record is not None:
            updates.append(record)

    total_duration = time.perf_counter() - total_start
    logger.info(
        "Found %d update(s) in %.2fs (fetch %.2fs)",
        len(updates),
        total_duration,
        fetch_duration,
    )

    return ResolutionReport(
        updates=updates,
        cache_hits=cache_hits,
        cache_misses=cache_misses,
        fetch_duration=fetch_duration,
        total_duration=total_duration,
        cache_persisted=cache_persisted,
    )


def resolve_sync(
    packages: Sequence[PackageDeclaration],
    options: Optional[ResolutionOptions] = None,
) -> ResolutionReport:
    """Blocking wrapper around :func:`resolve` for synchronous callers."""
    return asyncio.run(resolve(packages, options))


def build_update_record(
    package: PackageDeclaration,
    versions: Sequence[str],
    target_policy: str,
    include_prerelease: bool = False,
) -> Optional[UpdateRecord]:
    """Apply *target_policy* to one package's available *versions*.

    Returns:
        The update record, or ``None`` when the declared range cannot be
        parsed or no eligible newer version exists.
    """
    target = resolve_target_version(
        package.version_range,
        versions,
        target_policy,
        include_prerelease,
    )
    if target is None:
        return None

    current = parse_base_version(package.version_range)

    return UpdateRecord(
        name=package.name,
        current_range=package.version_range,
        current_base_version=str(current) if current is not None else "",
        latest_version=str(target),
        new_range=construct_new_range(package.version_range, target),
        update_classification=(
            classify_update(current, target) if current is not None else "unknown"
        ),
        dep_type=package.dep_type,
    )


def clear_cache(file_path: Optional[Union[str, Path]] = None) -> None:
    """Delete the version cache file.

    Args:
        file_path: Cache file to remove; defaults to
            ``~/.rangekeeper-cache.json``.
    """
    path = Path(file_path) if file_path else default_cache_path()
    VersionCache.open(path, ttl=0).clear()
    logger.info("Cleared cache %s", path)


async def _fetch_missing(
    names: List[str],
    options: ResolutionOptions,
    fetcher: Optional[RegistryFetcher],
) -> Dict[str, Union[List[str], RegistryError]]:
    """Fetch each distinct name once; map name → versions or error."""
    unique_names = list(dict.fromkeys(names))

    if fetcher is not None:
        results = await fetcher.fetch_many(unique_names)
    else:
        async with RegistryFetcher(
            options.registry_url,
            concurrency=options.concurrency,
            timeout=options.timeout,
            retries=options.retries,
        ) as owned:
            results = await owned.fetch_many(unique_names)

    outcomes: Dict[str, Union[List[str], RegistryError]] = {}
    for name, result in zip(unique_names, results):
        if isinstance(result, RegistryError):
            outcomes[name] = result
        else:
            outcomes[name] = result.versions
    return outcomes
