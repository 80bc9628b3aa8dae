"""
Core functionality exports for rangekeeper.

    from rangekeeper.core import resolve, VersionCache, RegistryFetcher
"""

from __future__ import annotations

from rangekeeper.core.cache import CacheEntry, VersionCache
from rangekeeper.core.registry import FetchResult, RegistryFetcher
from rangekeeper.core.filters import apply_filters, parse_pattern
from rangekeeper.core.resolver import (
    build_update_record,
    clear_cache,
    resolve,
    resolve_sync,
)
from rangekeeper.core.manifest import (
    detect_package_manager,
    extract_packages,
    find_package_json,
    parse_dep_types,
    read_package_json,
    write_updates,
)

__all__ = [
    "CacheEntry",
    "VersionCache",
    "FetchResult",
    "RegistryFetcher",
    "resolve",
    "resolve_sync",
    "build_update_record",
    "clear_cache",
    "apply_filters",
    "parse_pattern",
    "detect_package_manager",
    "extract_packages",
    "find_package_json",
    "parse_dep_types",
    "read_package_json",
    "write_updates",
]
