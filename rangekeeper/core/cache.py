"""On-disk TTL cache of registry version lists.

The cache maps a package name to the versions the registry reported for it
and the unix time of that fetch. It lives in a single JSON file that
survives between runs::

    {
      "entries": {
        "lodash": {"versions": ["4.17.20", "4.17.21"], "timestamp": 1760745600}
      }
    }

Entries older than the TTL are ignored by :meth:`VersionCache.get` and
physically removed only by :meth:`VersionCache.prune`. A missing, unreadable
or corrupt file never raises; the cache simply starts empty.

Every read and write of the in-memory store happens under one lock, and no
method awaits, so the lock is never held across I/O waits of the fetcher.

Typical usage::

    cache = VersionCache.open("~/.rangekeeper-cache.json", ttl=600)
    info = cache.get("lodash")
    if info is None:
        cache.set("lodash", ["4.17.21"])
    cache.prune()
    cache.persist()
"""

from __future__ import annotations

import json
import time
import threading
from pathlib import Path
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from rangekeeper.exceptions import CacheError, FileOperationError
from rangekeeper.models.package import RegistryVersionInfo
from rangekeeper.utils.filesystem import atomic_write, remove_file
from rangekeeper.utils.logger import get_logger

logger = get_logger("cache")

__all__ = ["CacheEntry", "VersionCache"]


@dataclass
class CacheEntry:
    """Versions of one package and when they were fetched (unix seconds)."""

    versions: List[str]
    fetched_at: int

    def age(self, now: int) -> int:
        return now - self.fetched_at


class VersionCache:
    """Durable ``name → versions`` store with expiry.

    Args:
        file_path: JSON file backing the cache. ``~`` is expanded.
        ttl: Maximum entry age in seconds. ``0`` makes every entry stale
            as soon as the clock moves to the next second.
        clock: Returns the current unix time; injectable for tests.
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        ttl: int,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.file_path = Path(file_path).expanduser()
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = self._load()

    @classmethod
    def open(
        cls,
        file_path: Union[str, Path],
        ttl: int,
        *,
        clock: Callable[[], float] = time.time,
    ) -> "VersionCache":
        """Load the cache stored at *file_path* (empty if absent or corrupt)."""
        return cls(file_path, ttl, clock=clock)

    # ------------------------------------------------------------------
    # Lookup / update
    # ------------------------------------------------------------------

    def get(self, name: str) -> Optional[RegistryVersionInfo]:
        """Return the cached versions for *name* unless missing or expired."""
        now = self._now()
        with self._lock:
            entry = self._entries.get(name)
            if entry is None or entry.age(now) > self.ttl:
                return None
            return RegistryVersionInfo(package_name=name, versions=list(entry.versions))

    def set(self, name: str, versions: List[str]) -> None:
        """Insert or overwrite the entry for *name*, stamped with now."""
        entry = CacheEntry(versions=list(versions), fetched_at=self._now())
        with self._lock:
            self._entries[name] = entry

    def prune(self) -> int:
        """Drop every expired entry from memory.

        Returns:
            Number of entries removed.
        """
        now = self._now()
        with self._lock:
            expired = [
                name
                for name, entry in self._entries.items()
                if entry.age(now) > self.ttl
            ]
            for name in expired:
                del self._entries[name]

        if expired:
            logger.debug("Pruned %d expired cache entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        """Forget every entry and delete the backing file if possible."""
        with self._lock:
            self._entries.clear()
        if remove_file(self.file_path):
            logger.debug("Deleted cache file %s", self.file_path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def persist(self, *, strict: bool = False) -> bool:
        """Write the whole store to :attr:`file_path` atomically.

        Args:
            strict: Raise :class:`CacheError` instead of returning ``False``.

        Returns:
            ``True`` on success, ``False`` if the file could not be written.
        """
        with self._lock:
            document = {
                "entries": {
                    name: {"versions": entry.versions, "timestamp": entry.fetched_at}
                    for name, entry in self._entries.items()
                }
            }

        try:
            payload = json.dumps(document, indent=2)
            atomic_write(self.file_path, payload)
        except (TypeError, ValueError, FileOperationError) as exc:
            if strict:
                raise CacheError(
                    "Failed to persist version cache",
                    file_path=str(self.file_path),
                    operation="persist",
                    original_error=exc,
                ) from exc
            logger.warning("Could not write cache file %s: %s", self.file_path, exc)
            return False

        logger.debug(
            "Persisted %d cache entries to %s",
            len(document["entries"]),
            self.file_path,
        )
        return True

    def _load(self) -> Dict[str, CacheEntry]:
        if not self.file_path.exists():
            return {}

        try:
            document = json.loads(self.file_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ValueError) as exc:
            logger.warning(
                "Ignoring unreadable cache file %s: %s", self.file_path, exc
            )
            return {}

        raw_entries = document.get("entries") if isinstance(document, dict) else None
        if not isinstance(raw_entries, dict):
            logger.warning("Ignoring cache file %s: no entries table", self.file_path)
            return {}

        entries: Dict[str, CacheEntry] = {}
        for name, raw in raw_entries.items():
            entry = _entry_from_json(raw)
            if entry is None:
                logger.debug("Skipping malformed cache entry for %s", name)
                continue
            entries[name] = entry

        logger.debug("Loaded %d cache entries from %s", len(entries), self.file_path)
        return entries

    def _now(self) -> int:
        return int(self._clock())


def _entry_from_json(raw: Any) -> Optional[CacheEntry]:
    if not isinstance(raw, dict):
        return None

    versions = raw.get("versions")
    timestamp = raw.get("timestamp")

    if not isinstance(versions, list) or not all(isinstance(v, str) for v in versions):
        return None
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        return None

    return CacheEntry(versions=versions, fetched_at=timestamp)
