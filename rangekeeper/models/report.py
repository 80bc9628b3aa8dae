"""
Resolution report model for rangekeeper.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from rangekeeper.models.package import UpdateRecord


@dataclass
class ResolutionReport:
    """Outcome of one resolution run.

    Attributes:
        updates: Update records in input order; packages without an
            eligible newer version (or whose fetch failed) are absent.
        cache_hits: Packages answered from the cache.
        cache_misses: Packages that needed a registry fetch, including
            fetches that ultimately failed.
        fetch_duration: Seconds spent fetching cache misses.
        total_duration: Seconds spent in the whole pipeline.
        cache_persisted: ``False`` when writing the cache file failed.
    """

    updates: List[UpdateRecord] = field(default_factory=list)
    cache_hits: int = 0
    cache_misses: int = 0
    fetch_duration: float = 0.0
    total_duration: float = 0.0
    cache_persisted: bool = True

    @property
    def packages_checked(self) -> int:
        """Number of packages that went through the pipeline."""
        return self.cache_hits + self.cache_misses

    @property
    def hit_rate(self) -> float:
        """Fraction of packages served from the cache (0.0 when empty)."""
        checked = self.packages_checked
        return self.cache_hits / checked if checked else 0.0

    def has_updates(self) -> bool:
        return bool(self.updates)

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable dictionary."""
        return {
            "updates": [record.to_json() for record in self.updates],
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "fetch_duration": self.fetch_duration,
            "total_duration": self.total_duration,
            "cache_persisted": self.cache_persisted,
        }
