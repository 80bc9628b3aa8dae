"""
Resolution options for rangekeeper.

:class:`ResolutionOptions` is the fully populated settings value handed to
the resolver. Every field has a default; callers (the CLI, or code using
rangekeeper as a library) override only what they need.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict

from rangekeeper.constants import (
    TOOL_NAME,
    DEFAULT_TARGET,
    DEFAULT_TIMEOUT,
    DEFAULT_CACHE_TTL,
    DEFAULT_CONCURRENCY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGISTRY_URL,
    DEFAULT_INCLUDE_PRERELEASE,
)


class TargetPolicy(str, Enum):
    """How far an update may reach."""

    LATEST = "latest"
    MINOR = "minor"
    PATCH = "patch"
    SEMVER = "semver"

    def __str__(self) -> str:
        return self.value


def default_cache_path() -> Path:
    """Return the default cache location, ``~/.rangekeeper-cache.json``."""
    return Path.home() / f".{TOOL_NAME}-cache.json"


@dataclass(frozen=True)
class ResolutionOptions:
    """Settings for one resolution run.

    Attributes:
        registry_url: Base URL of an npm-compatible registry.
        target_policy: ``latest``, ``minor``, ``patch`` or ``semver``.
        concurrency: Maximum number of registry requests in flight.
        timeout: Per-attempt request timeout, in seconds.
        cache_file_path: Location of the version cache file.
        cache_ttl_seconds: Age after which cache entries are ignored.
        include_prerelease: Consider prerelease versions as targets.
        retries: Retries after the first failed attempt per package.
    """

    registry_url: str = DEFAULT_REGISTRY_URL
    target_policy: str = TargetPolicy(DEFAULT_TARGET)
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT
    cache_file_path: Path = field(default_factory=default_cache_path)
    cache_ttl_seconds: int = DEFAULT_CACHE_TTL
    include_prerelease: bool = DEFAULT_INCLUDE_PRERELEASE
    retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self) -> None:
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {self.concurrency}")
        if self.retries < 0:
            raise ValueError(f"retries must not be negative, got {self.retries}")
        if self.cache_ttl_seconds < 0:
            raise ValueError(
                f"cache_ttl_seconds must not be negative, got {self.cache_ttl_seconds}"
            )
        # Frozen: normalize through object.__setattr__.
        object.__setattr__(self, "cache_file_path", Path(self.cache_file_path))

    def to_log_dict(self) -> Dict[str, Any]:
        """Return the options as a flat dictionary for debug logging."""
        return {
            "registry_url": self.registry_url,
            "target_policy": str(self.target_policy),
            "concurrency": self.concurrency,
            "timeout": self.timeout,
            "cache_file_path": str(self.cache_file_path),
            "cache_ttl_seconds": self.cache_ttl_seconds,
            "include_prerelease": self.include_prerelease,
            "retries": self.retries,
        }
