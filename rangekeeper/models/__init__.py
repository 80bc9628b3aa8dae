"""
Unified data model exports for rangekeeper.

Example:
    >>> from rangekeeper.models import PackageDeclaration, ResolutionOptions
"""

from __future__ import annotations

from rangekeeper.models.report import ResolutionReport
from rangekeeper.models.options import (
    ResolutionOptions,
    TargetPolicy,
    default_cache_path,
)
from rangekeeper.models.package import (
    PackageDeclaration,
    RegistryVersionInfo,
    UpdateRecord,
)

__all__ = [
    "PackageDeclaration",
    "RegistryVersionInfo",
    "UpdateRecord",
    "ResolutionOptions",
    "ResolutionReport",
    "TargetPolicy",
    "default_cache_path",
]
