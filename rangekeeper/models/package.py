"""
Package data models for rangekeeper.

Defines the declared dependency that goes into a resolution, the version
list a registry reports for it, and the update record that comes out.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class PackageDeclaration:
    """A dependency as declared in a manifest.

    Attributes:
        name: Registry package name, e.g. ``"lodash"`` or ``"@types/node"``.
        version_range: Declared npm range, e.g. ``"^4.17.0"``.
        dep_type: Opaque dependency kind (``"prod"``, ``"dev"`` ...),
            carried through to the update record unchanged.
    """

    name: str
    version_range: str
    dep_type: str = "prod"


@dataclass
class RegistryVersionInfo:
    """Versions known to the registry for one package at fetch time.

    Attributes:
        package_name: Package name as requested.
        versions: Raw version strings, in registry order.
    """

    package_name: str
    versions: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class UpdateRecord:
    """A proposed update for a single declared dependency.

    Attributes:
        name: Package name.
        current_range: The range as declared, e.g. ``"^1.2.0"``.
        current_base_version: Version embedded in the declared range.
        latest_version: Version selected by the target policy.
        new_range: Declared range rewritten to the selected version.
        update_classification: ``major``, ``minor``, ``patch``,
            ``prerelease`` or ``none``.
        dep_type: Copied from the declaration.
    """

    name: str
    current_range: str
    current_base_version: str
    latest_version: str
    new_range: str
    update_classification: str
    dep_type: str

    def to_json(self) -> Dict[str, Any]:
        """Return a JSON-serializable dictionary."""
        return asdict(self)
