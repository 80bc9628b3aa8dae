"""Reading and rewriting ``package.json`` manifests.

Only the four dependency tables are touched; everything else in the
manifest is written back as it was read. Ranges that do not point at the
registry (``file:``, git and URL specs, ``user/repo`` shorthands) are
never checked.
"""

from __future__ import annotations

import re
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from rangekeeper.exceptions import FileOperationError, ManifestError
from rangekeeper.models import PackageDeclaration, UpdateRecord
from rangekeeper.utils.filesystem import safe_read_file, safe_write_file
from rangekeeper.utils.logger import get_logger
from rangekeeper.constants import (
    PACKAGE_JSON,
    DEP_TYPE_SECTIONS,
    NON_REGISTRY_PREFIXES,
)

logger = get_logger("manifest")

PathLike = Union[str, Path]

_INDENT_RE = re.compile(r'^([ \t]+)"', re.MULTILINE)


def find_package_json(directory: Optional[PathLike] = None) -> Path:
    """Return ``package.json`` inside *directory* (default: cwd).

    Raises:
        ManifestError: No manifest exists there.
    """
    search_dir = Path(directory) if directory is not None else Path.cwd()
    path = search_dir / PACKAGE_JSON
    if not path.is_file():
        raise ManifestError(f"No {PACKAGE_JSON} found in {search_dir}", file_path=str(path))
    return path


def read_package_json(path: PathLike) -> Dict[str, Any]:
    """Load a manifest as a dictionary.

    Raises:
        ManifestError: The file cannot be read or is not a JSON object.
    """
    try:
        raw = safe_read_file(path)
    except FileOperationError as exc:
        raise ManifestError(f"Cannot read manifest: {exc.message}", file_path=str(path)) from exc

    try:
        manifest = json.loads(raw)
    except ValueError as exc:
        raise ManifestError(f"Invalid JSON in manifest: {exc}", file_path=str(path)) from exc

    if not isinstance(manifest, dict):
        raise ManifestError("Manifest must be a JSON object", file_path=str(path))
    return manifest


def parse_dep_types(values: Optional[Iterable[str]]) -> List[str]:
    """Normalize ``--dep`` values.

    Values may be repeated or comma separated; unknown names are ignored.
    An empty or fully invalid selection means every dependency type.

    Example:
        >>> parse_dep_types(["prod,dev", "bogus"])
        ['prod', 'dev']
    """
    selected: List[str] = []
    for value in values or ():
        for part in value.split(","):
            part = part.strip()
            if part in DEP_TYPE_SECTIONS and part not in selected:
                selected.append(part)
    return selected or list(DEP_TYPE_SECTIONS)


def is_registry_range(version_range: str) -> bool:
    """Return ``False`` for ranges that resolve outside the registry."""
    if version_range.startswith(tuple(NON_REGISTRY_PREFIXES)):
        return False
    return "/" not in version_range


def extract_packages(
    manifest: Dict[str, Any],
    dep_types: Sequence[str],
) -> List[PackageDeclaration]:
    """List the registry dependencies of *manifest* for *dep_types*.

    Declarations come out grouped by dependency type in the order of
    *dep_types*, and in manifest order within each group.
    """
    packages: List[PackageDeclaration] = []

    for dep_type in dep_types:
        section = manifest.get(DEP_TYPE_SECTIONS[dep_type])
        if not isinstance(section, dict):
            continue

        for name, version_range in section.items():
            if not isinstance(version_range, str):
                logger.debug("Ignoring %s: range is not a string", name)
                continue
            if not is_registry_range(version_range):
                logger.debug("Ignoring %s: %s is not a registry range", name, version_range)
                continue
            packages.append(PackageDeclaration(name, version_range, dep_type))

    return packages


def detect_indent(raw: str) -> str:
    """Return the indentation used by *raw* JSON text (two spaces if none)."""
    match = _INDENT_RE.search(raw)
    return match.group(1) if match else "  "


def write_updates(
    path: PathLike,
    updates: Sequence[UpdateRecord],
    *,
    backup: bool = False,
) -> int:
    """Rewrite *path* with the new ranges from *updates*.

    Indentation and the presence of a trailing newline are preserved; the
    file is replaced atomically.

    Returns:
        Number of dependency entries changed.
    """
    try:
        raw = safe_read_file(path)
        manifest = json.loads(raw)
    except (FileOperationError, ValueError) as exc:
        raise ManifestError(f"Cannot update manifest: {exc}", file_path=str(path)) from exc

    changed = 0
    for update in updates:
        section_name = DEP_TYPE_SECTIONS.get(update.dep_type)
        section = manifest.get(section_name) if section_name else None
        if isinstance(section, dict) and update.name in section:
            section[update.name] = update.new_range
            changed += 1

    output = json.dumps(manifest, indent=detect_indent(raw), ensure_ascii=False)
    if raw.endswith("\n"):
        output += "\n"

    try:
        safe_write_file(path, output, create_backup=backup)
    except FileOperationError as exc:
        raise ManifestError(f"Cannot write manifest: {exc.message}", file_path=str(path)) from exc

    logger.info("Updated %d dependency range(s) in %s", changed, path)
    return changed


#: Lock files that identify the package manager, checked in order.
_LOCKFILES: Sequence[tuple] = (
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
)


def detect_package_manager(directory: PathLike) -> str:
    """Guess the package manager of a project from its lock file.

    Falls back to ``npm`` when no known lock file is present.
    """
    root = Path(directory)
    for lockfile, manager in _LOCKFILES:
        if (root / lockfile).exists():
            return manager
    return "npm"
