"""
Version range helpers for rangekeeper.

Pure functions that turn an npm version range plus the list of versions
published on the registry into an update decision: which version to move
to, how big the jump is, and how to spell the new range. Versions are
:class:`semantic_version.Version` objects and range satisfaction uses
:class:`semantic_version.NpmSpec`, which follows npm's range grammar.

Typical usage::

    >>> target = resolve_target_version("^1.0.0", ["1.0.0", "1.4.0", "2.0.0"], "minor")
    >>> str(target)
    '1.4.0'
    >>> construct_new_range("^1.0.0", target)
    '^1.4.0'
    >>> classify_update(parse_base_version("^1.0.0"), target)
    'minor'
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

import semantic_version
from semantic_version import Version

# Longest operators first so ">=" is never mistaken for ">".
RANGE_PREFIXES = (">=", "<=", "^", "~", ">", "<", "=")

_PARTIAL_VERSION_RE = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?([-+].*)?$")

# npm allows whitespace between a comparator and its version, and a "v" tag.
_COMPARATOR_SPACE_RE = re.compile(r"(>=|<=|>|<|=|\^|~)\s+")
_V_TAG_RE = re.compile(r"(^|[\s=<>^~])v(?=\d)")


def extract_prefix(range_str: str) -> str:
    """Return the leading operator of a range, or ``""``.

    Lexical only: hyphen ranges, ``||`` ranges and bare versions have no
    prefix.

    Examples:
        >>> extract_prefix("^1.2.3")
        '^'
        >>> extract_prefix(">=1.0.0")
        '>='
        >>> extract_prefix("1.0.0 - 2.0.0")
        ''
    """
    trimmed = range_str.strip()
    for prefix in RANGE_PREFIXES:
        if trimmed.startswith(prefix):
            return prefix
    return ""


def normalize_range(range_str: str) -> str:
    """Tighten a range into the form :class:`semantic_version.NpmSpec` accepts.

    Examples:
        >>> normalize_range(">= 1.0.0 < 2.0.0")
        '>=1.0.0 <2.0.0'
        >>> normalize_range("^v1.2.3")
        '^1.2.3'
    """
    tightened = _COMPARATOR_SPACE_RE.sub(r"\1", range_str.strip())
    return _V_TAG_RE.sub(r"\1", tightened)


def parse_version(value: str) -> Optional[Version]:
    """Parse a strict ``major.minor.patch[-pre][+build]`` string.

    Returns:
        The parsed version, or ``None`` if *value* is not valid semver.
    """
    try:
        return Version(value.strip())
    except ValueError:
        return None


def parse_base_version(range_str: str) -> Optional[Version]:
    """Return the concrete version embedded in a range string.

    Operator prefixes and a leading ``v`` are stripped, x-range wildcards
    (``.x``, ``.*``) become ``.0`` and missing minor/patch components are
    filled with zero.

    Examples:
        >>> str(parse_base_version("~0.5.1"))
        '0.5.1'
        >>> str(parse_base_version("1.x"))
        '1.0.0'
        >>> str(parse_base_version("=v1.2.3"))
        '1.2.3'
        >>> parse_base_version("latest") is None
        True
    """
    version_part = range_str.strip()
    for prefix in RANGE_PREFIXES:
        while version_part.startswith(prefix):
            version_part = version_part[len(prefix):]
    version_part = version_part.strip()
    if version_part[:1] == "v":
        version_part = version_part[1:]

    normalized = version_part.replace(".x", ".0").replace(".*", ".0")

    match = _PARTIAL_VERSION_RE.match(normalized)
    if match is None:
        return None

    major, minor, patch, suffix = match.groups()
    return parse_version(f"{major}.{minor or 0}.{patch or 0}{suffix or ''}")


def classify_update(current: Version, candidate: Version) -> str:
    """Classify the jump from *current* to *candidate*.

    The first of major, minor and patch where *candidate* is ahead decides
    the result. Equal numeric components with a prerelease on either side
    give ``"prerelease"``; anything else is ``"none"``.

    Examples:
        >>> classify_update(Version("1.0.0"), Version("2.0.0"))
        'major'
        >>> classify_update(Version("1.0.0"), Version("1.0.1"))
        'patch'
        >>> classify_update(Version("1.0.0-rc.1"), Version("1.0.0"))
        'prerelease'
    """
    if candidate.major > current.major:
        return "major"
    if candidate.minor > current.minor:
        return "minor"
    if candidate.patch > current.patch:
        return "patch"
    if candidate.prerelease or current.prerelease:
        return "prerelease"
    return "none"


def construct_new_range(original_range: str, candidate: Version) -> str:
    """Spell *candidate* with the operator of *original_range*.

    Build metadata is dropped.

    Examples:
        >>> construct_new_range("^1.0.0", Version("2.0.0"))
        '^2.0.0'
        >>> construct_new_range("1.0.0", Version("2.0.0-beta.1"))
        '2.0.0-beta.1'
    """
    prefix = extract_prefix(original_range)
    version_str = f"{candidate.major}.{candidate.minor}.{candidate.patch}"
    if candidate.prerelease:
        version_str = f"{version_str}-{'.'.join(candidate.prerelease)}"
    return f"{prefix}{version_str}"


def resolve_target_version(
    current_range: str,
    available_versions: Iterable[str],
    target_policy: str,
    include_prerelease: bool = False,
) -> Optional[Version]:
    """Pick the version *current_range* should move to.

    Only versions strictly greater than the range's base version qualify.

    Args:
        current_range: Declared range, e.g. ``"^1.2.0"``.
        available_versions: Raw version strings published on the registry.
            Unparseable entries are ignored.
        target_policy: ``latest`` (highest overall), ``minor`` (highest
            within the current major), ``patch`` (highest within the
            current major.minor) or ``semver`` (highest satisfying the range
            itself). Any other value yields ``None``.
        include_prerelease: Consider versions with prerelease identifiers.

    Returns:
        The selected version, or ``None`` when the range cannot be parsed
        or nothing qualifies.
    """
    current = parse_base_version(current_range)
    if current is None:
        return None

    candidates = _sorted_candidates(available_versions, include_prerelease)

    if target_policy == "latest":
        if candidates and candidates[-1] > current:
            return candidates[-1]
        return None

    if target_policy == "minor":
        return _highest(
            candidates,
            lambda v: v.major == current.major and v > current,
        )

    if target_policy == "patch":
        return _highest(
            candidates,
            lambda v: (
                v.major == current.major
                and v.minor == current.minor
                and v > current
            ),
        )

    if target_policy == "semver":
        try:
            spec = semantic_version.NpmSpec(normalize_range(current_range))
        except ValueError:
            return None
        return _highest(candidates, lambda v: spec.match(v) and v > current)

    return None


def _sorted_candidates(
    available_versions: Iterable[str],
    include_prerelease: bool,
) -> List[Version]:
    """Parse, filter and sort registry versions ascending by precedence."""
    parsed: List[Version] = []
    for raw in available_versions:
        version = parse_version(raw)
        if version is None:
            continue
        if version.prerelease and not include_prerelease:
            continue
        parsed.append(version)

    parsed.sort()
    return parsed


def _highest(candidates: List[Version], predicate) -> Optional[Version]:
    for version in reversed(candidates):
        if predicate(version):
            return version
    return None
