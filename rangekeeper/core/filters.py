"""Package name filters for ``--filter`` and ``--reject``.

A pattern is one of:

* ``/regex/``, matched with :func:`re.search`;
* a glob containing ``*`` or ``?``, matched one ``/`` separated segment at a
  time so ``*`` never crosses a scope boundary (``**`` spans segments and
  ``{a,b}`` alternatives are expanded);
* a comma separated list of exact names.
"""

from __future__ import annotations

import re
import fnmatch
from typing import Callable, List, Optional, Sequence

from rangekeeper.models import PackageDeclaration

NameMatcher = Callable[[str], bool]

_BRACE_RE = re.compile(r"\{([^{}]*,[^{}]*)\}")


def parse_pattern(pattern: str) -> NameMatcher:
    """Compile *pattern* into a name predicate.

    Raises:
        ValueError: A ``/regex/`` pattern is not a valid regular expression.

    Example:
        >>> matcher = parse_pattern("@types/*")
        >>> matcher("@types/node"), matcher("lodash")
        (True, False)
    """
    if len(pattern) >= 2 and pattern.startswith("/") and pattern.endswith("/"):
        try:
            regex = re.compile(pattern[1:-1])
        except re.error as exc:
            raise ValueError(f"Invalid regular expression {pattern!r}: {exc}") from exc
        return lambda name: regex.search(name) is not None

    if "*" in pattern or "?" in pattern:
        return _glob_matcher(pattern)

    names = {part.strip() for part in pattern.split(",") if part.strip()}
    return lambda name: name in names


def apply_filters(
    packages: Sequence[PackageDeclaration],
    filter_pattern: Optional[str] = None,
    reject_pattern: Optional[str] = None,
) -> List[PackageDeclaration]:
    """Keep packages matching *filter_pattern* and not *reject_pattern*."""
    result = list(packages)

    if filter_pattern:
        keep = parse_pattern(filter_pattern)
        result = [p for p in result if keep(p.name)]

    if reject_pattern:
        drop = parse_pattern(reject_pattern)
        result = [p for p in result if not drop(p.name)]

    return result


def expand_braces(pattern: str) -> List[str]:
    """Expand ``{a,b}`` alternatives into separate patterns.

    Example:
        >>> expand_braces("@{babel,types}/*")
        ['@babel/*', '@types/*']
    """
    match = _BRACE_RE.search(pattern)
    if match is None:
        return [pattern]

    head, tail = pattern[: match.start()], pattern[match.end():]
    expanded: List[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(head + option + tail))
    return expanded


def _glob_matcher(pattern: str) -> NameMatcher:
    alternatives = [alt.split("/") for alt in expand_braces(pattern)]

    def matcher(name: str) -> bool:
        parts = name.split("/")
        return any(_match_segments(parts, segments) for segments in alternatives)

    return matcher


def _match_segments(parts: List[str], segments: List[str]) -> bool:
    if not segments:
        return not parts

    head, rest = segments[0], segments[1:]
    if head == "**":
        return any(_match_segments(parts[i:], rest) for i in range(len(parts) + 1))

    return (
        bool(parts)
        and fnmatch.fnmatchcase(parts[0], head)
        and _match_segments(parts[1:], rest)
    )
