"""
rangekeeper — find newer versions of npm dependencies, fast.

rangekeeper checks the dependency ranges of a ``package.json`` against an
npm-compatible registry and proposes updated ranges according to a target
policy (``latest``, ``minor``, ``patch`` or ``semver``). Registry answers
are cached on disk with a TTL so repeated runs make few network calls.

Library usage::

    import asyncio
    from rangekeeper import PackageDeclaration, ResolutionOptions, resolve

    report = asyncio.run(
        resolve(
            [PackageDeclaration("lodash", "^4.17.0", "prod")],
            ResolutionOptions(target_policy="latest"),
        )
    )
"""

from __future__ import annotations

from rangekeeper.__version__ import __version__
from rangekeeper.core.resolver import clear_cache, resolve, resolve_sync
from rangekeeper.models import (
    PackageDeclaration,
    ResolutionOptions,
    ResolutionReport,
    TargetPolicy,
    UpdateRecord,
)

__author__ = "rangekeeper Contributors"
__license__ = "Apache-2.0"
__description__ = "Check npm dependency ranges for newer versions."

__all__ = [
    "__version__",
    "resolve",
    "resolve_sync",
    "clear_cache",
    "PackageDeclaration",
    "ResolutionOptions",
    "ResolutionReport",
    "TargetPolicy",
    "UpdateRecord",
]
