"""
Centralized constants for rangekeeper.

This module defines immutable configuration values used across rangekeeper,
including registry endpoints, network settings, cache locations, manifest
layout and logging formats. All values are intended to be treated as
read-only.
"""

from typing import Final, Mapping, Sequence

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: Tool name, used for the default cache file name and config sections.
TOOL_NAME: Final[str] = "rangekeeper"

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "rangekeeper/{version}"

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

#: Default npm-compatible registry.
DEFAULT_REGISTRY_URL: Final[str] = "https://registry.npmjs.org"

#: Accept header selecting the abbreviated ("corgi") metadata document.
ABBREVIATED_METADATA_ACCEPT: Final[str] = "application/vnd.npm.install-v1+json"

# ---------------------------------------------------------------------------
# Resolution defaults
# ---------------------------------------------------------------------------

#: Default target policy.
DEFAULT_TARGET: Final[str] = "latest"

#: Supported target policies.
TARGET_POLICIES: Final[Sequence[str]] = ("latest", "minor", "patch", "semver")

#: Maximum number of in-flight registry requests.
DEFAULT_CONCURRENCY: Final[int] = 24

#: Per-attempt network timeout in seconds.
DEFAULT_TIMEOUT: Final[float] = 30.0

#: Maximum number of retries after the first failed attempt.
DEFAULT_MAX_RETRIES: Final[int] = 3

#: Delay before the first retry, in seconds. Doubles on every further retry.
DEFAULT_RETRY_BASE_DELAY: Final[float] = 0.1

#: Growth factor applied to the retry delay.
DEFAULT_RETRY_BACKOFF: Final[float] = 2.0

#: Cache entry time-to-live in seconds.
DEFAULT_CACHE_TTL: Final[int] = 600

#: Whether prerelease versions are considered by default.
DEFAULT_INCLUDE_PRERELEASE: Final[bool] = False

#: Default ``--error-level`` (exit 1 when updates are found).
DEFAULT_ERROR_LEVEL: Final[int] = 2

# ---------------------------------------------------------------------------
# Manifest layout
# ---------------------------------------------------------------------------

#: Default manifest file name.
PACKAGE_JSON: Final[str] = "package.json"

#: Short dependency type → package.json section.
DEP_TYPE_SECTIONS: Final[Mapping[str, str]] = {
    "prod": "dependencies",
    "dev": "devDependencies",
    "peer": "peerDependencies",
    "optional": "optionalDependencies",
}

#: Range prefixes that point outside the registry and are never checked.
NON_REGISTRY_PREFIXES: Final[Sequence[str]] = (
    "file:",
    "git:",
    "git+",
    "github:",
    "http:",
    "https:",
)

# ---------------------------------------------------------------------------
# Configuration files
# ---------------------------------------------------------------------------

#: Dedicated TOML config file, settings under ``[rangekeeper]``.
CONFIG_FILE_TOML: Final[str] = "rangekeeper.toml"

#: npm-check-updates style config files, in lookup order.
CONFIG_FILES_NCURC: Final[Sequence[str]] = (".ncurc.json", ".ncurc.yml", ".ncurc.yaml")

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading manifests.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
