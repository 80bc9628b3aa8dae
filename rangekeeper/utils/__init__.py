"""
Utility helpers for rangekeeper.

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem safety helpers
- Async HTTP client and retry policy
- Version range helpers

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

from rangekeeper.utils.filesystem import (
    atomic_write,
    remove_file,
    safe_read_file,
    safe_write_file,
)
from rangekeeper.utils.logger import (
    disable_logging,
    get_logger,
    is_logging_configured,
    setup_logging,
    verbosity_to_level,
)
from rangekeeper.utils.console import (
    colorize_update_type,
    get_raw_console,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)
from rangekeeper.utils.http import HTTPClient, RetryPolicy
from rangekeeper.utils.version_utils import (
    classify_update,
    construct_new_range,
    extract_prefix,
    normalize_range,
    parse_base_version,
    parse_version,
    resolve_target_version,
)

__all__ = [
    # Console
    "print_error",
    "print_table",
    "print_success",
    "print_warning",
    "get_raw_console",
    "reconfigure_console",
    "colorize_update_type",
    # Logging
    "get_logger",
    "setup_logging",
    "disable_logging",
    "is_logging_configured",
    "verbosity_to_level",
    # Filesystem
    "atomic_write",
    "remove_file",
    "safe_read_file",
    "safe_write_file",
    # HTTP
    "HTTPClient",
    "RetryPolicy",
    # Versions
    "extract_prefix",
    "parse_version",
    "parse_base_version",
    "normalize_range",
    "classify_update",
    "construct_new_range",
    "resolve_target_version",
]
