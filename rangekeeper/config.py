"""Configuration file loader for rangekeeper.

Handles discovery, loading, parsing, and validation of configuration files.
Supports these formats:

- ``rangekeeper.toml`` — settings under a ``[rangekeeper]`` table
- ``.ncurc.json`` / ``.ncurc.yml`` / ``.ncurc.yaml`` — npm-check-updates style
  object (camelCase keys)
- ``pyproject.toml`` — settings under a ``[tool.rangekeeper]`` table

Discovery order:

1. Explicit path from ``--config`` or ``RANGEKEEPER_CONFIG``
2. ``rangekeeper.toml`` in the current directory
3. ``.ncurc.json``, ``.ncurc.yml`` or ``.ncurc.yaml`` in the current directory
4. ``pyproject.toml`` with a ``[tool.rangekeeper]`` table

Configuration precedence: defaults < config file < environment < CLI args.

Example (``rangekeeper.toml``)::

    [rangekeeper]
    target = "minor"
    concurrency = 16
    cache_ttl = 3600
    reject = "@types/*"
"""

from __future__ import annotations

import json
import tomli as tomllib
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rangekeeper.exceptions import ConfigError
from rangekeeper.models import ResolutionOptions, TargetPolicy, default_cache_path
from rangekeeper.utils.logger import get_logger
from rangekeeper.constants import (
    TOOL_NAME,
    CONFIG_FILE_TOML,
    CONFIG_FILES_NCURC,
    TARGET_POLICIES,
    DEFAULT_TARGET,
    DEFAULT_TIMEOUT,
    DEFAULT_CACHE_TTL,
    DEFAULT_CONCURRENCY,
    DEFAULT_ERROR_LEVEL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGISTRY_URL,
    DEFAULT_INCLUDE_PRERELEASE,
    DEP_TYPE_SECTIONS,
)

logger = get_logger("config")

#: camelCase keys accepted in ``.ncurc`` files.
_NCURC_ALIASES: Dict[str, str] = {
    "cacheTtl": "cache_ttl",
    "cacheFile": "cache_file",
    "errorLevel": "error_level",
}


@dataclass
class RangekeeperConfig:
    """Parsed and validated rangekeeper configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        target: Target policy (``latest``, ``minor``, ``patch``, ``semver``).
        concurrency: Maximum concurrent registry requests.
        timeout: Per-request timeout in milliseconds.
        cache_ttl: Cache entry time-to-live in seconds.
        cache_file: Cache file location, or ``None`` for the default.
        registry: Registry base URL.
        pre: Include prerelease versions.
        retries: Retries per package after the first failure.
        dep: Dependency types to check.
        filter: Only check packages matching this pattern.
        reject: Skip packages matching this pattern.
        error_level: Exit code policy (0, 1 or 2).
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    target: str = DEFAULT_TARGET
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: int = int(DEFAULT_TIMEOUT * 1000)
    cache_ttl: int = DEFAULT_CACHE_TTL
    cache_file: Optional[str] = None
    registry: str = DEFAULT_REGISTRY_URL
    pre: bool = DEFAULT_INCLUDE_PRERELEASE
    retries: int = DEFAULT_MAX_RETRIES
    dep: List[str] = field(default_factory=lambda: list(DEP_TYPE_SECTIONS))
    filter: Optional[str] = None
    reject: Optional[str] = None
    error_level: int = DEFAULT_ERROR_LEVEL

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as a dictionary for debug logging."""
        return {
            "target": self.target,
            "concurrency": self.concurrency,
            "timeout": self.timeout,
            "cache_ttl": self.cache_ttl,
            "cache_file": self.cache_file,
            "registry": self.registry,
            "pre": self.pre,
            "retries": self.retries,
            "dep": list(self.dep),
            "filter": self.filter,
            "reject": self.reject,
            "error_level": self.error_level,
        }

    def to_resolution_options(self) -> ResolutionOptions:
        """Build the :class:`ResolutionOptions` these settings describe."""
        return ResolutionOptions(
            registry_url=self.registry,
            target_policy=TargetPolicy(self.target),
            concurrency=self.concurrency,
            timeout=self.timeout / 1000,
            cache_file_path=(
                Path(self.cache_file).expanduser()
                if self.cache_file
                else default_cache_path()
            ),
            cache_ttl_seconds=self.cache_ttl,
            include_prerelease=self.pre,
            retries=self.retries,
        )


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    for name in (CONFIG_FILE_TOML, *CONFIG_FILES_NCURC):
        candidate = cwd / name
        if candidate.is_file():
            logger.debug("Found %s: %s", name, candidate)
            return candidate

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_section(pyproject_toml):
        logger.debug("Found [tool.%s] in pyproject.toml: %s", TOOL_NAME, pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_section(path: Path) -> bool:
    """Return True if ``pyproject.toml`` has a ``[tool.rangekeeper]`` table.

    Parse errors count as "no section" so discovery can fall through.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return TOOL_NAME in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> RangekeeperConfig:
    """Load and validate rangekeeper configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`RangekeeperConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return RangekeeperConfig()

    logger.info("Loading configuration from %s", resolved)

    if resolved.suffix in (".json", ".yml", ".yaml"):
        raw = _read_json(resolved) if resolved.suffix == ".json" else _read_yaml(resolved)
        section = {_NCURC_ALIASES.get(key, key): value for key, value in raw.items()}
    elif resolved.name == "pyproject.toml":
        section = _read_toml(resolved).get("tool", {}).get(TOOL_NAME, {})
    else:
        section = _read_toml(resolved).get(TOOL_NAME, {})

    if not section:
        logger.debug("Config file found but no %s section, using defaults", TOOL_NAME)
        return RangekeeperConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _read_json(path: Path) -> Dict[str, Any]:
    """Read a JSON config file, which must hold an object.

    Raises:
        ConfigError: File cannot be read or is not a JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ConfigError(
            f"Invalid JSON in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc

    if not isinstance(data, dict):
        raise ConfigError(
            f"{path.name} must contain a JSON object",
            config_path=str(path),
        )
    return data


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML config file; an empty document counts as ``{}``.

    Raises:
        ConfigError: File cannot be read or is not a YAML mapping.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(
            f"Invalid YAML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc

    if not isinstance(data, dict):
        raise ConfigError(
            f"{path.name} must contain a mapping",
            config_path=str(path),
        )
    return data


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> RangekeeperConfig:
    """Validate a configuration table and apply it over the defaults.

    Raises:
        ConfigError: Unknown keys or values of the wrong type or range.
    """
    config = RangekeeperConfig()

    known = set(config.to_log_dict())
    unknown = set(section) - known
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    def fail(option: str, expected: str, value: Any) -> ConfigError:
        return ConfigError(
            f"{option} must be {expected}, got {value!r}",
            config_path=config_path,
            option=option,
        )

    for option in ("concurrency", "timeout", "cache_ttl", "retries", "error_level"):
        if option not in section:
            continue
        value = section[option]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise fail(option, "a non-negative integer", value)
        setattr(config, option, value)

    if config.concurrency < 1:
        raise fail("concurrency", "at least 1", config.concurrency)
    if config.error_level > 2:
        raise fail("error_level", "0, 1 or 2", config.error_level)

    if "pre" in section:
        if not isinstance(section["pre"], bool):
            raise fail("pre", "a boolean", section["pre"])
        config.pre = section["pre"]

    if "target" in section:
        if section["target"] not in TARGET_POLICIES:
            raise fail("target", f"one of {', '.join(TARGET_POLICIES)}", section["target"])
        config.target = section["target"]

    for option in ("registry", "cache_file", "filter", "reject"):
        if option not in section:
            continue
        value = section[option]
        if not isinstance(value, str):
            raise fail(option, "a string", value)
        setattr(config, option, value)

    if "dep" in section:
        value = section["dep"]
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise fail("dep", "a string or list of strings", value)
        config.dep = value

    return config
