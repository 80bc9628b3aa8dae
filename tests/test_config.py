from __future__ import annotations

import json
from pathlib import Path

import pytest

from rangekeeper.config import (
    RangekeeperConfig,
    _parse_section,
    _pyproject_has_section,
    _read_toml,
    discover_config_file,
    load_config,
)
from rangekeeper.exceptions import ConfigError
from rangekeeper.models import TargetPolicy


@pytest.mark.unit
class TestRangekeeperConfig:
    """Tests for RangekeeperConfig dataclass."""

    def test_default_initialization(self) -> None:
        """Test RangekeeperConfig initializes with correct defaults."""
        config = RangekeeperConfig()

        assert config.target == "latest"
        assert config.concurrency == 24
        assert config.timeout == 30000
        assert config.cache_ttl == 600
        assert config.cache_file is None
        assert config.pre is False
        assert config.retries == 3
        assert config.dep == ["prod", "dev", "peer", "optional"]
        assert config.error_level == 2
        assert config.source_path is None

    def test_to_log_dict_excludes_metadata(self) -> None:
        """Test to_log_dict returns options without source_path."""
        result = RangekeeperConfig(source_path=Path("/x/rangekeeper.toml")).to_log_dict()

        assert "source_path" not in result
        assert result["target"] == "latest"

    def test_to_resolution_options(self, tmp_path: Path) -> None:
        """Test settings convert to resolution options, milliseconds to seconds."""
        config = RangekeeperConfig(
            target="minor",
            concurrency=8,
            timeout=1500,
            cache_ttl=60,
            cache_file=str(tmp_path / "c.json"),
            registry="https://npm.example",
            pre=True,
            retries=1,
        )

        options = config.to_resolution_options()

        assert options.target_policy is TargetPolicy.MINOR
        assert options.concurrency == 8
        assert options.timeout == 1.5
        assert options.cache_ttl_seconds == 60
        assert options.cache_file_path == tmp_path / "c.json"
        assert options.registry_url == "https://npm.example"
        assert options.include_prerelease is True
        assert options.retries == 1


@pytest.mark.unit
class TestDiscoverConfigFile:
    """Tests for discover_config_file()."""

    def test_explicit_path(self, tmp_path: Path) -> None:
        """Test an explicit existing path is returned resolved."""
        path = tmp_path / "custom.toml"
        path.write_text("", encoding="utf-8")

        assert discover_config_file(path) == path.resolve()

    def test_explicit_missing(self, tmp_path: Path) -> None:
        """Test a missing explicit path raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            discover_config_file(tmp_path / "missing.toml")

    def test_nothing_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test None is returned when no config file exists."""
        monkeypatch.chdir(tmp_path)

        assert discover_config_file() is None

    def test_priority_order(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test rangekeeper.toml wins over .ncurc.json, which wins over pyproject."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "pyproject.toml").write_text("[tool.rangekeeper]\n", encoding="utf-8")
        assert discover_config_file() == tmp_path / "pyproject.toml"

        (tmp_path / ".ncurc.json").write_text("{}", encoding="utf-8")
        assert discover_config_file() == tmp_path / ".ncurc.json"

        (tmp_path / "rangekeeper.toml").write_text("", encoding="utf-8")
        assert discover_config_file() == tmp_path / "rangekeeper.toml"

    def test_ncurc_json_before_yaml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test .ncurc.json wins over .ncurc.yml, which wins over .ncurc.yaml."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".ncurc.yaml").write_text("", encoding="utf-8")
        assert discover_config_file() == tmp_path / ".ncurc.yaml"

        (tmp_path / ".ncurc.yml").write_text("", encoding="utf-8")
        assert discover_config_file() == tmp_path / ".ncurc.yml"

        (tmp_path / ".ncurc.json").write_text("{}", encoding="utf-8")
        assert discover_config_file() == tmp_path / ".ncurc.json"

    def test_pyproject_without_section_ignored(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test a pyproject.toml without our table is not picked up."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "pyproject.toml").write_text("[tool.black]\n", encoding="utf-8")

        assert discover_config_file() is None

    def test_pyproject_has_section_tolerates_bad_toml(self, tmp_path: Path) -> None:
        """Test an unparseable pyproject.toml counts as no section."""
        path = tmp_path / "pyproject.toml"
        path.write_text("[tool.rangekeeper\n", encoding="utf-8")

        assert _pyproject_has_section(path) is False


@pytest.mark.unit
class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults_without_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test defaults are returned when there is nothing to load."""
        monkeypatch.chdir(tmp_path)

        assert load_config() == RangekeeperConfig()

    def test_rangekeeper_toml(self, tmp_path: Path) -> None:
        """Test the [rangekeeper] table is applied."""
        path = tmp_path / "rangekeeper.toml"
        path.write_text(
            '[rangekeeper]\ntarget = "patch"\nconcurrency = 4\ndep = ["prod", "dev"]\n',
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.target == "patch"
        assert config.concurrency == 4
        assert config.dep == ["prod", "dev"]
        assert config.source_path == path.resolve()

    def test_pyproject_table(self, tmp_path: Path) -> None:
        """Test the [tool.rangekeeper] table is applied."""
        path = tmp_path / "pyproject.toml"
        path.write_text('[tool.rangekeeper]\nreject = "@types/*"\n', encoding="utf-8")

        assert load_config(path).reject == "@types/*"

    def test_ncurc_camel_case(self, tmp_path: Path) -> None:
        """Test .ncurc.json accepts camelCase keys."""
        path = tmp_path / ".ncurc.json"
        path.write_text(
            json.dumps({"target": "minor", "cacheTtl": 30, "errorLevel": 1, "dep": "prod"}),
            encoding="utf-8",
        )

        config = load_config(path)

        assert config.target == "minor"
        assert config.cache_ttl == 30
        assert config.error_level == 1
        assert config.dep == ["prod"]

    @pytest.mark.parametrize("name", [".ncurc.yml", ".ncurc.yaml"])
    def test_ncurc_yaml(self, tmp_path: Path, name: str) -> None:
        """Test .ncurc YAML files load with the same camelCase aliases."""
        path = tmp_path / name
        path.write_text("target: patch\ncacheTtl: 60\ndep:\n  - prod\n  - dev\n", encoding="utf-8")

        config = load_config(path)

        assert config.target == "patch"
        assert config.cache_ttl == 60
        assert config.dep == ["prod", "dev"]

    def test_empty_yaml_gives_defaults(self, tmp_path: Path) -> None:
        """Test an empty YAML document is treated as no settings."""
        path = tmp_path / ".ncurc.yml"
        path.write_text("", encoding="utf-8")

        assert load_config(path).target == "latest"

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test broken YAML raises ConfigError."""
        path = tmp_path / ".ncurc.yml"
        path.write_text("target: [minor\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        """Test a YAML list is rejected."""
        path = tmp_path / ".ncurc.yaml"
        path.write_text("- minor\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_empty_section_gives_defaults(self, tmp_path: Path) -> None:
        """Test a file without our table yields defaults plus the source path."""
        path = tmp_path / "rangekeeper.toml"
        path.write_text("[other]\nkey = 1\n", encoding="utf-8")

        config = load_config(path)

        assert config.target == "latest"
        assert config.source_path == path.resolve()

    def test_invalid_json(self, tmp_path: Path) -> None:
        """Test broken JSON raises ConfigError."""
        path = tmp_path / ".ncurc.json"
        path.write_text("{broken", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid JSON"):
            load_config(path)

    def test_json_must_be_object(self, tmp_path: Path) -> None:
        """Test a JSON array is rejected."""
        path = tmp_path / ".ncurc.json"
        path.write_text("[]", encoding="utf-8")

        with pytest.raises(ConfigError, match="JSON object"):
            load_config(path)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Test broken TOML raises ConfigError."""
        path = tmp_path / "rangekeeper.toml"
        path.write_text("[rangekeeper\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            _read_toml(path)


@pytest.mark.unit
class TestParseSection:
    """Tests for _parse_section() validation."""

    def test_all_options(self) -> None:
        """Test every option is accepted with the right type."""
        config = _parse_section(
            {
                "target": "semver",
                "concurrency": 2,
                "timeout": 500,
                "cache_ttl": 0,
                "cache_file": "~/c.json",
                "registry": "https://npm.example",
                "pre": True,
                "retries": 0,
                "dep": ["peer"],
                "filter": "react*",
                "reject": "/^@types/",
                "error_level": 0,
            },
            config_path="test.toml",
        )

        assert config.target == "semver"
        assert config.cache_ttl == 0
        assert config.pre is True
        assert config.error_level == 0

    def test_unknown_key(self) -> None:
        """Test unknown keys are rejected by name."""
        with pytest.raises(ConfigError, match="Unknown configuration keys: bogus"):
            _parse_section({"bogus": 1}, config_path="test.toml")

    @pytest.mark.parametrize(
        "section, option",
        [
            ({"concurrency": "8"}, "concurrency"),
            ({"concurrency": 0}, "concurrency"),
            ({"timeout": -1}, "timeout"),
            ({"retries": True}, "retries"),
            ({"error_level": 3}, "error_level"),
            ({"pre": "yes"}, "pre"),
            ({"target": "greatest"}, "target"),
            ({"registry": 42}, "registry"),
            ({"dep": [1]}, "dep"),
        ],
    )
    def test_invalid_values(self, section: dict, option: str) -> None:
        """Test type and range errors name the offending option."""
        with pytest.raises(ConfigError) as exc_info:
            _parse_section(section, config_path="test.toml")

        assert exc_info.value.option == option
