from __future__ import annotations

import json
from pathlib import Path
from typing import Generator, List
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from rangekeeper.cli import cli, main
from rangekeeper.exceptions import ManifestError
from rangekeeper.models import ResolutionReport, UpdateRecord
from rangekeeper.utils.logger import disable_logging

MANIFEST = {
    "name": "demo",
    "dependencies": {"react": "^17.0.2", "lodash": "^4.17.21"},
    "devDependencies": {"typescript": "~5.3.3"},
}


def _record(name: str, current: str, new: str, kind: str, dep_type: str = "prod") -> UpdateRecord:
    return UpdateRecord(
        name=name,
        current_range=current,
        current_base_version=current.lstrip("^~"),
        latest_version=new.lstrip("^~"),
        new_range=new,
        update_classification=kind,
        dep_type=dep_type,
    )


UPDATES: List[UpdateRecord] = [
    _record("react", "^17.0.2", "^18.3.1", "major"),
    _record("typescript", "~5.3.3", "~5.6.2", "minor", "dev"),
]


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """A working directory holding package.json, with HOME redirected."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("RANGEKEEPER_CONFIG", raising=False)
    monkeypatch.delenv("RANGEKEEPER_REGISTRY", raising=False)
    monkeypatch.delenv("RANGEKEEPER_CACHE_FILE", raising=False)
    (tmp_path / "package.json").write_text(json.dumps(MANIFEST, indent=2) + "\n", encoding="utf-8")
    yield tmp_path
    disable_logging()


@pytest.fixture
def mock_resolve() -> Generator[AsyncMock, None, None]:
    """Replace the resolver used by the check command."""
    report = ResolutionReport(updates=list(UPDATES), cache_hits=1, cache_misses=2, total_duration=0.25)
    with patch("rangekeeper.commands.check.resolve", new=AsyncMock(return_value=report)) as mock:
        yield mock


@pytest.mark.unit
class TestCliGroup:
    """Tests for global options."""

    def test_help(self) -> None:
        """Test --help lists the commands."""
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "check" in result.output
        assert "clear-cache" in result.output

    def test_version(self) -> None:
        """Test --version prints the program name."""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert result.output.startswith("rangekeeper ")

    def test_invalid_config_exits_one(self, project: Path) -> None:
        """Test a broken config file stops the run with exit code 1."""
        (project / "rangekeeper.toml").write_text("[rangekeeper]\nbogus = 1\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["check"])

        assert result.exit_code == 1
        assert "Unknown configuration keys" in result.output


@pytest.mark.integration
class TestCheckCommand:
    """Tests for `rangekeeper check`."""

    def test_table_output_and_exit_code(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test updates are listed and the default error level exits 1."""
        result = CliRunner().invoke(cli, ["check"])

        assert result.exit_code == 1
        assert "react" in result.output
        assert "^18.3.1" in result.output
        assert "2 updates found" in result.output
        assert "2 fetched" in result.output
        assert "1 from cache" in result.output

    def test_packages_passed_in_manifest_order(
        self, project: Path, mock_resolve: AsyncMock
    ) -> None:
        """Test every registry dependency is handed to the resolver."""
        CliRunner().invoke(cli, ["check"])

        packages = mock_resolve.await_args.args[0]
        assert [p.name for p in packages] == ["react", "lodash", "typescript"]

    def test_options_forwarded(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test command-line flags reach the resolution options."""
        CliRunner().invoke(
            cli,
            [
                "check",
                "-t", "minor",
                "--concurrency", "4",
                "--timeout", "2500",
                "--retries", "1",
                "--cache-ttl", "5",
                "--cache-file", str(project / "c.json"),
                "--registry", "https://npm.example",
                "--pre",
            ],
        )

        options = mock_resolve.await_args.args[1]
        assert str(options.target_policy) == "minor"
        assert options.concurrency == 4
        assert options.timeout == 2.5
        assert options.retries == 1
        assert options.cache_ttl_seconds == 5
        assert options.cache_file_path == project / "c.json"
        assert options.registry_url == "https://npm.example"
        assert options.include_prerelease is True

    def test_config_file_defaults(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test config file values apply when flags are absent."""
        (project / "rangekeeper.toml").write_text(
            '[rangekeeper]\ntarget = "patch"\ndep = ["dev"]\n', encoding="utf-8"
        )

        CliRunner().invoke(cli, ["check"])

        packages, options = mock_resolve.await_args.args
        assert str(options.target_policy) == "patch"
        assert [p.name for p in packages] == ["typescript"]

    def test_flag_overrides_config(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test a flag wins over the config file."""
        (project / "rangekeeper.toml").write_text('[rangekeeper]\ntarget = "patch"\n', encoding="utf-8")

        CliRunner().invoke(cli, ["check", "-t", "semver"])

        assert str(mock_resolve.await_args.args[1].target_policy) == "semver"

    def test_registry_env(
        self, project: Path, mock_resolve: AsyncMock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test RANGEKEEPER_REGISTRY sets the registry."""
        monkeypatch.setenv("RANGEKEEPER_REGISTRY", "https://env.example")

        CliRunner().invoke(cli, ["check"])

        assert mock_resolve.await_args.args[1].registry_url == "https://env.example"

    def test_filter_and_reject(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test --filter and --reject narrow the package list."""
        CliRunner().invoke(cli, ["check", "--filter", "react,lodash", "--reject", "lodash"])

        packages = mock_resolve.await_args.args[0]
        assert [p.name for p in packages] == ["react"]

    def test_dep_selection(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test --dep limits the sections read."""
        CliRunner().invoke(cli, ["check", "--dep", "dev"])

        packages = mock_resolve.await_args.args[0]
        assert [p.dep_type for p in packages] == ["dev"]

    def test_invalid_regex_is_usage_error(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test a broken regex filter exits with a usage error."""
        result = CliRunner().invoke(cli, ["check", "--filter", "/(oops/"])

        assert result.exit_code == 2
        mock_resolve.assert_not_awaited()

    def test_json(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test --json prints a name to new range mapping."""
        result = CliRunner().invoke(cli, ["check", "--json"])

        assert json.loads(result.output) == {"react": "^18.3.1", "typescript": "~5.6.2"}

    def test_json_all(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test --json-all prints full update records."""
        result = CliRunner().invoke(cli, ["check", "--json-all"])

        data = json.loads(result.output)
        assert data[0]["name"] == "react"
        assert data[0]["update_classification"] == "major"
        assert data[1]["dep_type"] == "dev"

    def test_upgrade_rewrites_manifest(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test -u writes new ranges and exits 0."""
        (project / "yarn.lock").write_text("", encoding="utf-8")

        result = CliRunner().invoke(cli, ["check", "-u"])

        data = json.loads((project / "package.json").read_text(encoding="utf-8"))
        assert result.exit_code == 0
        assert data["dependencies"]["react"] == "^18.3.1"
        assert data["devDependencies"]["typescript"] == "~5.6.2"
        assert data["dependencies"]["lodash"] == "^4.17.21"
        assert "yarn install" in result.output

    def test_upgrade_with_backup(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test --backup keeps the previous manifest."""
        CliRunner().invoke(cli, ["check", "-u", "--backup"])

        assert len(list(project.glob("package.json.*.backup"))) == 1

    def test_explicit_package_file(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test a manifest path can be given explicitly."""
        other = project / "sub" / "package.json"
        other.parent.mkdir()
        other.write_text(json.dumps({"dependencies": {"vue": "^2.0.0"}}), encoding="utf-8")

        CliRunner().invoke(cli, ["check", str(other)])

        assert [p.name for p in mock_resolve.await_args.args[0]] == ["vue"]

    @pytest.mark.parametrize(
        "error_level, expected",
        [("0", 0), ("1", 0), ("2", 1)],
    )
    def test_error_level_with_updates(
        self, project: Path, mock_resolve: AsyncMock, error_level: str, expected: int
    ) -> None:
        """Test the exit code policy when updates exist."""
        result = CliRunner().invoke(cli, ["check", "--error-level", error_level])

        assert result.exit_code == expected

    @pytest.mark.parametrize(
        "error_level, expected",
        [("0", 0), ("1", 0), ("2", 0)],
    )
    def test_error_level_without_updates(
        self, project: Path, error_level: str, expected: int
    ) -> None:
        """Test the exit code policy when everything is up to date."""
        report = ResolutionReport(cache_hits=3)
        with patch("rangekeeper.commands.check.resolve", new=AsyncMock(return_value=report)):
            result = CliRunner().invoke(cli, ["check", "--error-level", error_level])

        assert result.exit_code == expected
        assert "All dependencies match" in result.output
        assert "Checked 3 packages" in result.output

    def test_error_level_one_json_up_to_date(self, project: Path) -> None:
        """Test level 1 exits 0 for a successful check with nothing to update."""
        with patch(
            "rangekeeper.commands.check.resolve",
            new=AsyncMock(return_value=ResolutionReport(updates=[])),
        ):
            result = CliRunner().invoke(
                cli, ["check", "package.json", "--error-level", "1", "--json"]
            )

        assert result.exit_code == 0
        assert json.loads(result.output) == {}

    def test_no_dependencies(self, project: Path, mock_resolve: AsyncMock) -> None:
        """Test a manifest without dependencies is reported, not resolved."""
        (project / "package.json").write_text('{"name": "empty"}', encoding="utf-8")

        result = CliRunner().invoke(cli, ["check"])

        assert result.exit_code == 0
        assert "No dependencies to check" in result.output
        mock_resolve.assert_not_awaited()

    def test_missing_manifest(self, project: Path) -> None:
        """Test a directory without package.json raises ManifestError."""
        (project / "package.json").unlink()

        result = CliRunner().invoke(cli, ["check"])

        assert result.exit_code == 1
        assert isinstance(result.exception, ManifestError)

    def test_cache_write_warning(self, project: Path) -> None:
        """Test a failed cache write is surfaced as a warning."""
        report = ResolutionReport(cache_misses=1, cache_persisted=False)
        with patch("rangekeeper.commands.check.resolve", new=AsyncMock(return_value=report)):
            result = CliRunner().invoke(cli, ["check"])

        assert "Could not write the version cache" in result.output


@pytest.mark.integration
class TestClearCacheCommand:
    """Tests for `rangekeeper clear-cache`."""

    def test_removes_default_cache(self, project: Path) -> None:
        """Test the default cache file in HOME is removed."""
        cache = project / ".rangekeeper-cache.json"
        cache.write_text("{}", encoding="utf-8")

        result = CliRunner().invoke(cli, ["clear-cache"])

        assert result.exit_code == 0
        assert not cache.exists()
        assert "Removed cache file" in result.output

    def test_explicit_path(self, project: Path) -> None:
        """Test --cache-file selects the file to remove."""
        cache = project / "custom.json"
        cache.write_text("{}", encoding="utf-8")

        result = CliRunner().invoke(cli, ["clear-cache", "--cache-file", str(cache)])

        assert result.exit_code == 0
        assert not cache.exists()

    def test_missing_cache(self, project: Path) -> None:
        """Test clearing without a cache file succeeds."""
        result = CliRunner().invoke(cli, ["clear-cache"])

        assert result.exit_code == 0
        assert "No cache file" in result.output


@pytest.mark.unit
class TestMainFunction:
    """Tests for cli.main() exit code mapping."""

    def test_success(self) -> None:
        """Test a clean run returns 0."""
        with patch("rangekeeper.cli.cli", return_value=None):
            assert main() == 0

    def test_system_exit_code(self) -> None:
        """Test sys.exit codes from commands are returned."""
        with patch("rangekeeper.cli.cli", side_effect=SystemExit(1)):
            assert main() == 1

    def test_rangekeeper_error(self) -> None:
        """Test application errors map to 1."""
        with patch("rangekeeper.cli.cli", side_effect=ManifestError("no manifest")):
            assert main() == 1

    def test_keyboard_interrupt(self) -> None:
        """Test Ctrl+C maps to 130."""
        with patch("rangekeeper.cli.cli", side_effect=KeyboardInterrupt):
            assert main() == 130

    def test_unexpected_error(self) -> None:
        """Test unexpected exceptions map to 1."""
        with patch("rangekeeper.cli.cli", side_effect=RuntimeError("boom")):
            assert main() == 1
