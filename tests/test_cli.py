"""Tests for the root profilegate CLI."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from profilegate import __version__
from profilegate.cli import cli


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "profilegate" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.usefixtures("_isolated_store")
def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


# --- Global flags ---


def test_json_flag_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--json", "--version"])
    assert result.exit_code == 0


def test_quiet_flag_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["-q", "--version"])
    assert result.exit_code == 0


def test_verbose_flag_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["-v", "--version"])
    assert result.exit_code == 0


def test_log_json_flag_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--log-json", "--version"])
    assert result.exit_code == 0


def test_config_option_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["-c", "/tmp/test.toml", "--version"])
    assert result.exit_code == 0


def test_sync_flag_accepted(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--sync", "--version"])
    assert result.exit_code == 0


# --- Command groups registered ---

EXPECTED_GROUPS = [
    "request",
    "friends",
    "audience",
    "profile",
    "notifications",
]


@pytest.mark.parametrize("group", EXPECTED_GROUPS)
def test_group_registered(cli_runner: CliRunner, group: str) -> None:
    result = cli_runner.invoke(cli, [group, "--help"])
    assert result.exit_code == 0, f"{group} --help failed: {result.output}"


def test_all_groups_in_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    for name in EXPECTED_GROUPS:
        assert name in result.output, f"{name} missing from --help"


def test_unknown_command(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["poke", "alice"])
    assert result.exit_code == 2


def test_data_dir_option(cli_runner: CliRunner, tmp_path: Path) -> None:
    store_root = tmp_path / "social"
    result = cli_runner.invoke(
        cli, ["--data-dir", str(store_root), "--sync", "-q", "request", "send", "alice", "bob"]
    )
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "FR-0001"
    assert (store_root / ".profilegate" / "profilegate.db").is_file()


@pytest.mark.usefixtures("_isolated_store")
def test_subdirectory_reuses_store(
    cli_runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    first = cli_runner.invoke(cli, ["--sync", "-q", "request", "send", "alice", "bob"])
    assert first.exit_code == 0
    child = tmp_path / "nested"
    child.mkdir()
    monkeypatch.chdir(child)
    result = cli_runner.invoke(cli, ["-q", "request", "list", "bob"])
    assert result.output.split() == ["FR-0001"]
