"""CLI-level tests for the pace commands."""

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from pace_tracker.cli import app
from pace_tracker.config.paths import PACE_CONFIG_ENV, PACE_HOME_ENV
from pace_tracker.constants import CONFIG_FILENAME, VERSION
from pace_tracker.store.migrations import MIGRATIONS


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Return a Typer CLI runner."""
    return CliRunner()


@pytest.fixture()
def pace_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a temp home whose config pins the zone to UTC."""
    home = tmp_path / "home"
    home.mkdir()
    (home / CONFIG_FILENAME).write_text(
        yaml.safe_dump({"general": {"time_zone": "UTC"}}), encoding="utf-8"
    )
    monkeypatch.setenv(PACE_HOME_ENV, str(home))
    monkeypatch.delenv(PACE_CONFIG_ENV, raising=False)
    return home


def _run(cli_runner: CliRunner, *args: str) -> str:
    result = cli_runner.invoke(app, list(args), catch_exceptions=False)
    assert result.exit_code == 0, result.output
    return result.output


def test_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert VERSION in result.output


def test_setup_writes_config_and_database(
    cli_runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    home = tmp_path / "fresh"
    monkeypatch.setenv(PACE_HOME_ENV, str(home))
    monkeypatch.delenv(PACE_CONFIG_ENV, raising=False)

    output = _run(cli_runner, "setup")
    assert "Configuration written" in output
    assert (home / CONFIG_FILENAME).exists()
    assert (home / "activities.db").exists()

    again = _run(cli_runner, "setup")
    assert "already exists" in again


def test_full_day(cli_runner: CliRunner, pace_home: Path) -> None:
    output = _run(cli_runner, "begin", "write spec", "--at", "09:00", "-t", "docs,pace")
    assert "Began 'write spec'" in output

    output = _run(cli_runner, "hold", "--at", "09:30", "--reason", "lunch")
    assert "Held 'write spec'" in output

    output = _run(cli_runner, "resume", "--at", "10:00")
    assert "Resumed 'write spec'" in output

    output = _run(cli_runner, "end", "--at", "12:00")
    assert "Ended 'write spec'" in output
    assert "2h 30m 0s" in output

    assert "No activity" in _run(cli_runner, "now")


def test_now_shows_current_activity(cli_runner: CliRunner, pace_home: Path) -> None:
    _run(cli_runner, "begin", "reviewing", "--at", "09:00", "-c", "work")

    output = _run(cli_runner, "now")
    assert "reviewing" in output
    assert "active" in output


def test_begin_twice_fails_without_force(cli_runner: CliRunner, pace_home: Path) -> None:
    _run(cli_runner, "begin", "first", "--at", "09:00")

    result = cli_runner.invoke(app, ["begin", "second", "--at", "10:00"])
    assert result.exit_code == 1
    assert "Error:" in result.output

    output = _run(cli_runner, "begin", "second", "--at", "10:00", "--force")
    assert "Ended 'first' to begin a new activity" in output
    assert "Began 'second'" in output


def test_hold_new_on_held_activity_fails(cli_runner: CliRunner, pace_home: Path) -> None:
    _run(cli_runner, "begin", "work", "--at", "09:00")
    _run(cli_runner, "hold", "--at", "09:30")

    result = cli_runner.invoke(app, ["hold", "--at", "09:45", "--new-if-exists"])
    assert result.exit_code == 1
    assert "already held" in result.output

    assert "Held 'work'" in _run(cli_runner, "hold", "--at", "09:50")


def test_end_without_activity(cli_runner: CliRunner, pace_home: Path) -> None:
    result = cli_runner.invoke(app, ["end"])
    assert result.exit_code == 1
    assert "No activity is currently active or held" in result.output


def test_invalid_time_input(cli_runner: CliRunner, pace_home: Path) -> None:
    result = cli_runner.invoke(app, ["begin", "x", "--at", "quarter past"])
    assert result.exit_code == 1
    assert "Expected HH:MM" in result.output


def test_adjust(cli_runner: CliRunner, pace_home: Path) -> None:
    _run(cli_runner, "begin", "draft", "--at", "09:00")

    output = _run(cli_runner, "adjust", "-d", "final", "--at", "08:30")
    assert "Adjusted 'final'" in output


def test_migrate_down_and_up(cli_runner: CliRunner, pace_home: Path) -> None:
    assert f"Applied {len(MIGRATIONS)} migration(s)" in _run(cli_runner, "migrate")
    assert "up to date" in _run(cli_runner, "migrate")

    output = _run(cli_runner, "migrate", "--down-to", MIGRATIONS[0].version)
    assert f"Reverted {len(MIGRATIONS) - 1} migration(s)" in output
    assert "Nothing to revert" in _run(
        cli_runner, "migrate", "--down-to", MIGRATIONS[0].version
    )

    output = _run(cli_runner, "migrate")
    assert f"Applied {len(MIGRATIONS) - 1} migration(s)" in output


def test_invalid_config_is_reported(cli_runner: CliRunner, pace_home: Path) -> None:
    (pace_home / CONFIG_FILENAME).write_text("logging:\n  level: chatty\n", encoding="utf-8")

    result = cli_runner.invoke(app, ["now"])
    assert result.exit_code == 1
    assert "Error:" in result.output
