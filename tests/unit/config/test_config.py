"""Tests for configuration loading and path resolution."""

from pathlib import Path

import pytest

from pace_tracker.config.paths import (
    DEFAULT_HOME_DIR,
    PACE_CONFIG_ENV,
    PACE_HOME_ENV,
    get_config_path,
    get_pace_home,
)
from pace_tracker.constants import CONFIG_FILENAME, DB_FILENAME
from pace_tracker.exceptions import ConfigurationError
from pace_tracker.models.config import PaceConfig
from pace_tracker.models.enums import TagDeletePolicy


class TestPaceConfig:
    def test_defaults(self) -> None:
        config = PaceConfig()
        assert config.database.tag_delete_policy is TagDeletePolicy.RESTRICT
        assert config.general.time_zone is None
        assert config.logging.level == "WARNING"
        assert config.logging.rotation.get_max_bytes() == 5 * 1024 * 1024

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert PaceConfig.load(tmp_path / "absent.yaml") == PaceConfig()

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "pace.yaml"
        path.write_text("")
        assert PaceConfig.load(path) == PaceConfig()

    def test_save_then_load(self, tmp_path: Path) -> None:
        config = PaceConfig.model_validate(
            {
                "database": {"path": "/var/lib/pace.db", "tag_delete_policy": "cascade"},
                "general": {"time_zone": "Europe/Berlin"},
                "logging": {"level": "debug"},
            }
        )
        path = tmp_path / "nested" / "pace.yaml"
        config.save(path)

        loaded = PaceConfig.load(path)
        assert loaded == config
        assert loaded.logging.level == "DEBUG"
        assert loaded.database.tag_delete_policy is TagDeletePolicy.CASCADE

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "pace.yaml"
        path.write_text("database: [unclosed\n")
        with pytest.raises(ConfigurationError) as exc_info:
            PaceConfig.load(path)
        assert exc_info.value.config_file == path

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "pace.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError):
            PaceConfig.load(path)

    def test_unknown_time_zone_names_key(self, tmp_path: Path) -> None:
        path = tmp_path / "pace.yaml"
        path.write_text("general:\n  time_zone: Mars/Olympus\n")
        with pytest.raises(ConfigurationError) as exc_info:
            PaceConfig.load(path)
        assert exc_info.value.key == "general.time_zone"

    def test_invalid_log_level(self, tmp_path: Path) -> None:
        path = tmp_path / "pace.yaml"
        path.write_text("logging:\n  level: chatty\n")
        with pytest.raises(ConfigurationError):
            PaceConfig.load(path)

    def test_database_path_resolution(self, tmp_path: Path) -> None:
        assert PaceConfig().database_path(tmp_path) == tmp_path / DB_FILENAME
        relative = PaceConfig.model_validate({"database": {"path": "data/x.db"}})
        assert relative.database_path(tmp_path) == tmp_path / "data" / "x.db"
        absolute = PaceConfig.model_validate({"database": {"path": "/srv/x.db"}})
        assert absolute.database_path(tmp_path) == Path("/srv/x.db")


class TestPaths:
    def test_home_from_environment(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv(PACE_HOME_ENV, str(tmp_path))
        monkeypatch.delenv(PACE_CONFIG_ENV, raising=False)
        assert get_pace_home() == tmp_path
        assert get_config_path() == tmp_path / CONFIG_FILENAME

    def test_default_home(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(PACE_HOME_ENV, raising=False)
        assert get_pace_home() == DEFAULT_HOME_DIR

    def test_config_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(PACE_CONFIG_ENV, str(tmp_path / "elsewhere.yaml"))
        assert get_config_path() == tmp_path / "elsewhere.yaml"
