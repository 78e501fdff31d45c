"""Configuration models for pace-tracker."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from pace_tracker.constants import (
    DB_FILENAME,
    DEFAULT_LOG_BACKUP_COUNT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_MAX_SIZE_MB,
    DEFAULT_LOG_ROTATION_ENABLED,
    MAX_LOG_MAX_SIZE_MB,
    MIN_LOG_MAX_SIZE_MB,
    VALID_LOG_LEVELS,
)
from pace_tracker.exceptions import ConfigurationError, InvalidTimeZoneError
from pace_tracker.models.enums import TagDeletePolicy
from pace_tracker.models.time import parse_time_zone


class DatabaseConfig(BaseModel):
    """Storage configuration."""

    path: Path | None = Field(
        default=None,
        description="SQLite database file (default: activities.db in the pace home)",
    )
    tag_delete_policy: TagDeletePolicy = Field(
        default=TagDeletePolicy.RESTRICT,
        description="Deleting a referenced tag: 'restrict' fails, 'cascade' unlinks it",
    )


class GeneralConfig(BaseModel):
    """General behaviour."""

    time_zone: str | None = Field(
        default=None,
        description="IANA zone or fixed offset for user input (default: system local)",
    )

    @field_validator("time_zone")
    @classmethod
    def _check_time_zone(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            parse_time_zone(value)
        except InvalidTimeZoneError as e:
            raise ValueError(str(e)) from e
        return value


class LogRotationConfig(BaseModel):
    """Log file rotation settings."""

    enabled: bool = Field(default=DEFAULT_LOG_ROTATION_ENABLED)
    max_size_mb: int = Field(
        default=DEFAULT_LOG_MAX_SIZE_MB, ge=MIN_LOG_MAX_SIZE_MB, le=MAX_LOG_MAX_SIZE_MB
    )
    backup_count: int = Field(default=DEFAULT_LOG_BACKUP_COUNT, ge=0, le=20)

    def get_max_bytes(self) -> int:
        """Return the rotation threshold in bytes."""
        return self.max_size_mb * 1024 * 1024


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default=DEFAULT_LOG_LEVEL, description="Log level name")
    file: Path | None = Field(default=None, description="Log file (default: stderr)")
    rotation: LogRotationConfig = Field(default_factory=LogRotationConfig)

    @field_validator("level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in VALID_LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(VALID_LOG_LEVELS)}")
        return upper


class PaceConfig(BaseModel):
    """Main pace-tracker configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Path) -> "PaceConfig":
        """Load configuration from a YAML file.

        A missing or empty file yields the defaults.

        Raises:
            ConfigurationError: If the file is not valid YAML or fails validation.
        """
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}", config_file=config_path) from e

        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError("Top level must be a mapping", config_file=config_path)

        try:
            return cls(**data)
        except ValidationError as e:
            first = e.errors()[0]
            key = ".".join(str(part) for part in first["loc"])
            raise ConfigurationError(first["msg"], config_file=config_path, key=key) from e

    def save(self, config_path: Path) -> None:
        """Save configuration to a YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json")
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def database_path(self, home: Path) -> Path:
        """Resolve the database file, relative paths being taken from ``home``."""
        path = self.database.path or Path(DB_FILENAME)
        return path if path.is_absolute() else home / path
