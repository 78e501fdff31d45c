"""Custom exceptions for pace-tracker.

Every failure path raises a distinct subclass of PaceError so callers can
match on the kind instead of parsing messages.

Exception hierarchy:
    PaceError (base)
    ├── ConfigurationError
    ├── ValidationError
    │   ├── InvalidGuidError
    │   ├── InvalidTimeZoneError
    │   └── InvalidTimeInputError
    ├── TimeError
    │   ├── NegativeDurationError
    │   └── InconsistentTimestampsError
    ├── LifecycleError
    │   ├── ActivityAlreadyActiveError
    │   ├── NotActiveError
    │   ├── NotHeldError
    │   ├── AlreadyEndedError
    │   ├── NoCurrentActivityError
    │   └── ActivityNotFoundError
    ├── StorageError
    │   ├── StorageUnavailableError
    │   ├── MalformedRowError
    │   ├── ReferentialIntegrityViolationError
    │   └── ConstraintViolationError
    └── MigrationError
        ├── MigrationFailedError
        └── SchemaVersionMismatchError
"""

from pathlib import Path
from typing import Any


class PaceError(Exception):
    """Base exception for all pace-tracker errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PaceError):
    """Raised when configuration is invalid or cannot be loaded.

    Examples:
        - Invalid YAML syntax in the config file
        - Unknown tag delete policy
        - Out-of-range log rotation values
    """

    def __init__(
        self,
        message: str,
        config_file: Path | None = None,
        key: str | None = None,
    ):
        details = {}
        if config_file:
            details["config_file"] = str(config_file)
        if key:
            details["key"] = key
        super().__init__(message, details)
        self.config_file = config_file
        self.key = key


# =============================================================================
# Validation Errors (raised at the boundary, before the lifecycle engine)
# =============================================================================


class ValidationError(PaceError):
    """Raised when user-supplied input fails validation."""

    def __init__(self, message: str, value: Any = None):
        details = {}
        if value is not None:
            value_str = str(value)
            details["value"] = value_str[:100] + "..." if len(value_str) > 100 else value_str
        super().__init__(message, details)
        self.value = value


class InvalidGuidError(ValidationError):
    """Raised when a textual identifier is not a well-formed Guid."""


class InvalidTimeZoneError(ValidationError):
    """Raised when a time zone name or offset is not recognized."""


class InvalidTimeInputError(ValidationError):
    """Raised when a user time string can't be parsed."""


# =============================================================================
# Time Errors
# =============================================================================


class TimeError(PaceError):
    """Base class for timestamp arithmetic errors."""


class NegativeDurationError(TimeError):
    """Raised when a duration is requested between out-of-order timestamps.

    Never clamped to zero: a negative span means clock skew or bad input.
    """

    def __init__(self, begin: Any, end: Any):
        super().__init__(
            "End time lies before begin time",
            {"begin": begin, "end": end},
        )
        self.begin = begin
        self.end = end


class InconsistentTimestampsError(TimeError):
    """Raised when an activity's timestamps contradict each other.

    Examples:
        - Intermissions adding up to more than the activity period
        - An intermission starting before the activity began
    """


# =============================================================================
# Lifecycle Errors
# =============================================================================


class LifecycleError(PaceError):
    """Raised when a lifecycle transition is not allowed.

    Attributes:
        activity_id: Identifier of the activity the transition targeted.
    """

    def __init__(self, message: str, activity_id: Any = None):
        details = {"activity_id": str(activity_id)} if activity_id is not None else None
        super().__init__(message, details)
        self.activity_id = activity_id


class ActivityAlreadyActiveError(LifecycleError):
    """Raised when beginning an activity while another one is open."""


class NotActiveError(LifecycleError):
    """Raised when holding an activity that is not active."""


class NotHeldError(LifecycleError):
    """Raised when resuming an activity that is not held."""


class AlreadyEndedError(LifecycleError):
    """Raised when transitioning an activity that has already ended."""


class NoCurrentActivityError(LifecycleError):
    """Raised when a transition needs a current activity and there is none."""


class ActivityNotFoundError(LifecycleError):
    """Raised when an activity id does not exist in the store."""


# =============================================================================
# Storage Errors
# =============================================================================


class StorageError(PaceError):
    """Raised when storage operations fail.

    Base class for storage-related errors.
    """

    def __init__(
        self,
        message: str,
        table: str | None = None,
        cause: Exception | None = None,
    ):
        details = {}
        if table:
            details["table"] = table
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.table = table
        self.cause = cause


class StorageUnavailableError(StorageError):
    """Raised when the database can't be opened, read or locked."""


class MalformedRowError(StorageError):
    """Raised when a stored row can't be converted into an entity.

    Examples:
        - NULL in a column the entity requires
        - Timestamp text without an offset
        - Unknown status value
    """

    def __init__(self, message: str, table: str | None = None, column: str | None = None):
        super().__init__(message, table=table)
        if column:
            self.details["column"] = column
        self.column = column


class ReferentialIntegrityViolationError(StorageError):
    """Raised when a write or delete would break a relation between rows."""


class ConstraintViolationError(StorageError):
    """Raised when a write violates a uniqueness or check constraint."""


# =============================================================================
# Migration Errors
# =============================================================================


class MigrationError(PaceError):
    """Base class for schema migration errors. Always fatal at startup."""


class MigrationFailedError(MigrationError):
    """Raised when applying or reverting a single migration fails.

    Attributes:
        version: Version token of the failing migration.
    """

    def __init__(self, message: str, version: str, cause: Exception | None = None):
        details: dict[str, Any] = {"version": version}
        if cause is not None:
            details["cause"] = str(cause)
        super().__init__(message, details)
        self.version = version
        self.cause = cause


class SchemaVersionMismatchError(MigrationError):
    """Raised when the stored schema is behind or ahead of the known migrations."""
