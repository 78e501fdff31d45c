"""Constants for pace-tracker.

This module contains:
- VERSION: Package version
- Storage defaults (file names, busy timeout, open-slot column)
- Time input formats
- Logging defaults

For paths and environment handling, import from pace_tracker.config.paths.
For type-safe enums, import from pace_tracker.models.enums.
"""

from pace_tracker import __version__

# =============================================================================
# Version
# =============================================================================

VERSION = __version__

# =============================================================================
# Storage
# =============================================================================

DB_FILENAME = "activities.db"
CONFIG_FILENAME = "pace.yaml"

# Seconds to wait on a locked database before giving up
DB_BUSY_TIMEOUT_SECONDS = 10.0

# Name of the unique column backing the single-open-activity rule
OPEN_SLOT_COLUMN = "open_slot"

# =============================================================================
# Time
# =============================================================================

# Accepted wall-clock shorthand for "today at"
TIME_OF_DAY_FORMATS: tuple[str, ...] = ("%H:%M", "%H:%M:%S")

UTC_ALIASES = frozenset({"utc", "z", "gmt"})

# =============================================================================
# Logging
# =============================================================================

PACKAGE_LOGGER_NAME = "pace_tracker"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_ROTATION_ENABLED = True
DEFAULT_LOG_MAX_SIZE_MB = 5
DEFAULT_LOG_BACKUP_COUNT = 3
MIN_LOG_MAX_SIZE_MB = 1
MAX_LOG_MAX_SIZE_MB = 100
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
