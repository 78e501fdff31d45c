"""Path and environment constants for pace-tracker.

Resolution order for the pace home directory:
1. PACE_HOME environment variable (a .env file in the working directory counts)
2. ~/.config/pace
"""

import os
from pathlib import Path

from pace_tracker.constants import CONFIG_FILENAME

PACE_HOME_ENV = "PACE_HOME"
PACE_CONFIG_ENV = "PACE_CONFIG"
DEFAULT_HOME_DIR = Path.home() / ".config" / "pace"


def get_pace_home() -> Path:
    """Return the directory holding the config file and the database."""
    env_value = os.environ.get(PACE_HOME_ENV)
    if env_value:
        return Path(env_value).expanduser()
    return DEFAULT_HOME_DIR


def get_config_path() -> Path:
    """Return the config file path (PACE_CONFIG overrides the home default)."""
    env_value = os.environ.get(PACE_CONFIG_ENV)
    if env_value:
        return Path(env_value).expanduser()
    return get_pace_home() / CONFIG_FILENAME
