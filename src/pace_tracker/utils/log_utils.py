"""Logging setup for pace-tracker."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pace_tracker.constants import PACKAGE_LOGGER_NAME
from pace_tracker.models.config import LogRotationConfig


def configure_logging(
    log_level: str,
    log_file: Path | None = None,
    log_rotation: LogRotationConfig | None = None,
) -> logging.Logger:
    """Configure the package logger.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path; stderr is used when omitted.
        log_rotation: Optional log rotation configuration.

    Returns:
        The configured package logger.
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    pace_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    pace_logger.setLevel(level)
    pace_logger.propagate = False
    # Reconfiguring must not stack handlers
    pace_logger.handlers.clear()

    if level == logging.DEBUG:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
            datefmt="%H:%M:%S",
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%H:%M:%S",
        )

    if log_file:
        try:
            rotation = log_rotation or LogRotationConfig()
            log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler: logging.Handler
            if rotation.enabled:
                file_handler = RotatingFileHandler(
                    log_file,
                    mode="a",
                    maxBytes=rotation.get_max_bytes(),
                    backupCount=rotation.backup_count,
                    encoding="utf-8",
                )
            else:
                file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setFormatter(formatter)
            pace_logger.addHandler(file_handler)
            return pace_logger
        except OSError as e:
            pace_logger.warning(f"Could not set up file logging to {log_file}: {e}")

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    pace_logger.addHandler(stream_handler)
    return pace_logger
