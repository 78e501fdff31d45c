"""Utility functions for pace-tracker."""

from pace_tracker.utils.command_decorators import handle_pace_errors
from pace_tracker.utils.console import (
    console,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
)
from pace_tracker.utils.log_utils import configure_logging

__all__ = [
    # Console
    "console",
    "print_error",
    "print_info",
    "print_success",
    "print_table",
    "print_warning",
    # Commands
    "handle_pace_errors",
    # Logging
    "configure_logging",
]
