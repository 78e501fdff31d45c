"""Command decorators shared by the CLI commands."""

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

import typer
from rich.markup import escape

from pace_tracker.exceptions import PaceError
from pace_tracker.utils.console import print_error

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def handle_pace_errors(func: F) -> F:
    """Turn a ``PaceError`` raised by a command into an error line and exit code 1.

    Example:
        @app.command("end")
        @handle_pace_errors
        def end(...) -> None:
            ...
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except PaceError as e:
            logger.debug(f"Command {func.__name__} failed: {e!r}")
            print_error(escape(str(e)))
            raise typer.Exit(code=1) from e

    return wrapper  # type: ignore[return-value]
