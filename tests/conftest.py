"""Pytest configuration and fixtures for pace-tracker tests."""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from pace_tracker.constants import PACKAGE_LOGGER_NAME
from pace_tracker.models.time import PaceDateTime
from pace_tracker.services.activity_service import ActivityService
from pace_tracker.store.core import ActivityStore

TEST_DAY = "2024-03-25"


def utc(hhmm: str, day: str = TEST_DAY) -> PaceDateTime:
    """Timestamp on the test day in UTC."""
    return PaceDateTime.parse(f"{day}T{hhmm}:00+00:00")


class FakeClock:
    """Settable clock standing in for "now"."""

    def __init__(self, start: PaceDateTime):
        self.current = start

    def __call__(self) -> PaceDateTime:
        return self.current

    def set(self, hhmm: str) -> None:
        self.current = utc(hhmm)


@pytest.fixture
def at() -> Callable[[str], PaceDateTime]:
    """Build UTC timestamps on the test day from ``HH:MM``."""
    return utc


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "pace" / "activities.db"


@pytest.fixture
def store(db_path: Path) -> Iterator[ActivityStore]:
    """Create an ActivityStore with a real temp SQLite database."""
    activity_store = ActivityStore(db_path)
    yield activity_store
    activity_store.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(utc("08:00"))


@pytest.fixture
def service(store: ActivityStore, clock: FakeClock) -> ActivityService:
    return ActivityService(store, clock=clock)


@pytest.fixture(autouse=True)
def restore_package_logger() -> Iterator[None]:
    """Undo logging configuration done by CLI commands during a test."""
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    handlers = list(package_logger.handlers)
    level = package_logger.level
    propagate = package_logger.propagate
    yield
    for handler in package_logger.handlers:
        if handler not in handlers:
            handler.close()
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
    package_logger.propagate = propagate
