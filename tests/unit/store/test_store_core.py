"""Tests for ActivityStore connections, transactions and error translation."""

import dataclasses
import sqlite3
from contextlib import closing
from pathlib import Path

import pytest

from pace_tracker.exceptions import (
    ActivityAlreadyActiveError,
    ConstraintViolationError,
    ReferentialIntegrityViolationError,
    StorageUnavailableError,
)
from pace_tracker.models.entities import Activity, Tag
from pace_tracker.store.core import ActivityStore, UnitOfWork, connect, translate_error


class TestTranslateError:
    def test_open_slot_violation(self) -> None:
        error = sqlite3.IntegrityError("UNIQUE constraint failed: activities.open_slot")
        assert isinstance(translate_error(error), ActivityAlreadyActiveError)

    def test_check_mentioning_open_slot_is_not_an_active_conflict(self) -> None:
        error = sqlite3.IntegrityError(
            "CHECK constraint failed: (status = 'ended') = (open_slot IS NULL)"
        )
        assert isinstance(translate_error(error), ConstraintViolationError)

    def test_foreign_key_violation(self) -> None:
        error = sqlite3.IntegrityError("FOREIGN KEY constraint failed")
        translated = translate_error(error, table="tags")
        assert isinstance(translated, ReferentialIntegrityViolationError)
        assert translated.table == "tags"
        assert translated.cause is error

    def test_other_integrity_error(self) -> None:
        error = sqlite3.IntegrityError("UNIQUE constraint failed: tags.tag")
        assert isinstance(translate_error(error), ConstraintViolationError)

    def test_operational_error(self) -> None:
        error = sqlite3.OperationalError("database is locked")
        assert isinstance(translate_error(error), StorageUnavailableError)


class TestConnect:
    def test_pragmas(self, tmp_path: Path) -> None:
        with closing(connect(tmp_path / "pragmas.db")) as conn:
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
            assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
            assert conn.isolation_level is None

    def test_unopenable_path(self, tmp_path: Path) -> None:
        with pytest.raises(StorageUnavailableError):
            connect(tmp_path / "missing" / "dir" / "pace.db")


class TestStore:
    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "deeper" / "pace.db"
        store = ActivityStore(db_path)
        try:
            assert db_path.exists()
        finally:
            store.close()

    def test_unit_of_work_commits(self, store: ActivityStore) -> None:
        tag = Tag(name="kept")
        with store.unit_of_work() as uow:
            uow.tags.create(tag)
        with store.reader() as uow:
            assert uow.tags.exists(tag.guid)

    def test_exception_rolls_back(self, store: ActivityStore) -> None:
        tag = Tag(name="discarded")
        with pytest.raises(RuntimeError):
            with store.unit_of_work() as uow:
                uow.tags.create(tag)
                raise RuntimeError("boom")

        with store.reader() as uow:
            assert not uow.tags.exists(tag.guid)
        assert not uow.conn.in_transaction

    def test_unit_of_work_exposes_only_repositories_in_use(self) -> None:
        assert [f.name for f in dataclasses.fields(UnitOfWork)] == [
            "conn",
            "descriptions",
            "categories",
            "tags",
            "activities",
        ]

    def test_constraint_failure_rolls_back_and_translates(self, store: ActivityStore) -> None:
        first = Tag(name="first")
        with pytest.raises(ConstraintViolationError):
            with store.unit_of_work() as uow:
                uow.tags.create(first)
                uow.tags.create(Tag(name="dup"))
                uow.tags.create(Tag(name="dup"))

        with store.reader() as uow:
            assert uow.tags.read_all() == []

    def test_locked_database_is_unavailable(
        self, db_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("pace_tracker.store.core.DB_BUSY_TIMEOUT_SECONDS", 0.05)
        store = ActivityStore(db_path)
        blocker = connect(db_path)
        try:
            blocker.execute("BEGIN IMMEDIATE")
            with pytest.raises(StorageUnavailableError):
                with store.unit_of_work() as uow:
                    uow.tags.create(Tag(name="blocked"))
        finally:
            blocker.execute("ROLLBACK")
            blocker.close()
            store.close()

    def test_close_is_idempotent(self, db_path: Path) -> None:
        store = ActivityStore(db_path)
        store.close()
        store.close()
        # A closed store reconnects on next use
        assert store.schema_version() is not None
        store.close()


class TestReader:
    def test_reads_share_one_snapshot(self, store: ActivityStore, at) -> None:
        writer = ActivityStore(store.db_path)
        try:
            with store.reader() as uow:
                assert uow.activities.current() is None

                with writer.unit_of_work() as other:
                    other.activities.create(
                        Activity(
                            description=other.descriptions.get_or_create("committed meanwhile"),
                            begin=at("09:00"),
                        )
                    )

                assert uow.activities.current() is None
                assert uow.activities.read_all() == []

            with store.reader() as uow:
                current = uow.activities.current()
                assert current is not None
                assert current.description.text == "committed meanwhile"
        finally:
            writer.close()

    def test_joins_an_open_unit_of_work(self, store: ActivityStore) -> None:
        tag = Tag(name="pending")
        with store.unit_of_work() as uow:
            uow.tags.create(tag)
            with store.reader() as nested:
                assert nested.tags.exists(tag.guid)
            assert uow.conn.in_transaction

        with store.reader() as uow:
            assert uow.tags.exists(tag.guid)

    def test_error_inside_reader_ends_the_transaction(self, store: ActivityStore) -> None:
        with pytest.raises(RuntimeError):
            with store.reader() as uow:
                uow.tags.read_all()
                raise RuntimeError("boom")
        assert not uow.conn.in_transaction
