"""Schema migrations for the activity store.

The schema is defined entirely by ``MIGRATIONS``, an ordered, statically
declared sequence of (version, up, down) records. ``MigrationRunner``
applies the missing ones in ascending order, each in its own transaction
together with its ledger row, so the ``schema_migrations`` ledger always
matches the last migration that committed.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from dataclasses import dataclass

from pace_tracker.exceptions import MigrationFailedError, SchemaVersionMismatchError
from pace_tracker.models.enums import EntityKind
from pace_tracker.models.time import PaceDateTime
from pace_tracker.store.records import AppliedMigration
from pace_tracker.store.repository import Repository

logger = logging.getLogger(__name__)

LEDGER_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    guid TEXT PRIMARY KEY,
    version TEXT NOT NULL UNIQUE,
    applied_at TEXT NOT NULL
)
"""


@dataclass(frozen=True)
class Migration:
    """One schema change and its inverse."""

    version: str
    description: str
    up: tuple[str, ...]
    down: tuple[str, ...]


MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        version="20240325125630",
        description="Create lookup tables (descriptions, categories, tags)",
        up=(
            """
            CREATE TABLE descriptions (
                guid TEXT PRIMARY KEY,
                description TEXT NOT NULL UNIQUE
            )
            """,
            """
            CREATE TABLE categories (
                guid TEXT PRIMARY KEY,
                category TEXT NOT NULL UNIQUE,
                description TEXT NULL
            )
            """,
            """
            CREATE TABLE tags (
                guid TEXT PRIMARY KEY,
                tag TEXT NOT NULL UNIQUE
            )
            """,
        ),
        down=(
            "DROP TABLE tags",
            "DROP TABLE categories",
            "DROP TABLE descriptions",
        ),
    ),
    Migration(
        version="20240325143710",
        description="Create activities table",
        up=(
            # open_slot is 1 while the activity is active or held and NULL once
            # it has ended; UNIQUE lets at most one row hold the slot.
            """
            CREATE TABLE activities (
                guid TEXT PRIMARY KEY,
                description_guid TEXT NOT NULL REFERENCES descriptions(guid),
                category_guid TEXT NULL REFERENCES categories(guid),
                begin_time TEXT NOT NULL,
                end_time TEXT NULL,
                duration INTEGER NULL,
                status TEXT NOT NULL CHECK (status IN ('active', 'held', 'ended')),
                open_slot INTEGER NULL UNIQUE CHECK (open_slot = 1),
                CHECK ((status = 'ended') = (open_slot IS NULL))
            )
            """,
        ),
        down=("DROP TABLE activities",),
    ),
    Migration(
        version="20240326125937",
        description="Create intermissions table",
        up=(
            """
            CREATE TABLE intermissions (
                guid TEXT PRIMARY KEY,
                activity_guid TEXT NOT NULL REFERENCES activities(guid) ON DELETE CASCADE,
                begin_time TEXT NOT NULL,
                end_time TEXT NULL,
                duration INTEGER NULL,
                reason TEXT NULL,
                action TEXT NOT NULL CHECK (action IN ('extend', 'new'))
            )
            """,
            "CREATE INDEX idx_intermissions_activity ON intermissions(activity_guid)",
        ),
        down=(
            "DROP INDEX idx_intermissions_activity",
            "DROP TABLE intermissions",
        ),
    ),
    Migration(
        version="20240326130013",
        description="Create activities_tags join table",
        up=(
            """
            CREATE TABLE activities_tags (
                guid TEXT PRIMARY KEY,
                activity_guid TEXT NOT NULL REFERENCES activities(guid) ON DELETE CASCADE,
                tag_guid TEXT NOT NULL REFERENCES tags(guid),
                UNIQUE (activity_guid, tag_guid)
            )
            """,
            "CREATE INDEX idx_activities_tags_tag ON activities_tags(tag_guid)",
        ),
        down=(
            "DROP INDEX idx_activities_tags_tag",
            "DROP TABLE activities_tags",
        ),
    ),
    Migration(
        version="20240402091500",
        description="Index activities by status and begin time",
        up=(
            "CREATE INDEX idx_activities_status ON activities(status)",
            "CREATE INDEX idx_activities_begin ON activities(begin_time)",
        ),
        down=(
            "DROP INDEX idx_activities_begin",
            "DROP INDEX idx_activities_status",
        ),
    ),
)


def _validate_sequence(migrations: Sequence[Migration]) -> None:
    versions = [m.version for m in migrations]
    for earlier, later in zip(versions, versions[1:], strict=False):
        if later <= earlier:
            raise SchemaVersionMismatchError(
                "Migration versions must be strictly increasing",
                {"version": later, "after": earlier},
            )


class MigrationRunner:
    """Applies and reverts ``MIGRATIONS`` against one connection.

    The connection must be in autocommit mode (``isolation_level=None``) so
    the runner controls transaction boundaries itself.
    """

    def __init__(self, conn: sqlite3.Connection, migrations: Sequence[Migration] = MIGRATIONS):
        _validate_sequence(migrations)
        self._conn = conn
        self._migrations = tuple(migrations)
        self._ledger: Repository[AppliedMigration] = Repository(conn, EntityKind.SCHEMA_MIGRATION)

    @property
    def known_versions(self) -> list[str]:
        return [m.version for m in self._migrations]

    @property
    def latest_version(self) -> str | None:
        return self._migrations[-1].version if self._migrations else None

    def applied_versions(self) -> list[str]:
        """Versions recorded in the ledger, ascending."""
        self._conn.execute(LEDGER_SQL)
        return sorted(entry.version for entry in self._ledger.read_all())

    def _check_ledger(self, applied: list[str]) -> None:
        known = self.known_versions
        unknown = [v for v in applied if v not in known]
        if unknown:
            raise SchemaVersionMismatchError(
                "Database schema is newer than this version of pace",
                {"unknown_versions": ",".join(unknown)},
            )
        if applied != known[: len(applied)]:
            raise SchemaVersionMismatchError(
                "Migration ledger has gaps",
                {"applied": ",".join(applied)},
            )

    def pending(self) -> list[Migration]:
        """Known migrations not applied yet, in ascending order."""
        applied = self.applied_versions()
        self._check_ledger(applied)
        return list(self._migrations[len(applied) :])

    def is_current(self) -> bool:
        return not self.pending()

    def verify(self) -> None:
        """Fail unless the ledger matches the known set exactly."""
        pending = self.pending()
        if pending:
            raise SchemaVersionMismatchError(
                "Database schema is behind; run migrations first",
                {"pending": ",".join(m.version for m in pending)},
            )

    def run(self) -> list[str]:
        """Apply every pending migration.

        Returns:
            Versions applied by this call (empty when already up to date).

        Raises:
            MigrationFailedError: When a migration fails. Earlier migrations of
                this run stay committed; the failing one is rolled back.
        """
        applied_now: list[str] = []
        for migration in self.pending():
            if self._apply(migration):
                applied_now.append(migration.version)

        if applied_now:
            logger.info(f"Applied {len(applied_now)} migration(s), schema at {applied_now[-1]}")
        else:
            logger.debug("Schema up to date, no migrations applied")
        return applied_now

    def _apply(self, migration: Migration) -> bool:
        conn = self._conn
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise MigrationFailedError("Could not lock database", migration.version, e) from e

        try:
            # Another process may have applied it while we waited for the lock
            if migration.version in {entry.version for entry in self._ledger.read_all()}:
                conn.execute("ROLLBACK")
                return False

            logger.info(f"Applying migration {migration.version}: {migration.description}")
            for statement in migration.up:
                conn.execute(statement)
            self._ledger.create(
                AppliedMigration(version=migration.version, applied_at=PaceDateTime.now("UTC"))
            )
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            conn.execute("ROLLBACK")
            logger.error(f"Migration {migration.version} failed: {e}", exc_info=True)
            raise MigrationFailedError("Migration failed", migration.version, e) from e
        return True

    def rollback(self, target_version: str | None = None) -> list[str]:
        """Revert applied migrations newer than ``target_version``, newest first.

        ``None`` reverts everything.

        Returns:
            Versions reverted by this call.
        """
        applied = self.applied_versions()
        self._check_ledger(applied)
        if target_version is not None and target_version not in self.known_versions:
            raise SchemaVersionMismatchError(
                "Unknown migration version", {"version": target_version}
            )

        reverted: list[str] = []
        by_version = {m.version: m for m in self._migrations}
        for version in reversed(applied):
            if target_version is not None and version <= target_version:
                break
            self._revert(by_version[version])
            reverted.append(version)

        if reverted:
            logger.info(f"Reverted {len(reverted)} migration(s)")
        return reverted

    def _revert(self, migration: Migration) -> None:
        conn = self._conn
        try:
            conn.execute("BEGIN IMMEDIATE")
            logger.info(f"Reverting migration {migration.version}: {migration.description}")
            for statement in migration.down:
                conn.execute(statement)
            conn.execute(
                "DELETE FROM schema_migrations WHERE version = ?",
                (migration.version,),
            )
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.error(f"Reverting {migration.version} failed: {e}", exc_info=True)
            raise MigrationFailedError("Migration rollback failed", migration.version, e) from e
