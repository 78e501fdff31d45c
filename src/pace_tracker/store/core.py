"""Core ActivityStore class.

Owns the SQLite connection, brings the schema up to date on open, and hands
out units of work: one write transaction with every repository bound to it.
"""

import logging
import sqlite3
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from pace_tracker.constants import DB_BUSY_TIMEOUT_SECONDS, OPEN_SLOT_COLUMN
from pace_tracker.exceptions import (
    ActivityAlreadyActiveError,
    ConstraintViolationError,
    PaceError,
    ReferentialIntegrityViolationError,
    StorageUnavailableError,
)
from pace_tracker.models.enums import TagDeletePolicy
from pace_tracker.store.activities import ActivityRepository
from pace_tracker.store.migrations import MIGRATIONS, Migration, MigrationRunner
from pace_tracker.store.repository import (
    CategoryRepository,
    DescriptionRepository,
    TagRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class UnitOfWork:
    """Repositories sharing one connection and one transaction."""

    conn: sqlite3.Connection
    descriptions: DescriptionRepository
    categories: CategoryRepository
    tags: TagRepository
    activities: ActivityRepository


def translate_error(error: sqlite3.Error, table: str | None = None) -> PaceError:
    """Map a driver error onto the storage error hierarchy."""
    message = str(error)
    if isinstance(error, sqlite3.IntegrityError):
        if "UNIQUE" in message.upper() and OPEN_SLOT_COLUMN in message:
            return ActivityAlreadyActiveError("Another activity is already active or held")
        if "FOREIGN KEY" in message.upper():
            return ReferentialIntegrityViolationError(message, table=table, cause=error)
        return ConstraintViolationError(message, table=table, cause=error)
    return StorageUnavailableError(message, table=table, cause=error)


def connect(db_path: Path) -> sqlite3.Connection:
    """Open an autocommit connection with foreign keys enforced.

    Raises:
        StorageUnavailableError: If the database can't be opened.
    """
    try:
        conn = sqlite3.connect(
            str(db_path),
            timeout=DB_BUSY_TIMEOUT_SECONDS,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA foreign_keys = ON")
    except sqlite3.Error as e:
        logger.error(f"Could not open database {db_path}: {e}")
        raise StorageUnavailableError(f"Could not open database {db_path}", cause=e) from e
    return conn


class ActivityStore:
    """SQLite-backed store for activities.

    Each thread gets its own connection. Connections run in autocommit mode
    and every write goes through ``unit_of_work()``, which opens a
    ``BEGIN IMMEDIATE`` transaction so concurrent writers serialize on the
    database lock instead of failing halfway.
    """

    def __init__(
        self,
        db_path: Path,
        tag_delete_policy: TagDeletePolicy = TagDeletePolicy.RESTRICT,
        auto_migrate: bool = True,
        migrations: Sequence[Migration] = MIGRATIONS,
    ):
        """Open (or create) the store.

        Args:
            db_path: Path to the SQLite database file.
            tag_delete_policy: How deleting a tag still in use is handled.
            auto_migrate: Apply pending migrations on open. When False the
                store only verifies the schema and fails if it is behind.
            migrations: Migration set defining the schema.

        Raises:
            StorageUnavailableError: If the database can't be opened.
            MigrationError: If the schema can't be brought up to date.
        """
        self.db_path = Path(db_path)
        self.tag_delete_policy = tag_delete_policy
        self.auto_migrate = auto_migrate
        self._migrations = tuple(migrations)
        self._local = threading.local()
        self._ensure_schema()

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "conn", None) is None:
            self._local.conn = connect(self.db_path)
        result: sqlite3.Connection = self._local.conn
        return result

    def migration_runner(self) -> MigrationRunner:
        return MigrationRunner(self._get_connection(), self._migrations)

    def _ensure_schema(self) -> None:
        """Apply pending migrations, or only verify them when auto-migrate is off."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        runner = self.migration_runner()
        try:
            if self.auto_migrate:
                runner.run()
            else:
                runner.verify()
        except sqlite3.Error as e:
            logger.error(f"Schema check failed: {e}", exc_info=True)
            raise translate_error(e) from e

    def schema_version(self) -> str | None:
        """Latest applied migration version, or None for an empty ledger."""
        applied = self.migration_runner().applied_versions()
        return applied[-1] if applied else None

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for an immediate write transaction."""
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            logger.error(f"Could not start transaction: {e}")
            raise translate_error(e) from e

        try:
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.error(f"Database transaction error: {e}", exc_info=True)
            raise translate_error(e) from e
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise

    def _bind(self, conn: sqlite3.Connection) -> UnitOfWork:
        descriptions = DescriptionRepository(conn)
        categories = CategoryRepository(conn)
        tags = TagRepository(conn, self.tag_delete_policy)
        return UnitOfWork(
            conn=conn,
            descriptions=descriptions,
            categories=categories,
            tags=tags,
            activities=ActivityRepository(conn, descriptions, categories, tags),
        )

    @contextmanager
    def unit_of_work(self) -> Iterator[UnitOfWork]:
        """Open a write transaction.

        Everything written through the yielded repositories commits together
        when the block exits normally and is rolled back on any exception.
        """
        with self._transaction() as conn:
            yield self._bind(conn)

    @contextmanager
    def reader(self) -> Iterator[UnitOfWork]:
        """Repositories for reads outside a write transaction.

        The reads share one deferred transaction, so every statement in the
        block sees the same snapshot even while other connections commit.
        Inside an open transaction on this thread the block joins it.
        """
        conn = self._get_connection()
        owns_transaction = not conn.in_transaction
        try:
            if owns_transaction:
                conn.execute("BEGIN")
            yield self._bind(conn)
            if owns_transaction:
                conn.execute("COMMIT")
        except sqlite3.Error as e:
            if owns_transaction and conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.error(f"Database read error: {e}", exc_info=True)
            raise translate_error(e) from e
        except Exception:
            if owns_transaction and conn.in_transaction:
                conn.execute("ROLLBACK")
            raise

    def close(self) -> None:
        """Close this thread's connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None
