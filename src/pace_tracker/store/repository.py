"""Generic repository over one entity kind.

Repositories run plain statements on the connection they are given and
never commit: the unit of work that owns the connection decides whether
everything written through them lands or is rolled back together.

``read`` returns ``None`` for a missing row and ``update``/``delete``
return ``False``; hard failures surface as exceptions.
"""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pace_tracker.exceptions import ReferentialIntegrityViolationError
from pace_tracker.models.entities import Category, Description, Tag
from pace_tracker.models.enums import EntityKind, TagDeletePolicy
from pace_tracker.models.guid import Guid
from pace_tracker.store.mapping import EntityMapping, mapping_for

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Repository(Generic[T]):
    """CRUD access to the table registered for ``kind``."""

    def __init__(self, conn: sqlite3.Connection, kind: EntityKind):
        self._conn = conn
        self.mapping: EntityMapping = mapping_for(kind)

    @property
    def table(self) -> str:
        return self.mapping.table

    def select(self, where: str = "", params: tuple[Any, ...] = ()) -> list[T]:
        columns = ", ".join(self.mapping.columns)
        sql = f"SELECT {columns} FROM {self.table}"
        if where:
            sql += f" WHERE {where}"
        rows = self._conn.execute(sql, params).fetchall()
        return [self.mapping.from_row(row) for row in rows]

    def read(self, guid: Guid) -> T | None:
        results = self.select(f"{self.mapping.key_column} = ?", (str(guid),))
        return results[0] if results else None

    def read_all(self) -> list[T]:
        return self.select()

    def create(self, entity: T) -> Guid:
        row = self.mapping.to_row(entity)
        columns = ", ".join(self.mapping.columns)
        placeholders = ", ".join(f":{c}" for c in self.mapping.columns)
        self._conn.execute(f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})", row)
        logger.debug(f"Created {self.mapping.kind.value} {row['guid']}")
        return Guid.parse(row["guid"])

    def update(self, guid: Guid, entity: T) -> bool:
        row = self.mapping.to_row(entity)
        row[self.mapping.key_column] = str(guid)
        assignments = ", ".join(
            f"{c} = :{c}" for c in self.mapping.columns if c != self.mapping.key_column
        )
        cursor = self._conn.execute(
            f"UPDATE {self.table} SET {assignments} "
            f"WHERE {self.mapping.key_column} = :{self.mapping.key_column}",
            row,
        )
        return cursor.rowcount > 0

    def delete(self, guid: Guid) -> bool:
        cursor = self._conn.execute(
            f"DELETE FROM {self.table} WHERE {self.mapping.key_column} = ?", (str(guid),)
        )
        deleted = cursor.rowcount > 0
        if deleted:
            logger.debug(f"Deleted {self.mapping.kind.value} {guid}")
        return deleted

    def exists(self, guid: Guid) -> bool:
        row = self._conn.execute(
            f"SELECT 1 FROM {self.table} WHERE {self.mapping.key_column} = ?", (str(guid),)
        ).fetchone()
        return row is not None


class LookupRepository(Repository[T], ABC):
    """Repository for deduplicated text lookups (descriptions, categories, tags)."""

    def __init__(self, conn: sqlite3.Connection, kind: EntityKind, text_column: str):
        super().__init__(conn, kind)
        self._text_column = text_column

    def find_by_text(self, text: str) -> T | None:
        results = self.select(f"{self._text_column} = ?", (text,))
        return results[0] if results else None

    def ensure(self, entity: T) -> T:
        """Insert ``entity`` unless a row with its guid exists already."""
        guid: Guid = entity.guid  # type: ignore[attr-defined]
        if not self.exists(guid):
            self.create(entity)
        return entity

    @abstractmethod
    def orphans(self) -> list[Guid]:
        """Guids of rows no activity refers to."""


class DescriptionRepository(LookupRepository[Description]):
    def __init__(self, conn: sqlite3.Connection):
        super().__init__(conn, EntityKind.DESCRIPTION, "description")

    def get_or_create(self, text: str) -> Description:
        existing = self.find_by_text(text)
        if existing is not None:
            return existing
        description = Description(text=text)
        self.create(description)
        return description

    def orphans(self) -> list[Guid]:
        rows = self._conn.execute(
            "SELECT guid FROM descriptions WHERE guid NOT IN "
            "(SELECT description_guid FROM activities)"
        ).fetchall()
        return [Guid.parse(row[0]) for row in rows]


class CategoryRepository(LookupRepository[Category]):
    def __init__(self, conn: sqlite3.Connection):
        super().__init__(conn, EntityKind.CATEGORY, "category")

    def get_or_create(self, name: str) -> Category:
        existing = self.find_by_text(name)
        if existing is not None:
            return existing
        category = Category(name=name)
        self.create(category)
        return category

    def orphans(self) -> list[Guid]:
        rows = self._conn.execute(
            "SELECT guid FROM categories WHERE guid NOT IN "
            "(SELECT category_guid FROM activities WHERE category_guid IS NOT NULL)"
        ).fetchall()
        return [Guid.parse(row[0]) for row in rows]


class TagRepository(LookupRepository[Tag]):
    """Tags, with deletion governed by a single ``TagDeletePolicy`` switch."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        delete_policy: TagDeletePolicy = TagDeletePolicy.RESTRICT,
    ):
        super().__init__(conn, EntityKind.TAG, "tag")
        self.delete_policy = delete_policy

    def get_or_create(self, name: str) -> Tag:
        existing = self.find_by_text(name)
        if existing is not None:
            return existing
        tag = Tag(name=name)
        self.create(tag)
        return tag

    def usage_count(self, guid: Guid) -> int:
        row = self._conn.execute(
            "SELECT COUNT(*) FROM activities_tags WHERE tag_guid = ?", (str(guid),)
        ).fetchone()
        return int(row[0])

    def delete(self, guid: Guid) -> bool:
        """Delete a tag.

        Raises:
            ReferentialIntegrityViolationError: If activities still carry the
                tag and the policy is ``RESTRICT``.
        """
        in_use = self.usage_count(guid)
        if in_use:
            if self.delete_policy is TagDeletePolicy.RESTRICT:
                raise ReferentialIntegrityViolationError(
                    f"Tag {guid} is still attached to {in_use} activities",
                    table=self.table,
                )
            self._conn.execute("DELETE FROM activities_tags WHERE tag_guid = ?", (str(guid),))
            logger.info(f"Unlinked tag {guid} from {in_use} activities (cascade)")
        return super().delete(guid)

    def orphans(self) -> list[Guid]:
        rows = self._conn.execute(
            "SELECT guid FROM tags WHERE guid NOT IN (SELECT tag_guid FROM activities_tags)"
        ).fetchall()
        return [Guid.parse(row[0]) for row in rows]
