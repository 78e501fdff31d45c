"""Row <-> entity conversions.

One (to_row, from_row) pair per entity kind, registered in ``MAPPINGS`` and
addressed by ``EntityKind``. Every column has an explicit conversion in both
directions; a NULL where a value is required, a value of the wrong type, or
unparseable text raises ``MalformedRowError``.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from pace_tracker.exceptions import InvalidGuidError, InvalidTimeInputError, MalformedRowError
from pace_tracker.models.entities import Category, Description, Intermission, Tag
from pace_tracker.models.enums import ActivityStatus, EntityKind, IntermissionAction
from pace_tracker.models.guid import Guid
from pace_tracker.models.time import PaceDateTime
from pace_tracker.store.records import ActivityRecord, ActivityTagLink, AppliedMigration

E = TypeVar("E", bound=Enum)

Row = dict[str, Any]


@dataclass(frozen=True)
class EntityMapping:
    """Table layout and conversion pair for one entity kind."""

    kind: EntityKind
    table: str
    columns: tuple[str, ...]
    to_row: Callable[[Any], Row]
    from_row: Callable[[sqlite3.Row], Any]
    key_column: str = "guid"


# =============================================================================
# Column readers
# =============================================================================


def _value(row: sqlite3.Row, table: str, column: str) -> Any:
    if column not in row.keys():
        raise MalformedRowError("Missing column", table=table, column=column)
    return row[column]


def _text(row: sqlite3.Row, table: str, column: str) -> str:
    value = _value(row, table, column)
    if value is None:
        raise MalformedRowError("Unexpected NULL", table=table, column=column)
    if not isinstance(value, str):
        raise MalformedRowError(
            f"Expected text, got {type(value).__name__}", table=table, column=column
        )
    return value


def _optional_text(row: sqlite3.Row, table: str, column: str) -> str | None:
    if _value(row, table, column) is None:
        return None
    return _text(row, table, column)


def _guid(row: sqlite3.Row, table: str, column: str) -> Guid:
    try:
        return Guid.parse(_text(row, table, column))
    except InvalidGuidError as e:
        raise MalformedRowError(f"Invalid guid: {e}", table=table, column=column) from e


def _optional_guid(row: sqlite3.Row, table: str, column: str) -> Guid | None:
    if _value(row, table, column) is None:
        return None
    return _guid(row, table, column)


def _timestamp(row: sqlite3.Row, table: str, column: str) -> PaceDateTime:
    try:
        return PaceDateTime.parse(_text(row, table, column))
    except InvalidTimeInputError as e:
        raise MalformedRowError(f"Invalid timestamp: {e}", table=table, column=column) from e


def _optional_timestamp(row: sqlite3.Row, table: str, column: str) -> PaceDateTime | None:
    if _value(row, table, column) is None:
        return None
    return _timestamp(row, table, column)


def _optional_int(row: sqlite3.Row, table: str, column: str) -> int | None:
    value = _value(row, table, column)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedRowError(
            f"Expected integer, got {type(value).__name__}", table=table, column=column
        )
    return value


def _enum(row: sqlite3.Row, table: str, column: str, enum_type: type[E]) -> E:
    raw = _text(row, table, column)
    try:
        return enum_type(raw)
    except ValueError as e:
        raise MalformedRowError(f"Unknown value '{raw}'", table=table, column=column) from e


def _optional_timestamp_text(value: PaceDateTime | None) -> str | None:
    return value.isoformat() if value is not None else None


# =============================================================================
# Conversion pairs
# =============================================================================


def description_to_row(entity: Description) -> Row:
    return {"guid": str(entity.guid), "description": entity.text}


def description_from_row(row: sqlite3.Row) -> Description:
    table = "descriptions"
    return Description(text=_text(row, table, "description"), guid=_guid(row, table, "guid"))


def category_to_row(entity: Category) -> Row:
    return {
        "guid": str(entity.guid),
        "category": entity.name,
        "description": entity.description,
    }


def category_from_row(row: sqlite3.Row) -> Category:
    table = "categories"
    return Category(
        name=_text(row, table, "category"),
        description=_optional_text(row, table, "description"),
        guid=_guid(row, table, "guid"),
    )


def tag_to_row(entity: Tag) -> Row:
    return {"guid": str(entity.guid), "tag": entity.name}


def tag_from_row(row: sqlite3.Row) -> Tag:
    table = "tags"
    return Tag(name=_text(row, table, "tag"), guid=_guid(row, table, "guid"))


def activity_to_row(record: ActivityRecord) -> Row:
    return {
        "guid": str(record.guid),
        "description_guid": str(record.description_id),
        "category_guid": str(record.category_id) if record.category_id else None,
        "begin_time": record.begin.isoformat(),
        "end_time": _optional_timestamp_text(record.end),
        "duration": record.duration_seconds,
        "status": record.status.value,
        # NULL for ended activities; the UNIQUE constraint allows one open row
        "open_slot": 1 if record.status.is_open else None,
    }


def activity_from_row(row: sqlite3.Row) -> ActivityRecord:
    table = "activities"
    status = _enum(row, table, "status", ActivityStatus)
    open_slot = _optional_int(row, table, "open_slot")
    if (open_slot == 1) != status.is_open:
        raise MalformedRowError(
            f"open_slot={open_slot} contradicts status '{status.value}'",
            table=table,
            column="open_slot",
        )
    begin = _timestamp(row, table, "begin_time")
    end = _optional_timestamp(row, table, "end_time")
    if end is not None and end < begin:
        raise MalformedRowError("end_time lies before begin_time", table=table, column="end_time")
    return ActivityRecord(
        guid=_guid(row, table, "guid"),
        description_id=_guid(row, table, "description_guid"),
        category_id=_optional_guid(row, table, "category_guid"),
        begin=begin,
        end=end,
        duration_seconds=_optional_int(row, table, "duration"),
        status=status,
    )


def intermission_to_row(entity: Intermission) -> Row:
    duration = entity.duration().whole_seconds if entity.end is not None else None
    return {
        "guid": str(entity.guid),
        "activity_guid": str(entity.activity_id),
        "begin_time": entity.begin.isoformat(),
        "end_time": _optional_timestamp_text(entity.end),
        "duration": duration,
        "reason": entity.reason,
        "action": entity.action.value,
    }


def intermission_from_row(row: sqlite3.Row) -> Intermission:
    table = "intermissions"
    begin = _timestamp(row, table, "begin_time")
    end = _optional_timestamp(row, table, "end_time")
    if end is not None and end < begin:
        raise MalformedRowError("end_time lies before begin_time", table=table, column="end_time")
    return Intermission(
        activity_id=_guid(row, table, "activity_guid"),
        begin=begin,
        end=end,
        reason=_optional_text(row, table, "reason"),
        action=_enum(row, table, "action", IntermissionAction),
        guid=_guid(row, table, "guid"),
    )


def activity_tag_to_row(link: ActivityTagLink) -> Row:
    return {
        "guid": str(link.guid),
        "activity_guid": str(link.activity_id),
        "tag_guid": str(link.tag_id),
    }


def activity_tag_from_row(row: sqlite3.Row) -> ActivityTagLink:
    table = "activities_tags"
    return ActivityTagLink(
        activity_id=_guid(row, table, "activity_guid"),
        tag_id=_guid(row, table, "tag_guid"),
        guid=_guid(row, table, "guid"),
    )


def migration_to_row(entry: AppliedMigration) -> Row:
    return {
        "guid": str(entry.guid),
        "version": entry.version,
        "applied_at": entry.applied_at.isoformat(),
    }


def migration_from_row(row: sqlite3.Row) -> AppliedMigration:
    table = "schema_migrations"
    return AppliedMigration(
        version=_text(row, table, "version"),
        applied_at=_timestamp(row, table, "applied_at"),
        guid=_guid(row, table, "guid"),
    )


MAPPINGS: dict[EntityKind, EntityMapping] = {
    EntityKind.DESCRIPTION: EntityMapping(
        kind=EntityKind.DESCRIPTION,
        table="descriptions",
        columns=("guid", "description"),
        to_row=description_to_row,
        from_row=description_from_row,
    ),
    EntityKind.CATEGORY: EntityMapping(
        kind=EntityKind.CATEGORY,
        table="categories",
        columns=("guid", "category", "description"),
        to_row=category_to_row,
        from_row=category_from_row,
    ),
    EntityKind.TAG: EntityMapping(
        kind=EntityKind.TAG,
        table="tags",
        columns=("guid", "tag"),
        to_row=tag_to_row,
        from_row=tag_from_row,
    ),
    EntityKind.ACTIVITY: EntityMapping(
        kind=EntityKind.ACTIVITY,
        table="activities",
        columns=(
            "guid",
            "description_guid",
            "category_guid",
            "begin_time",
            "end_time",
            "duration",
            "status",
            "open_slot",
        ),
        to_row=activity_to_row,
        from_row=activity_from_row,
    ),
    EntityKind.INTERMISSION: EntityMapping(
        kind=EntityKind.INTERMISSION,
        table="intermissions",
        columns=(
            "guid",
            "activity_guid",
            "begin_time",
            "end_time",
            "duration",
            "reason",
            "action",
        ),
        to_row=intermission_to_row,
        from_row=intermission_from_row,
    ),
    EntityKind.ACTIVITY_TAG: EntityMapping(
        kind=EntityKind.ACTIVITY_TAG,
        table="activities_tags",
        columns=("guid", "activity_guid", "tag_guid"),
        to_row=activity_tag_to_row,
        from_row=activity_tag_from_row,
    ),
    EntityKind.SCHEMA_MIGRATION: EntityMapping(
        kind=EntityKind.SCHEMA_MIGRATION,
        table="schema_migrations",
        columns=("guid", "version", "applied_at"),
        to_row=migration_to_row,
        from_row=migration_from_row,
    ),
}


def mapping_for(kind: EntityKind) -> EntityMapping:
    """Return the mapping registered for ``kind``."""
    return MAPPINGS[kind]
