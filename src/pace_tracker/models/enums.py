"""Enum types for pace-tracker.

Using str-valued enums keeps the stored representation readable while
giving the lifecycle engine exhaustive, typed states.
"""

from enum import Enum


class ActivityStatus(str, Enum):
    """Lifecycle state of an activity. ``ENDED`` is terminal."""

    ACTIVE = "active"
    HELD = "held"
    ENDED = "ended"

    @property
    def is_open(self) -> bool:
        """Whether an activity in this state counts as the current activity."""
        return self is not ActivityStatus.ENDED

    @classmethod
    def values(cls) -> list[str]:
        """Return list of all status values."""
        return [s.value for s in cls]


class IntermissionAction(str, Enum):
    """What ``hold`` does when the activity already has an open intermission."""

    EXTEND = "extend"  # keep the open intermission running
    NEW = "new"  # close it and start a fresh one

    @classmethod
    def values(cls) -> list[str]:
        """Return list of all actions."""
        return [a.value for a in cls]


class TagDeletePolicy(str, Enum):
    """How deleting a tag that activities still reference is handled."""

    RESTRICT = "restrict"
    CASCADE = "cascade"

    @classmethod
    def values(cls) -> list[str]:
        """Return list of all policies."""
        return [p.value for p in cls]


class EntityKind(str, Enum):
    """Closed set of persisted entity variants, one row mapping each."""

    DESCRIPTION = "description"
    CATEGORY = "category"
    TAG = "tag"
    ACTIVITY = "activity"
    INTERMISSION = "intermission"
    ACTIVITY_TAG = "activity_tag"
    SCHEMA_MIGRATION = "schema_migration"
