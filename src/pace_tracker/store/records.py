"""Row-level records for tables that have no direct domain counterpart.

An ``ActivityRecord`` is what the ``activities`` table stores: references to
its lookup rows instead of the lookup values themselves. The activity
repository assembles full ``Activity`` aggregates from these.
"""

from dataclasses import dataclass, field

from pace_tracker.models.enums import ActivityStatus
from pace_tracker.models.guid import Guid
from pace_tracker.models.time import PaceDateTime


@dataclass(frozen=True)
class ActivityRecord:
    """One row of the activities table."""

    guid: Guid
    description_id: Guid
    begin: PaceDateTime
    status: ActivityStatus
    category_id: Guid | None = None
    end: PaceDateTime | None = None
    duration_seconds: int | None = None


@dataclass(frozen=True)
class ActivityTagLink:
    """Join row between an activity and a tag."""

    activity_id: Guid
    tag_id: Guid
    guid: Guid = field(default_factory=Guid.new)


@dataclass(frozen=True)
class AppliedMigration:
    """Ledger row recording one applied schema migration."""

    version: str
    applied_at: PaceDateTime
    guid: Guid = field(default_factory=Guid.new)
