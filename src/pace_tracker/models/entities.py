"""Domain entities: activities, intermissions and their lookup values.

Descriptions, categories and tags are deduplicated lookup values: an
activity refers to them by identifier, and the store keeps one row per
distinct text.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

from pace_tracker.exceptions import InconsistentTimestampsError
from pace_tracker.models.enums import ActivityStatus, IntermissionAction
from pace_tracker.models.guid import Guid
from pace_tracker.models.time import PaceDateTime, PaceDuration, TimeRange


@dataclass(frozen=True)
class Description:
    """Free-text description of what an activity is about."""

    text: str
    guid: Guid = field(default_factory=Guid.new)


@dataclass(frozen=True)
class Category:
    """Grouping for activities, e.g. ``development::pace``."""

    name: str
    description: str | None = None
    guid: Guid = field(default_factory=Guid.new)


@dataclass(frozen=True)
class Tag:
    """Label attached to any number of activities."""

    name: str
    guid: Guid = field(default_factory=Guid.new)


@dataclass(frozen=True)
class Intermission:
    """A pause inside an activity's open period."""

    activity_id: Guid
    begin: PaceDateTime
    end: PaceDateTime | None = None
    reason: str | None = None
    action: IntermissionAction = IntermissionAction.NEW
    guid: Guid = field(default_factory=Guid.new)

    def __post_init__(self) -> None:
        # Validates end >= begin
        TimeRange(self.begin, self.end)

    @property
    def is_open(self) -> bool:
        return self.end is None

    @property
    def period(self) -> TimeRange:
        return TimeRange(self.begin, self.end)

    def closed_at(self, at: PaceDateTime) -> Intermission:
        """Return a copy ending at ``at``.

        Raises:
            NegativeDurationError: If ``at`` lies before the intermission began.
        """
        return dataclasses.replace(self, end=at)

    def duration(self, at: PaceDateTime | None = None) -> PaceDuration:
        return self.period.duration(at)


@dataclass
class Activity:
    """A unit of tracked work and its intermissions."""

    description: Description
    begin: PaceDateTime
    category: Category | None = None
    tags: frozenset[Tag] = frozenset()
    end: PaceDateTime | None = None
    status: ActivityStatus = ActivityStatus.ACTIVE
    intermissions: list[Intermission] = field(default_factory=list)
    guid: Guid = field(default_factory=Guid.new)

    def __post_init__(self) -> None:
        # Validates end >= begin
        TimeRange(self.begin, self.end)
        self.tags = frozenset(self.tags)

    @property
    def is_open(self) -> bool:
        return self.status.is_open

    @property
    def tag_ids(self) -> frozenset[Guid]:
        return frozenset(tag.guid for tag in self.tags)

    @property
    def period(self) -> TimeRange:
        return TimeRange(self.begin, self.end)

    def open_intermission(self) -> Intermission | None:
        """Most recent intermission that has not been closed yet."""
        for intermission in reversed(self.intermissions):
            if intermission.is_open:
                return intermission
        return None

    def worked_duration(self, at: PaceDateTime | None = None) -> PaceDuration:
        """Elapsed time minus every intermission.

        Open activities (and open intermissions) are measured up to ``at``,
        defaulting to now.

        Raises:
            NegativeDurationError: If ``at`` lies before the activity began.
            InconsistentTimestampsError: If intermissions fall outside the
                activity period, overlap each other, or outweigh it.
        """
        period_end = self.end or at or PaceDateTime.now()
        elapsed = PaceDuration.between(self.begin, period_end)

        paused = PaceDuration.zero()
        previous_end: PaceDateTime | None = None
        for intermission in sorted(self.intermissions, key=lambda i: i.begin):
            stop = intermission.end or period_end
            if intermission.begin < self.begin or stop > period_end:
                raise InconsistentTimestampsError(
                    "Intermission lies outside the activity period",
                    {"activity_id": str(self.guid), "intermission_id": str(intermission.guid)},
                )
            if previous_end is not None and intermission.begin < previous_end:
                raise InconsistentTimestampsError(
                    "Intermissions overlap",
                    {"activity_id": str(self.guid), "intermission_id": str(intermission.guid)},
                )
            paused = paused + PaceDuration.between(intermission.begin, stop)
            previous_end = stop

        remaining = elapsed.value - paused.value
        if remaining.total_seconds() < 0:
            raise InconsistentTimestampsError(
                "Intermissions exceed the activity duration",
                {"activity_id": str(self.guid)},
            )
        return PaceDuration(remaining)
