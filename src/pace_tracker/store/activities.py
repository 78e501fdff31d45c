"""Activity aggregate repository.

An ``Activity`` spans several tables: its own row, the lookup rows it
references, its intermissions and its tag links. This repository reads and
writes the whole aggregate through the connection of the surrounding unit
of work, so a lifecycle transition commits all of it or none of it.
"""

from __future__ import annotations

import logging
import sqlite3

from pace_tracker.exceptions import MalformedRowError
from pace_tracker.models.entities import Activity, Intermission, Tag
from pace_tracker.models.enums import EntityKind
from pace_tracker.models.guid import Guid
from pace_tracker.models.time import PaceDateTime, TimeRange
from pace_tracker.store.records import ActivityRecord, ActivityTagLink
from pace_tracker.store.repository import (
    CategoryRepository,
    DescriptionRepository,
    Repository,
    TagRepository,
)

logger = logging.getLogger(__name__)


def to_record(activity: Activity) -> ActivityRecord:
    """Flatten an activity to its table row."""
    duration = None
    if activity.end is not None:
        duration = activity.worked_duration().whole_seconds
    return ActivityRecord(
        guid=activity.guid,
        description_id=activity.description.guid,
        category_id=activity.category.guid if activity.category else None,
        begin=activity.begin,
        end=activity.end,
        duration_seconds=duration,
        status=activity.status,
    )


class ActivityRepository:
    """Create, read, update and delete whole activities."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        descriptions: DescriptionRepository,
        categories: CategoryRepository,
        tags: TagRepository,
    ):
        self._conn = conn
        self._records: Repository[ActivityRecord] = Repository(conn, EntityKind.ACTIVITY)
        self._intermissions: Repository[Intermission] = Repository(conn, EntityKind.INTERMISSION)
        self._links: Repository[ActivityTagLink] = Repository(conn, EntityKind.ACTIVITY_TAG)
        self._descriptions = descriptions
        self._categories = categories
        self._tags = tags

    # -- reading ------------------------------------------------------------

    def _assemble(self, record: ActivityRecord) -> Activity:
        description = self._descriptions.read(record.description_id)
        if description is None:
            raise MalformedRowError(
                f"Activity {record.guid} references missing description {record.description_id}",
                table="activities",
                column="description_guid",
            )

        category = None
        if record.category_id is not None:
            category = self._categories.read(record.category_id)
            if category is None:
                raise MalformedRowError(
                    f"Activity {record.guid} references missing category {record.category_id}",
                    table="activities",
                    column="category_guid",
                )

        return Activity(
            guid=record.guid,
            description=description,
            category=category,
            tags=frozenset(self._read_tags(record.guid)),
            begin=record.begin,
            end=record.end,
            status=record.status,
            intermissions=self.read_intermissions(record.guid),
        )

    def _read_tags(self, activity_id: Guid) -> list[Tag]:
        rows = self._conn.execute(
            """
            SELECT t.guid, t.tag FROM tags t
            JOIN activities_tags at ON at.tag_guid = t.guid
            WHERE at.activity_guid = ?
            """,
            (str(activity_id),),
        ).fetchall()
        return [self._tags.mapping.from_row(row) for row in rows]

    def read_intermissions(self, activity_id: Guid) -> list[Intermission]:
        """Intermissions of one activity in chronological order."""
        intermissions = self._intermissions.select("activity_guid = ?", (str(activity_id),))
        return sorted(intermissions, key=lambda i: (i.begin, i.guid))

    def read(self, guid: Guid) -> Activity | None:
        record = self._records.read(guid)
        return self._assemble(record) if record is not None else None

    def read_all(self) -> list[Activity]:
        """Every activity, ordered by begin time."""
        activities = [self._assemble(record) for record in self._records.read_all()]
        return sorted(activities, key=lambda a: (a.begin, a.guid))

    def current(self) -> Activity | None:
        """The activity currently active or held, if any."""
        records = self._records.select("open_slot = 1")
        return self._assemble(records[0]) if records else None

    def in_range(self, time_range: TimeRange) -> list[Activity]:
        """Activities whose period overlaps ``time_range``, ordered by begin time."""
        return [a for a in self.read_all() if a.period.overlaps(time_range)]

    def covering(self, moment: PaceDateTime) -> list[Activity]:
        """Activities whose period contains ``moment``."""
        return [a for a in self.read_all() if a.period.contains(moment)]

    # -- writing ------------------------------------------------------------

    def _ensure_lookups(self, activity: Activity) -> None:
        self._descriptions.ensure(activity.description)
        if activity.category is not None:
            self._categories.ensure(activity.category)
        for tag in activity.tags:
            self._tags.ensure(tag)

    def _sync_tags(self, activity: Activity) -> None:
        links = self._links.select("activity_guid = ?", (str(activity.guid),))
        linked = {link.tag_id: link for link in links}
        wanted = activity.tag_ids
        for tag_id, link in linked.items():
            if tag_id not in wanted:
                self._links.delete(link.guid)
        for tag_id in wanted - linked.keys():
            self._links.create(ActivityTagLink(activity_id=activity.guid, tag_id=tag_id))

    def _sync_intermissions(self, activity: Activity) -> None:
        rows = self._intermissions.select("activity_guid = ?", (str(activity.guid),))
        stored = {i.guid for i in rows}
        for intermission in activity.intermissions:
            if intermission.activity_id != activity.guid:
                raise MalformedRowError(
                    f"Intermission {intermission.guid} belongs to {intermission.activity_id}",
                    table="intermissions",
                    column="activity_guid",
                )
            if intermission.guid in stored:
                self._intermissions.update(intermission.guid, intermission)
            else:
                self._intermissions.create(intermission)
        for guid in stored - {i.guid for i in activity.intermissions}:
            self._intermissions.delete(guid)

    def create(self, activity: Activity) -> Guid:
        self._ensure_lookups(activity)
        guid = self._records.create(to_record(activity))
        self._sync_tags(activity)
        self._sync_intermissions(activity)
        logger.debug(f"Stored activity {guid} with {len(activity.tags)} tag(s)")
        return guid

    def update(self, guid: Guid, activity: Activity) -> bool:
        if activity.guid != guid:
            raise ValueError(f"Activity guid {activity.guid} does not match {guid}")
        self._ensure_lookups(activity)
        if not self._records.update(guid, to_record(activity)):
            return False
        self._sync_tags(activity)
        self._sync_intermissions(activity)
        return True

    def delete(self, guid: Guid) -> bool:
        """Delete an activity with its intermissions and tag links."""
        if not self._records.exists(guid):
            return False
        self._conn.execute("DELETE FROM activities_tags WHERE activity_guid = ?", (str(guid),))
        self._conn.execute("DELETE FROM intermissions WHERE activity_guid = ?", (str(guid),))
        return self._records.delete(guid)
