"""Activity lifecycle service.

Implements the state machine for activities::

    begin -> ACTIVE <-> HELD -> ENDED
               |                 ^
               +-----------------+

Every transition loads the target activity, validates the move, and writes
the updated activity (with its intermissions and tag links) back inside one
unit of work, so a failed transition leaves nothing behind.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import tzinfo
from pathlib import Path

from pace_tracker.exceptions import (
    ActivityAlreadyActiveError,
    ActivityNotFoundError,
    AlreadyEndedError,
    InconsistentTimestampsError,
    NoCurrentActivityError,
    NotActiveError,
    NotHeldError,
    ValidationError,
)
from pace_tracker.models.config import PaceConfig
from pace_tracker.models.entities import Activity, Intermission
from pace_tracker.models.enums import ActivityStatus, IntermissionAction
from pace_tracker.models.guid import Guid
from pace_tracker.models.options import (
    AdjustOptions,
    BeginOptions,
    EndOptions,
    HoldOptions,
    ResumeOptions,
)
from pace_tracker.models.time import PaceDateTime, PaceDuration, TimeRange, parse_time_zone
from pace_tracker.store.core import ActivityStore, UnitOfWork

logger = logging.getLogger(__name__)

Clock = Callable[[], PaceDateTime]


def _clean_names(names: Iterable[str]) -> frozenset[str]:
    return frozenset(name.strip() for name in names if name and name.strip())


def _close_intermissions(activity: Activity, at: PaceDateTime) -> int:
    """Close every open intermission of ``activity`` at ``at``; return how many."""
    closed = 0
    updated: list[Intermission] = []
    for intermission in activity.intermissions:
        if intermission.is_open:
            intermission = intermission.closed_at(at)
            closed += 1
        updated.append(intermission)
    activity.intermissions = updated
    return closed


class ActivityService:
    """Lifecycle engine for activities.

    Args:
        store: Store the service reads and writes through.
        clock: Source of "now" for omitted times. Defaults to the wall clock.
        time_zone: Zone used for "now" when no clock is given.
    """

    def __init__(
        self,
        store: ActivityStore,
        clock: Clock | None = None,
        time_zone: str | tzinfo | None = None,
    ):
        self.store = store
        self.time_zone = parse_time_zone(time_zone) if time_zone is not None else None
        self._clock = clock

    @classmethod
    def from_config(cls, config: PaceConfig, home: Path) -> "ActivityService":
        """Open the configured store and wrap it in a service."""
        store = ActivityStore(
            config.database_path(home),
            tag_delete_policy=config.database.tag_delete_policy,
        )
        return cls(store, time_zone=config.general.time_zone)

    def now(self) -> PaceDateTime:
        if self._clock is not None:
            return self._clock()
        return PaceDateTime.now(self.time_zone)

    def _target(self, uow: UnitOfWork, activity_id: Guid | None) -> Activity:
        if activity_id is not None:
            activity = uow.activities.read(activity_id)
            if activity is None:
                raise ActivityNotFoundError("Activity not found", activity_id)
            return activity

        activity = uow.activities.current()
        if activity is None:
            raise NoCurrentActivityError("No activity is currently active or held")
        return activity

    # =========================================================================
    # Transitions
    # =========================================================================

    def begin(self, options: BeginOptions) -> Activity:
        """Start a new activity.

        Raises:
            ValidationError: If the description is empty.
            ActivityAlreadyActiveError: If another activity is open and
                ``force`` is not set.
            InconsistentTimestampsError: If the begin time lies inside the
                period of an ended activity.
        """
        activity, _ = self.begin_replacing(options)
        return activity

    def begin_replacing(self, options: BeginOptions) -> tuple[Activity, Activity | None]:
        """Start a new activity and report the one a forced begin ended.

        Returns:
            The new activity, and the previously open activity as it was
            ended in the same transaction (None when nothing was open).
        """
        text = options.description.strip() if options.description else ""
        if not text:
            raise ValidationError("Description must not be empty", value=options.description)
        begin_time = options.begin_time or self.now()

        closed: Activity | None = None
        with self.store.unit_of_work() as uow:
            current = uow.activities.current()
            if current is not None:
                if not options.force:
                    raise ActivityAlreadyActiveError(
                        f"'{current.description.text}' is still {current.status.value}",
                        current.guid,
                    )
                logger.warning(
                    f"Force begin: ending {current.status.value} activity {current.guid} "
                    f"('{current.description.text}') at {begin_time.isoformat()}"
                )
                self._finish(current, begin_time)
                uow.activities.update(current.guid, current)
                closed = current

            self._check_not_inside_ended(uow, begin_time)

            category = None
            if options.category and options.category.strip():
                category = uow.categories.get_or_create(options.category.strip())
            names = sorted(_clean_names(options.tags))
            tags = frozenset(uow.tags.get_or_create(name) for name in names)

            activity = Activity(
                description=uow.descriptions.get_or_create(text),
                begin=begin_time,
                category=category,
                tags=tags,
            )
            uow.activities.create(activity)

        logger.info(f"Began activity {activity.guid} ('{text}') at {begin_time.isoformat()}")
        return activity, closed

    def hold(self, options: HoldOptions | None = None) -> Activity:
        """Pause the current (or given) activity.

        On an activity that is already held, ``EXTEND`` leaves the open
        intermission running and writes nothing.

        Raises:
            NotActiveError: If the activity has ended, or is already held
                and ``NEW`` was requested.
            InconsistentTimestampsError: If the hold time lies before the
                activity began or inside an earlier intermission.
        """
        options = options or HoldOptions()
        at = options.begin_time or self.now()

        with self.store.unit_of_work() as uow:
            activity = self._target(uow, options.activity_id)
            if activity.status is ActivityStatus.ENDED:
                raise NotActiveError("Activity has ended and can't be held", activity.guid)

            if activity.status is ActivityStatus.HELD:
                if options.action is IntermissionAction.NEW:
                    raise NotActiveError(
                        "Activity is already held; resume it before a new intermission",
                        activity.guid,
                    )
                logger.info(f"Activity {activity.guid} already held, extending intermission")
                return activity

            self._check_pause_start(activity, at)
            activity.intermissions.append(
                Intermission(
                    activity_id=activity.guid,
                    begin=at,
                    reason=options.reason,
                    action=options.action,
                )
            )
            activity.status = ActivityStatus.HELD
            uow.activities.update(activity.guid, activity)

        logger.info(f"Held activity {activity.guid} at {at.isoformat()}")
        return activity

    def resume(self, options: ResumeOptions | None = None) -> Activity:
        """Resume a held activity, closing its open intermission.

        Raises:
            NotHeldError: If the activity is not held.
        """
        options = options or ResumeOptions()
        at = options.resume_time or self.now()

        with self.store.unit_of_work() as uow:
            activity = self._target(uow, options.activity_id)
            if activity.status is not ActivityStatus.HELD:
                raise NotHeldError(
                    f"Activity is {activity.status.value}, not held", activity.guid
                )
            _close_intermissions(activity, at)
            activity.status = ActivityStatus.ACTIVE
            uow.activities.update(activity.guid, activity)

        logger.info(f"Resumed activity {activity.guid} at {at.isoformat()}")
        return activity

    def end(self, options: EndOptions | None = None) -> Activity:
        """End an active or held activity.

        Raises:
            AlreadyEndedError: If the activity has ended already.
            InconsistentTimestampsError: If the intermissions don't fit the
                resulting period.
        """
        options = options or EndOptions()
        at = options.end_time or self.now()

        with self.store.unit_of_work() as uow:
            activity = self._target(uow, options.activity_id)
            if activity.status is ActivityStatus.ENDED:
                raise AlreadyEndedError("Activity has already ended", activity.guid)
            self._finish(activity, at)
            uow.activities.update(activity.guid, activity)

        logger.info(
            f"Ended activity {activity.guid} at {at.isoformat()}, "
            f"worked {activity.worked_duration()}"
        )
        return activity

    def adjust(self, options: AdjustOptions) -> Activity:
        """Edit the current activity in place.

        Raises:
            NoCurrentActivityError: If no activity is open.
            InconsistentTimestampsError: If the new begin time lies after an
                intermission started.
        """
        with self.store.unit_of_work() as uow:
            activity = self._target(uow, None)

            if options.description is not None:
                text = options.description.strip()
                if not text:
                    raise ValidationError("Description must not be empty", value=text)
                activity.description = uow.descriptions.get_or_create(text)

            if options.category is not None:
                name = options.category.strip()
                activity.category = uow.categories.get_or_create(name) if name else None

            names = _clean_names(options.tags)
            if names or options.override_tags:
                tags = frozenset(uow.tags.get_or_create(name) for name in sorted(names))
                activity.tags = tags if options.override_tags else activity.tags | tags

            if options.begin_time is not None:
                earliest = min((i.begin for i in activity.intermissions), default=None)
                if earliest is not None and options.begin_time > earliest:
                    raise InconsistentTimestampsError(
                        "Begin time would lie after an intermission started",
                        {
                            "activity_id": str(activity.guid),
                            "begin": options.begin_time.isoformat(),
                        },
                    )
                self._check_not_inside_ended(uow, options.begin_time)
                activity.begin = options.begin_time

            uow.activities.update(activity.guid, activity)

        logger.info(f"Adjusted activity {activity.guid}")
        return activity

    @staticmethod
    def _check_not_inside_ended(uow: UnitOfWork, at: PaceDateTime) -> None:
        # Ranges are half-open, so beginning exactly when another ended is fine
        for other in uow.activities.covering(at):
            if other.status is ActivityStatus.ENDED:
                raise InconsistentTimestampsError(
                    f"Begin time lies inside ended activity '{other.description.text}'",
                    {"activity_id": str(other.guid), "at": at.isoformat()},
                )

    @staticmethod
    def _check_pause_start(activity: Activity, at: PaceDateTime) -> None:
        if at < activity.begin:
            raise InconsistentTimestampsError(
                "Intermission can't start before the activity began",
                {"activity_id": str(activity.guid), "at": at.isoformat()},
            )
        for intermission in activity.intermissions:
            if intermission.end is not None and at < intermission.end:
                raise InconsistentTimestampsError(
                    "Intermission would overlap an earlier one",
                    {
                        "activity_id": str(activity.guid),
                        "intermission_id": str(intermission.guid),
                    },
                )

    @staticmethod
    def _finish(activity: Activity, at: PaceDateTime) -> None:
        # Raises NegativeDurationError when ``at`` precedes the begin time
        TimeRange(activity.begin, at)
        _close_intermissions(activity, at)
        activity.end = at
        activity.status = ActivityStatus.ENDED

    # =========================================================================
    # Queries
    # =========================================================================

    def current(self) -> Activity | None:
        with self.store.reader() as uow:
            return uow.activities.current()

    def read(self, guid: Guid) -> Activity:
        """Return one activity.

        Raises:
            ActivityNotFoundError: If no activity has this id.
        """
        with self.store.reader() as uow:
            activity = uow.activities.read(guid)
        if activity is None:
            raise ActivityNotFoundError("Activity not found", guid)
        return activity

    def list_activities(self, time_range: TimeRange | None = None) -> list[Activity]:
        """Activities overlapping ``time_range`` (all when omitted), oldest first."""
        with self.store.reader() as uow:
            if time_range is None:
                return uow.activities.read_all()
            return uow.activities.in_range(time_range)

    def worked_duration(self, activity: Activity, at: PaceDateTime | None = None) -> PaceDuration:
        """Worked time of ``activity``; open periods are measured up to ``at`` (default now)."""
        return activity.worked_duration(at or self.now())

    # =========================================================================
    # Maintenance
    # =========================================================================

    def delete(self, guid: Guid) -> None:
        """Delete an activity with its intermissions and tag links.

        Raises:
            ActivityNotFoundError: If no activity has this id.
        """
        with self.store.unit_of_work() as uow:
            if not uow.activities.delete(guid):
                raise ActivityNotFoundError("Activity not found", guid)
        logger.info(f"Deleted activity {guid}")

    def delete_tag(self, guid: Guid) -> bool:
        """Delete a tag according to the configured tag delete policy.

        Returns:
            False if no tag has this id.

        Raises:
            ReferentialIntegrityViolationError: If the tag is in use and the
                policy is ``restrict``.
        """
        with self.store.unit_of_work() as uow:
            return uow.tags.delete(guid)

    def prune_orphans(self) -> dict[str, int]:
        """Delete descriptions, categories and tags no activity refers to.

        Returns:
            Number of deleted rows per lookup table.
        """
        counts: dict[str, int] = {}
        with self.store.unit_of_work() as uow:
            for table, repo in (
                ("descriptions", uow.descriptions),
                ("categories", uow.categories),
                ("tags", uow.tags),
            ):
                orphans = repo.orphans()
                for guid in orphans:
                    repo.delete(guid)
                counts[table] = len(orphans)

        if any(counts.values()):
            logger.info(f"Pruned orphaned lookups: {counts}")
        return counts
