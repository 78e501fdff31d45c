"""Tests for domain entities and worked-duration accounting."""

from datetime import timedelta

import pytest

from pace_tracker.exceptions import InconsistentTimestampsError, NegativeDurationError
from pace_tracker.models.entities import Activity, Description, Intermission, Tag
from pace_tracker.models.enums import ActivityStatus, IntermissionAction


def _activity(at, begin: str = "09:00", end: str | None = None) -> Activity:
    return Activity(
        description=Description(text="write docs"),
        begin=at(begin),
        end=at(end) if end else None,
        status=ActivityStatus.ENDED if end else ActivityStatus.ACTIVE,
    )


def _pause(activity: Activity, at, begin: str, end: str | None) -> Intermission:
    return Intermission(activity_id=activity.guid, begin=at(begin), end=at(end) if end else None)


class TestActivity:
    def test_end_before_begin_rejected(self, at) -> None:
        with pytest.raises(NegativeDurationError):
            _activity(at, begin="10:00", end="09:00")

    def test_tags_become_a_frozenset(self, at) -> None:
        tag = Tag(name="docs")
        activity = Activity(
            description=Description(text="x"),
            begin=at("09:00"),
            tags=[tag, tag],  # type: ignore[arg-type]
        )
        assert activity.tags == frozenset({tag})
        assert activity.tag_ids == frozenset({tag.guid})

    def test_open_intermission_is_most_recent_open_one(self, at) -> None:
        activity = _activity(at)
        first = _pause(activity, at, "09:10", "09:20")
        second = _pause(activity, at, "09:30", None)
        activity.intermissions = [first, second]
        assert activity.open_intermission() == second

    def test_no_open_intermission(self, at) -> None:
        activity = _activity(at)
        activity.intermissions = [_pause(activity, at, "09:10", "09:20")]
        assert activity.open_intermission() is None

    def test_status_is_open(self) -> None:
        assert ActivityStatus.ACTIVE.is_open
        assert ActivityStatus.HELD.is_open
        assert not ActivityStatus.ENDED.is_open


class TestWorkedDuration:
    def test_without_intermissions_equals_elapsed(self, at) -> None:
        activity = _activity(at, end="12:00")
        assert activity.worked_duration().value == timedelta(hours=3)

    def test_subtracts_every_intermission(self, at) -> None:
        activity = _activity(at, end="12:00")
        activity.intermissions = [
            _pause(activity, at, "09:30", "10:00"),
            _pause(activity, at, "11:00", "11:15"),
        ]
        assert activity.worked_duration().value == timedelta(hours=2, minutes=15)

    def test_zero_length_intermissions(self, at) -> None:
        activity = _activity(at, end="10:00")
        activity.intermissions = [
            _pause(activity, at, "09:15", "09:15"),
            _pause(activity, at, "09:45", "09:45"),
        ]
        assert activity.worked_duration().value == timedelta(hours=1)

    def test_unordered_intermissions(self, at) -> None:
        activity = _activity(at, end="12:00")
        activity.intermissions = [
            _pause(activity, at, "11:00", "11:30"),
            _pause(activity, at, "09:30", "10:00"),
        ]
        assert activity.worked_duration().value == timedelta(hours=2)

    def test_open_activity_measured_up_to_at(self, at) -> None:
        activity = _activity(at)
        activity.intermissions = [_pause(activity, at, "09:30", None)]
        assert activity.worked_duration(at("10:00")).value == timedelta(minutes=30)

    def test_intermission_before_begin_is_inconsistent(self, at) -> None:
        activity = _activity(at, end="12:00")
        activity.intermissions = [_pause(activity, at, "08:30", "09:30")]
        with pytest.raises(InconsistentTimestampsError):
            activity.worked_duration()

    def test_overlapping_intermissions_are_inconsistent(self, at) -> None:
        activity = _activity(at, end="12:00")
        activity.intermissions = [
            _pause(activity, at, "09:30", "10:30"),
            _pause(activity, at, "10:00", "11:00"),
        ]
        with pytest.raises(InconsistentTimestampsError):
            activity.worked_duration()

    def test_intermission_after_end_is_inconsistent(self, at) -> None:
        activity = _activity(at, end="10:00")
        activity.intermissions = [_pause(activity, at, "09:30", "10:30")]
        with pytest.raises(InconsistentTimestampsError):
            activity.worked_duration()


class TestIntermission:
    def test_closed_at_keeps_identity(self, at) -> None:
        pause = Intermission(
            activity_id=_activity(at).guid,
            begin=at("09:30"),
            reason="lunch",
            action=IntermissionAction.NEW,
        )
        closed = pause.closed_at(at("10:00"))
        assert closed.guid == pause.guid
        assert closed.reason == "lunch"
        assert not closed.is_open
        assert closed.duration().value == timedelta(minutes=30)

    def test_closed_before_begin_rejected(self, at) -> None:
        pause = Intermission(activity_id=_activity(at).guid, begin=at("09:30"))
        with pytest.raises(NegativeDurationError):
            pause.closed_at(at("09:00"))
