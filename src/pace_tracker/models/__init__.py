"""Domain models for pace-tracker."""

from pace_tracker.models.entities import Activity, Category, Description, Intermission, Tag
from pace_tracker.models.enums import (
    ActivityStatus,
    EntityKind,
    IntermissionAction,
    TagDeletePolicy,
)
from pace_tracker.models.guid import Guid
from pace_tracker.models.options import (
    AdjustOptions,
    BeginOptions,
    EndOptions,
    HoldOptions,
    ResumeOptions,
)
from pace_tracker.models.time import PaceDateTime, PaceDuration, TimeRange, parse_time_zone

__all__ = [
    # Entities
    "Activity",
    "Category",
    "Description",
    "Intermission",
    "Tag",
    # Enums
    "ActivityStatus",
    "EntityKind",
    "IntermissionAction",
    "TagDeletePolicy",
    # Identifiers and time
    "Guid",
    "PaceDateTime",
    "PaceDuration",
    "TimeRange",
    "parse_time_zone",
    # Transition options
    "AdjustOptions",
    "BeginOptions",
    "EndOptions",
    "HoldOptions",
    "ResumeOptions",
]
