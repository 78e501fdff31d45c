"""Parameter objects for lifecycle transitions.

Every field has a documented default; ``None`` for a time field means
"now" as reported by the service clock at the moment the transition runs.
"""

from dataclasses import dataclass, field

from pace_tracker.models.enums import IntermissionAction
from pace_tracker.models.guid import Guid
from pace_tracker.models.time import PaceDateTime


@dataclass(frozen=True)
class BeginOptions:
    """Parameters for starting an activity.

    Attributes:
        description: What the activity is about (required, non-empty).
        begin_time: Start of the activity. Default: now.
        category: Optional category name.
        tags: Tag names to attach. Default: none.
        force: End any open activity at ``begin_time`` instead of failing.
    """

    description: str
    begin_time: PaceDateTime | None = None
    category: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    force: bool = False


@dataclass(frozen=True)
class HoldOptions:
    """Parameters for pausing the current activity.

    Attributes:
        action: ``EXTEND`` keeps an already open intermission running,
            ``NEW`` closes it and starts another. Default: ``EXTEND``.
        begin_time: Start of the intermission. Default: now.
        reason: Optional note on why the activity was paused.
        activity_id: Target a specific activity instead of the current one.
    """

    action: IntermissionAction = IntermissionAction.EXTEND
    begin_time: PaceDateTime | None = None
    reason: str | None = None
    activity_id: Guid | None = None


@dataclass(frozen=True)
class ResumeOptions:
    """Parameters for resuming a held activity.

    Attributes:
        resume_time: When the open intermission ends. Default: now.
        activity_id: Target a specific activity instead of the current one.
    """

    resume_time: PaceDateTime | None = None
    activity_id: Guid | None = None


@dataclass(frozen=True)
class EndOptions:
    """Parameters for ending an activity.

    Attributes:
        end_time: End of the activity (and of any open intermission). Default: now.
        activity_id: Target a specific activity instead of the current one.
    """

    end_time: PaceDateTime | None = None
    activity_id: Guid | None = None


@dataclass(frozen=True)
class AdjustOptions:
    """Parameters for editing the current activity in place.

    Attributes:
        description: New description text. Default: unchanged.
        category: New category name. Default: unchanged.
        tags: Tag names to add, or the full tag set with ``override_tags``.
        override_tags: Replace the tag set instead of adding to it.
        begin_time: New begin time. Default: unchanged.
    """

    description: str | None = None
    category: str | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    override_tags: bool = False
    begin_time: PaceDateTime | None = None
