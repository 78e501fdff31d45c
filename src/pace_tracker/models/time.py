"""Time model: zone-aware timestamps, durations and time ranges.

All comparisons and arithmetic normalize to UTC first, so two timestamps
written with different offsets compare by the instant they denote.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta, timezone, tzinfo
from functools import total_ordering
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pace_tracker.constants import TIME_OF_DAY_FORMATS, UTC_ALIASES
from pace_tracker.exceptions import (
    InvalidTimeInputError,
    InvalidTimeZoneError,
    NegativeDurationError,
)

_OFFSET_PATTERN = re.compile(r"^(?:UTC|GMT)?([+-])(\d{1,2})(?::?(\d{2}))?$", re.IGNORECASE)


def parse_time_zone(value: str | tzinfo) -> tzinfo:
    """Resolve an IANA zone name or a fixed offset.

    Accepts ``Europe/Berlin``, ``UTC``/``Z``, ``+02:00``, ``-0530``, ``UTC+1``.

    Raises:
        InvalidTimeZoneError: If the value is not a known zone or a valid offset.
    """
    if isinstance(value, tzinfo):
        return value
    if not isinstance(value, str) or not value.strip():
        raise InvalidTimeZoneError("Time zone must be a non-empty string", value=value)

    text = value.strip()
    if text.lower() in UTC_ALIASES:
        return UTC

    match = _OFFSET_PATTERN.match(text)
    if match:
        sign, hours, minutes = match.groups()
        hours_int = int(hours)
        minutes_int = int(minutes or 0)
        if hours_int > 23 or minutes_int > 59:
            raise InvalidTimeZoneError("Offset out of range", value=value)
        offset = timedelta(hours=hours_int, minutes=minutes_int)
        return timezone(-offset if sign == "-" else offset)

    try:
        return ZoneInfo(text)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimeZoneError(f"Unknown time zone: {text}", value=value) from e


def local_time_zone() -> tzinfo:
    """Return the system's current local offset."""
    local = datetime.now().astimezone().tzinfo
    return local if local is not None else UTC


@total_ordering
@dataclass(frozen=True, eq=False)
class PaceDateTime:
    """A timestamp that always carries an explicit offset."""

    value: datetime

    def __post_init__(self) -> None:
        if self.value.tzinfo is None or self.value.utcoffset() is None:
            raise InvalidTimeInputError("Timestamp must carry a time zone offset", value=self.value)

    # -- construction -------------------------------------------------------

    @classmethod
    def from_wall_clock(cls, wall: datetime, zone: str | tzinfo) -> PaceDateTime:
        """Attach a zone to a naive wall-clock value."""
        if wall.tzinfo is not None:
            raise InvalidTimeInputError("Wall-clock value must be naive", value=wall)
        return cls(wall.replace(tzinfo=parse_time_zone(zone)))

    @classmethod
    def now(cls, zone: str | tzinfo | None = None) -> PaceDateTime:
        """Current time in ``zone`` (system local offset when omitted)."""
        if zone is None:
            return cls(datetime.now().astimezone())
        return cls(datetime.now(parse_time_zone(zone)))

    @classmethod
    def parse(cls, text: str) -> PaceDateTime:
        """Parse an ISO-8601 timestamp that includes an offset."""
        try:
            parsed = datetime.fromisoformat(text)
        except (TypeError, ValueError) as e:
            raise InvalidTimeInputError(f"Not an ISO-8601 timestamp: {e}", value=text) from e
        return cls(parsed)

    @classmethod
    def from_user_input(
        cls,
        text: str | None,
        zone: str | tzinfo | None = None,
        today: date | None = None,
    ) -> PaceDateTime:
        """Interpret a user-supplied time.

        ``None`` means now, ``HH:MM`` means that time today, anything else must be
        ISO-8601. Naive values are placed in ``zone`` (local offset when omitted).
        """
        tz = parse_time_zone(zone) if zone is not None else local_time_zone()
        if text is None or not text.strip():
            return cls(datetime.now(tz))

        text = text.strip()
        for fmt in TIME_OF_DAY_FORMATS:
            try:
                time_of_day = datetime.strptime(text, fmt).time()
            except ValueError:
                continue
            day = today or datetime.now(tz).date()
            return cls(datetime.combine(day, time_of_day, tzinfo=tz))

        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise InvalidTimeInputError(
                "Expected HH:MM or an ISO-8601 timestamp", value=text
            ) from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=tz)
        return cls(parsed)

    # -- conversion ---------------------------------------------------------

    def to_utc(self) -> datetime:
        return self.value.astimezone(UTC)

    def astimezone(self, zone: str | tzinfo) -> PaceDateTime:
        return PaceDateTime(self.value.astimezone(parse_time_zone(zone)))

    def isoformat(self) -> str:
        return self.value.isoformat()

    # -- comparison ---------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PaceDateTime):
            return NotImplemented
        return self.to_utc() == other.to_utc()

    def __lt__(self, other: PaceDateTime) -> bool:
        if not isinstance(other, PaceDateTime):
            return NotImplemented
        return self.to_utc() < other.to_utc()

    def __hash__(self) -> int:
        return hash(self.to_utc())

    def __str__(self) -> str:
        return self.value.strftime("%Y-%m-%d %H:%M:%S %z")


@total_ordering
@dataclass(frozen=True)
class PaceDuration:
    """A non-negative span of time."""

    value: timedelta

    def __post_init__(self) -> None:
        if self.value < timedelta(0):
            raise NegativeDurationError(begin=None, end=self.value)

    @classmethod
    def between(cls, begin: PaceDateTime, end: PaceDateTime) -> PaceDuration:
        """Duration from ``begin`` to ``end``.

        Raises:
            NegativeDurationError: If ``end`` lies before ``begin``.
        """
        delta = end.to_utc() - begin.to_utc()
        if delta < timedelta(0):
            raise NegativeDurationError(begin=begin.isoformat(), end=end.isoformat())
        return cls(delta)

    @classmethod
    def zero(cls) -> PaceDuration:
        return cls(timedelta(0))

    @classmethod
    def from_seconds(cls, seconds: float) -> PaceDuration:
        return cls(timedelta(seconds=seconds))

    def total_seconds(self) -> float:
        return self.value.total_seconds()

    @property
    def whole_seconds(self) -> int:
        return int(self.value.total_seconds())

    def __add__(self, other: PaceDuration) -> PaceDuration:
        return PaceDuration(self.value + other.value)

    def __lt__(self, other: PaceDuration) -> bool:
        if not isinstance(other, PaceDuration):
            return NotImplemented
        return self.value < other.value

    def __str__(self) -> str:
        total = self.whole_seconds
        hours, remainder = divmod(total, 3600)
        minutes, seconds = divmod(remainder, 60)
        if hours:
            return f"{hours}h {minutes}m {seconds}s"
        if minutes:
            return f"{minutes}m {seconds}s"
        return f"{seconds}s"


@dataclass(frozen=True)
class TimeRange:
    """A period starting at ``begin``; ``end=None`` means still running.

    Ranges are half-open: a range ending at 10:00 and one starting at 10:00
    touch but do not overlap.
    """

    begin: PaceDateTime
    end: PaceDateTime | None = None

    def __post_init__(self) -> None:
        if self.end is not None and self.end < self.begin:
            raise NegativeDurationError(begin=self.begin.isoformat(), end=self.end.isoformat())

    @property
    def is_open(self) -> bool:
        return self.end is None

    def contains(self, moment: PaceDateTime) -> bool:
        if moment < self.begin:
            return False
        return self.end is None or moment < self.end

    def overlaps(self, other: TimeRange) -> bool:
        starts_before_other_ends = other.end is None or self.begin < other.end
        other_starts_before_self_ends = self.end is None or other.begin < self.end
        return starts_before_other_ends and other_starts_before_self_ends

    def duration(self, at: PaceDateTime | None = None) -> PaceDuration:
        """Length of the range; open ranges are measured up to ``at`` (default now)."""
        end = self.end or at or PaceDateTime.now()
        return PaceDuration.between(self.begin, end)
