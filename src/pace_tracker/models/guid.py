"""Time-ordered unique identifiers.

A Guid is a 128-bit UUID laid out like UUIDv7: the leading 48 bits hold the
Unix time in milliseconds, so the canonical lowercase text form sorts in
creation order. Identifiers created within the same millisecond by this
process are kept in order with a 12-bit sequence in the ``rand_a`` field.
"""

import os
import threading
import time
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime

from pace_tracker.exceptions import InvalidGuidError

GUID_TEXT_LENGTH = 36

_SEQUENCE_MASK = 0x0FFF
_lock = threading.Lock()
_last_ms = -1
_sequence = 0


def _next_timestamp_and_sequence() -> tuple[int, int]:
    """Return (unix_ms, sequence) strictly increasing across calls."""
    global _last_ms, _sequence

    with _lock:
        now_ms = time.time_ns() // 1_000_000
        if now_ms > _last_ms:
            _last_ms = now_ms
            _sequence = int.from_bytes(os.urandom(2), "big") & 0x03FF
        else:
            _sequence += 1
            if _sequence > _SEQUENCE_MASK:
                # Sequence exhausted: borrow the next millisecond
                _last_ms += 1
                _sequence = 0
        return _last_ms, _sequence


@dataclass(frozen=True, order=True)
class Guid:
    """Globally unique, lexicographically sortable identifier."""

    value: uuid.UUID

    @classmethod
    def new(cls) -> "Guid":
        """Create a fresh identifier ordered after every earlier one from this process."""
        unix_ms, sequence = _next_timestamp_and_sequence()
        rand_b = int.from_bytes(os.urandom(8), "big") & ((1 << 62) - 1)

        raw = unix_ms << 80
        raw |= 0x7 << 76  # version
        raw |= sequence << 64
        raw |= 0b10 << 62  # RFC 4122 variant
        raw |= rand_b
        return cls(uuid.UUID(int=raw))

    @classmethod
    def parse(cls, text: str) -> "Guid":
        """Parse the fixed-length textual form.

        Raises:
            InvalidGuidError: If the text is not a 36-character hyphenated UUID.
        """
        if not isinstance(text, str) or len(text) != GUID_TEXT_LENGTH:
            raise InvalidGuidError("Guid must be a 36-character identifier", value=text)
        try:
            parsed = uuid.UUID(text)
        except ValueError as e:
            raise InvalidGuidError(f"Malformed guid: {e}", value=text) from e
        if str(parsed) != text.lower():
            raise InvalidGuidError("Guid must use the hyphenated form", value=text)
        return cls(parsed)

    @property
    def created_at(self) -> datetime:
        """Creation time encoded in the identifier (UTC, millisecond precision)."""
        unix_ms = self.value.int >> 80
        return datetime.fromtimestamp(unix_ms / 1000, tz=UTC)

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"Guid('{self.value}')"
