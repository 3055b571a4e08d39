"""Time source for the roadmap tracker.

Every time-dependent rule (delay detection, start-date detection, end-date
and completion stamping) reads "now" from an injected Clock so behaviour is
deterministic under test.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalise a datetime to aware UTC.

    SQLite returns naive datetimes even for timezone-aware columns; those
    are taken to be UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
