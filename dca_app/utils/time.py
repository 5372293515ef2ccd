"""
Time utilities for schedule and purchase history handling.

Every timestamp the engine produces is a timezone-aware UTC datetime.
Naive datetimes coming from storage or callers are assumed to be UTC.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current wall-clock time as a UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(moment: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Args:
        moment: Naive (assumed UTC) or aware datetime

    Returns:
        Timezone-aware UTC datetime
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """
    Format a timestamp for storage and reporting.

    Microseconds are kept and the offset is always +00:00, which keeps
    stored strings sortable.
    """
    return ensure_utc(moment).isoformat(timespec="microseconds")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO8601 timestamp written by format_timestamp or an older writer.

    Accepts a trailing 'Z' as UTC.
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(value))


def seconds_until(target: datetime, now: Optional[datetime] = None) -> float:
    """
    Seconds from now until target, never negative.

    Args:
        target: Future moment
        now: Reference time, defaults to current UTC time
    """
    if now is None:
        now = utc_now()
    return max(0.0, (ensure_utc(target) - ensure_utc(now)).total_seconds())
