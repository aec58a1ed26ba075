"""
Timestamp utilities for consistent time handling across the system.
"""

import math
from datetime import datetime, timezone
from typing import Optional, Union

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC.

    Args:
        value: datetime, naive or aware

    Returns:
        Timezone-aware datetime
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_datetime(value: Union[str, int, float, datetime, None]) -> datetime:
    """Convert an ISO string, a Unix timestamp in seconds or a datetime to an aware datetime.

    Args:
        value: Timestamp in any of the supported forms (uses current time if None)

    Returns:
        datetime object in UTC when no zone was given
    """
    if value is None:
        return utc_now()
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return ensure_aware(datetime.fromisoformat(text))


def days_since(then: datetime, now: Optional[datetime] = None) -> int:
    """Whole days between two instants, rounded up.

    Args:
        then: Earlier instant
        now: Reference instant (uses current time if None)

    Returns:
        Absolute elapsed days, rounded up to the next whole day
    """
    if now is None:
        now = utc_now()
    elapsed = abs((ensure_aware(now) - ensure_aware(then)).total_seconds())
    return math.ceil(elapsed / SECONDS_PER_DAY)
