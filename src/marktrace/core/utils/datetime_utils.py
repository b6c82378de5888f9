"""
Centralized datetime utilities for marktrace.

Wall-clock values are only used for error metadata and the optional epoch
timestamp on timeline entries; durations always come from the monotonic
clock. All datetimes are UTC.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Get current UTC datetime.

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure datetime is in UTC timezone.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    elif dt.tzinfo == timezone.utc:
        return dt
    else:
        return dt.astimezone(timezone.utc)


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO string with Z suffix.

    Example: "2024-01-15T10:30:45.123456Z"
    """
    utc_dt = ensure_utc(dt)
    return utc_dt.isoformat().replace('+00:00', 'Z')


def epoch_millis(dt: datetime) -> float:
    """Milliseconds since the Unix epoch for a datetime."""
    return ensure_utc(dt).timestamp() * 1000
