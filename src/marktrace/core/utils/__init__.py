"""
Core utilities module for marktrace.
"""

from .datetime_utils import utc_now, ensure_utc, format_iso, epoch_millis

__all__ = [
    'utc_now',
    'ensure_utc',
    'format_iso',
    'epoch_millis',
]
