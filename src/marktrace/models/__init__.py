"""
marktrace models.
"""

from marktrace.models.base import MarkTraceBaseModel
from marktrace.models.entry import (
    EntryType,
    PerformanceEntry,
    START_PREFIX,
    END_PREFIX,
    MEASURE_PREFIX,
    start_mark_name,
    end_mark_name,
    measure_name,
)
from marktrace.models.record import CapturedRecord, ErrorSummary

__all__ = [
    "MarkTraceBaseModel",
    "EntryType",
    "PerformanceEntry",
    "START_PREFIX",
    "END_PREFIX",
    "MEASURE_PREFIX",
    "start_mark_name",
    "end_mark_name",
    "measure_name",
    "CapturedRecord",
    "ErrorSummary",
]
