"""
Timeline entry models.
Marks and measures share one shape, like browser performance entries.
"""

from enum import Enum
from typing import Optional, Dict, Any
from pydantic import ConfigDict, Field
from marktrace.models.base import MarkTraceBaseModel


START_PREFIX = "start:"
END_PREFIX = "end:"
MEASURE_PREFIX = "measure:"


class EntryType(str, Enum):
    """Performance entry kinds."""

    MARK = "mark"
    MEASURE = "measure"


class PerformanceEntry(MarkTraceBaseModel):
    """
    A single timeline entry.

    Marks have duration 0. Measures start at their start mark and last until
    their end mark. Entries never change once recorded.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", use_enum_values=True)

    name: str = Field(..., min_length=1, description="Entry name, e.g. start:db-query")
    entry_type: EntryType = Field(..., description="mark or measure")
    start_time: float = Field(..., ge=0, description="Monotonic ms since timeline origin")
    duration: float = Field(default=0.0, ge=0, description="Duration in ms")
    timestamp: Optional[float] = Field(
        default=None, description="Epoch ms when recorded (timelines with timestamp=True)"
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serializes with the camelCase keys collectors expect."""
        result: Dict[str, Any] = {
            "name": self.name,
            "entryType": self.entry_type,
            "startTime": self.start_time,
            "duration": self.duration,
        }
        if self.timestamp is not None:
            result["timestamp"] = self.timestamp
        return result


def start_mark_name(name: str) -> str:
    return f"{START_PREFIX}{name}"


def end_mark_name(name: str) -> str:
    return f"{END_PREFIX}{name}"


def measure_name(name: str) -> str:
    return f"{MEASURE_PREFIX}{name}"
