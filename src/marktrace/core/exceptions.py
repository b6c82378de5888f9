"""
Unified exception hierarchy for marktrace.

None of these ever reach the host's own call path: usage and filter errors
are logged at the API boundary, wrapped-call errors belong to the host and
are re-raised untouched.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime
from marktrace.core.id_generator import generate_id
from marktrace.core.utils.datetime_utils import utc_now, format_iso


class MarkTraceError(Exception):
    """
    Base marktrace error.

    Features:
    1. Structured serialization
    2. Rich context
    3. Resolution suggestions
    4. Unique ID for tracking
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.id: str = generate_id("hex32")
        self.timestamp: datetime = utc_now()
        self.message: str = message
        self.code: str = code or self.__class__.__name__
        self.context: Dict[str, Any] = context or {}
        self.cause: Optional[BaseException] = cause
        self.suggestions: List[str] = []
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serializes to a dictionary for logs.

        Returns:
            {
                "error_id": "hex32chars",
                "code": "MissingMarkError",
                "message": "Mark not found: end:db",
                "timestamp": "2024-01-20T10:30:00Z",
                "context": {...}
            }
        """
        result: Dict[str, Any] = {
            "error_id": self.id,
            "code": self.code,
            "message": self.message,
            "timestamp": format_iso(self.timestamp),
            "context": self.context,
        }

        if self.cause:
            result["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}

        if self.suggestions:
            result["suggestions"] = self.suggestions

        return result

    def add_suggestion(self, suggestion: str) -> None:
        """Adds a resolution hint, ignoring empty values and duplicates."""
        if not suggestion or not isinstance(suggestion, str):
            return

        if suggestion not in self.suggestions:
            self.suggestions.append(suggestion)


class ConfigurationError(MarkTraceError):
    """Invalid or unreadable configuration."""

    pass


class UsageError(MarkTraceError):
    """
    Misuse of the manual mark API.

    Always reported and turned into a no-op, never fatal.
    """

    pass


class DuplicateMarkError(UsageError):
    """start() called for a name that is already open."""

    pass


class UnmatchedMarkError(UsageError):
    """end() called without a matching open start()."""

    pass


class MissingMarkError(UsageError):
    """
    A measure references a mark that is not in the timeline.

    Context carries the missing mark name under "mark".
    """

    pass


class MarkOrderError(UsageError):
    """
    A measure's end mark was recorded before its start mark.

    Context carries both mark names under "start_mark" and "end_mark".
    """

    pass


class IncompatibleTimelineError(ConfigurationError):
    """The timeline handed to wrap() lacks the recording interface."""

    pass


class FilterError(MarkTraceError):
    """A user-supplied record filter raised; the record is dropped."""

    pass
