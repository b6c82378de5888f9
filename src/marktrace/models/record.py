"""
Captured call records.

One record per intercepted call, keyed by correlation ID in the host's data
store. Records are stored as plain dicts so user filters and collectors can
handle them without importing marktrace.
"""

from typing import Optional, Dict, Any
from pydantic import Field
from marktrace.models.base import MarkTraceBaseModel


class ErrorSummary(MarkTraceBaseModel):
    """Outcome summary of a call that failed."""

    type: str = Field(..., description="Exception class name")
    message: str = Field(default="", description="str() of the exception")

    @classmethod
    def from_exception(cls, error: BaseException) -> "ErrorSummary":
        return cls(type=type(error).__name__, message=str(error))


class CapturedRecord(MarkTraceBaseModel):
    """
    Metadata for one intercepted call.

    Created at call start with `request`, completed with either `response`
    or `error` once the call style resolves.
    """

    name: str = Field(..., description="Method or command label")
    integration: str = Field(..., description="Integration that captured the call")
    request: Dict[str, Any] = Field(default_factory=dict)
    response: Optional[Dict[str, Any]] = None
    error: Optional[ErrorSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
