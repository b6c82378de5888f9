"""
Instrumentation engine: manual marks, call-style adapter, capture pipeline
and method wrapper.
"""

from marktrace.instrument.call_style import CallStyle, Completion, invoke, is_deferred
from marktrace.instrument.capture import CapturePipeline, RecordFilter
from marktrace.instrument.marks import MarkApi, add_auto_measures
from marktrace.instrument.wrapper import (
    MethodWrapper,
    WrapTarget,
    WRAPPED_MARKER,
    is_wrapped_callable,
)

__all__ = [
    "CallStyle",
    "Completion",
    "invoke",
    "is_deferred",
    "CapturePipeline",
    "RecordFilter",
    "MarkApi",
    "add_auto_measures",
    "MethodWrapper",
    "WrapTarget",
    "WRAPPED_MARKER",
    "is_wrapped_callable",
]
