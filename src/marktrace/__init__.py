"""
marktrace - marks, measures and traced calls.

Records a timeline of named marks and measures for one host invocation and
transparently instruments client library methods, whatever way they signal
completion.
"""

from marktrace._version import __version__, __version_info__

__license__ = "MIT"

# Core components
from marktrace.core import (
    logger,
    Settings,
    generate_correlation_id,
    MarkTraceError,
    ConfigurationError,
    UsageError,
    MissingMarkError,
    MarkOrderError,
    IncompatibleTimelineError,
    FilterError,
)

# Timeline
from marktrace.timeline import Timeline, TimelineLike

# Models
from marktrace.models import EntryType, PerformanceEntry, CapturedRecord

# Instrumentation
from marktrace.instrument import (
    CallStyle,
    MarkApi,
    MethodWrapper,
    WrapTarget,
    add_auto_measures,
    is_wrapped_callable,
)

# Host lifecycle
from marktrace.plugin import TracePlugin

__all__ = [
    # Version info
    "__version__",
    "__version_info__",
    "__license__",
    # Core
    "logger",
    "Settings",
    "generate_correlation_id",
    # Exceptions
    "MarkTraceError",
    "ConfigurationError",
    "UsageError",
    "MissingMarkError",
    "MarkOrderError",
    "IncompatibleTimelineError",
    "FilterError",
    # Timeline
    "Timeline",
    "TimelineLike",
    # Models
    "EntryType",
    "PerformanceEntry",
    "CapturedRecord",
    # Instrumentation
    "CallStyle",
    "MarkApi",
    "MethodWrapper",
    "WrapTarget",
    "add_auto_measures",
    "is_wrapped_callable",
    # Plugin
    "TracePlugin",
]
