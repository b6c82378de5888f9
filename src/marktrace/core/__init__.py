"""
marktrace core module.

Exports configuration, errors, logging and ID generation.
"""

# Configuration
from marktrace.core.settings import Settings, ConfigValidator

# Exceptions
from marktrace.core.exceptions import (
    MarkTraceError,
    ConfigurationError,
    UsageError,
    DuplicateMarkError,
    UnmatchedMarkError,
    MissingMarkError,
    MarkOrderError,
    IncompatibleTimelineError,
    FilterError,
)

# Logging
from marktrace.core.logging import AsyncLogger, logger

# ID generator
from marktrace.core.id_generator import (
    IDGenerator,
    generate_id,
    generate_correlation_id,
    is_valid_id,
)

CORRELATION_ID_LENGTH = 36  # uuid4 with dashes

__all__ = [
    # Configuration
    "Settings",
    "ConfigValidator",
    # Exceptions
    "MarkTraceError",
    "ConfigurationError",
    "UsageError",
    "DuplicateMarkError",
    "UnmatchedMarkError",
    "MissingMarkError",
    "MarkOrderError",
    "IncompatibleTimelineError",
    "FilterError",
    # Logging
    "AsyncLogger",
    "logger",
    # IDs
    "IDGenerator",
    "generate_id",
    "generate_correlation_id",
    "is_valid_id",
    # Constants
    "CORRELATION_ID_LENGTH",
]
