"""
Simple asynchronous logging for marktrace.
"""

import os
import yaml
from pathlib import Path
from typing import Optional
from loguru import logger as loguru_logger


class AsyncLogger:
    """
    Component-bound logger over loguru.

    Format: timestamp | level | component | message
    Instrumentation runs inside the host's hot path, so file output is
    enqueued and never blocks the caller.
    """

    # Single file sink shared by every instance
    _handler_id: Optional[int] = None

    def __init__(self, component: str, debug_mode: bool = False):
        self.component = component
        self.debug_mode = debug_mode
        self._setup_async_handler()

    def _setup_async_handler(self):
        """
        Adds the rotating file sink once, when MARKTRACE_LOG_FILE is set.

        Features:
        - Non-blocking (enqueue=True)
        - Flat format without colors
        - Rotation at 10MB
        - Level from logging.level (MARKTRACE_LOG_LEVEL wins)
        """
        log_file = os.getenv("MARKTRACE_LOG_FILE")
        if log_file and AsyncLogger._handler_id is None:
            AsyncLogger._handler_id = loguru_logger.add(
                log_file,
                format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[component]} | {message}",
                level=_get_log_level(),
                rotation="10 MB",
                compression="zip",
                enqueue=True,
            )

    def log(self, level: str, msg: str, **context):
        """Logs a message bound to this component, context goes to `extra`."""
        loguru_logger.bind(component=self.component, **context).log(level, msg)

    def debug(self, msg: str, **context):
        """Log level DEBUG."""
        self.log("DEBUG", msg, **context)

    def info(self, msg: str, **context):
        """Log level INFO."""
        self.log("INFO", msg, **context)

    def warning(self, msg: str, **context):
        """Log level WARNING."""
        self.log("WARNING", msg, **context)

    def error(self, msg: str, include_trace: Optional[bool] = None, **context):
        """
        Log level ERROR with optional stack trace.

        Args:
            msg: Error message
            include_trace: Whether to attach the stack trace (None = follow debug_mode)
            **context: Additional context
        """
        should_include_trace = include_trace if include_trace is not None else self.debug_mode

        if should_include_trace:
            import traceback

            context["stack_trace"] = traceback.format_exc()

        self.log("ERROR", msg, **context)


def _get_debug_mode() -> bool:
    """Reads debug_mode from .marktrace or the environment."""
    config_path = Path(".marktrace")
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
            return bool(config.get("logging", {}).get("debug_mode", False))
        except (OSError, yaml.YAMLError, AttributeError):
            pass

    return os.getenv("MARKTRACE_DEBUG", "false").lower() == "true"


def _get_log_level() -> str:
    """Reads logging.level from the environment or .marktrace, INFO otherwise."""
    level = os.getenv("MARKTRACE_LOG_LEVEL")
    if level:
        return level.upper()

    config_path = Path(".marktrace")
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
            return str(config.get("logging", {}).get("level", "INFO")).upper()
        except (OSError, yaml.YAMLError, AttributeError):
            pass

    return "INFO"


logger = AsyncLogger("marktrace", debug_mode=_get_debug_mode())
