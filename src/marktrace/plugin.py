"""
Host lifecycle adapter.

The host runtime calls these hooks around each invocation:

- pre_invoke: hand over this invocation's timeline and data store
- post_invoke: restore every wrapped method
- pre_report: add timeline entries and captured records to the report
"""

from typing import Any, Dict, List, MutableMapping, Optional

from marktrace._version import __version__
from marktrace.core.logging import AsyncLogger
from marktrace.core.settings import Settings
from marktrace.instrument.capture import CapturePipeline
from marktrace.instrument.marks import MarkApi, add_auto_measures
from marktrace.instrument.wrapper import MethodWrapper, WrapTarget
from marktrace.integrations import http, redis
from marktrace.timeline.timeline import TimelineLike

logger = AsyncLogger("plugin")


class TracePlugin:
    """
    Trace plugin for one host runtime.

    Every invocation gets a fresh MethodWrapper, so instrumentation state
    never outlives the invocation that created it.

    Usage:
    ```
    plugin = TracePlugin({"auto_http": {"filter": drop_health_checks}})
    mark = plugin.pre_invoke(timeline, data)
    mark.start("handler")
    ...
    mark.end("handler")
    plugin.post_invoke()
    report = plugin.pre_report({})
    ```
    """

    name = "trace"
    version = __version__

    def __init__(
        self, config: Optional[Dict[str, Any]] = None, settings: Optional[Settings] = None
    ) -> None:
        self.settings = settings if settings is not None else Settings(overrides=config)
        self.timeline: Optional[TimelineLike] = None
        self.data: MutableMapping[str, Any] = {}
        self.mark: Optional[MarkApi] = None
        self.engines: List[MethodWrapper] = []
        self.pipelines: List[CapturePipeline] = []

    @property
    def auto_measure(self) -> bool:
        return bool(self.settings.get("auto_measure", True))

    def integration_targets(self) -> List[tuple]:
        """(targets, filter) pairs for the integrations switched on."""
        enabled = []
        if self.settings.get("auto_http.enabled", False):
            enabled.append((http.targets(), self.settings.get("auto_http.filter")))
        if self.settings.get("auto_redis.enabled", False):
            enabled.append((redis.targets(), self.settings.get("auto_redis.filter")))
        return enabled

    def pre_invoke(
        self, timeline: Any, data: Optional[MutableMapping[str, Any]] = None
    ) -> Optional[MarkApi]:
        """
        Binds the invocation's timeline and installs integrations.

        Returns:
            The manual mark API, or None if the timeline is incompatible
        """
        if not isinstance(timeline, TimelineLike):
            logger.warning(
                "Incompatible timeline, tracing disabled for this invocation",
                timeline=type(timeline).__name__,
            )
            return None

        self.post_invoke()
        self.pipelines = []
        self.timeline = timeline
        self.data = data if data is not None else {}
        self.mark = MarkApi(timeline)

        for targets, record_filter in self.integration_targets():
            if not targets:
                continue
            engine = MethodWrapper()
            if engine.wrap(timeline, self.data, targets, record_filter=record_filter):
                self._track(engine)

        return self.mark

    def wrap(self, targets: List[WrapTarget], record_filter: Any = None) -> bool:
        """Instruments extra targets for the current invocation."""
        if self.timeline is None:
            logger.warning("wrap() called before pre_invoke(), ignoring")
            return False
        engine = MethodWrapper()
        if not engine.wrap(self.timeline, self.data, targets, record_filter=record_filter):
            return False
        self._track(engine)
        return True

    def _track(self, engine: MethodWrapper) -> None:
        self.engines.append(engine)
        if engine.capture is not None:
            self.pipelines.append(engine.capture)

    def post_invoke(self) -> None:
        """Restores every method wrapped for this invocation."""
        for engine in reversed(self.engines):
            engine.unwrap()
        self.engines = []

    def pre_report(self, report: Dict[str, Any]) -> Dict[str, Any]:
        """
        Adds tracing output to the host report.

        Keys:
        - performanceEntries: marks and measures in timeline order
        - traceEntries: completed captured records keyed by correlation ID;
          calls still in flight are left out
        """
        if self.timeline is None:
            return report

        if self.auto_measure:
            add_auto_measures(self.timeline)

        report["performanceEntries"] = [
            _entry_dict(entry) for entry in self.timeline.get_entries()
        ]
        pending = set().union(*(pipeline.pending for pipeline in self.pipelines))
        report["traceEntries"] = {
            correlation_id: record
            for correlation_id, record in self.data.items()
            if correlation_id not in pending
        }
        return report


def _entry_dict(entry: Any) -> Dict[str, Any]:
    to_dict = getattr(entry, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(entry, dict):
        return dict(entry)
    return {
        key: getattr(entry, attr)
        for key, attr in (
            ("name", "name"),
            ("entryType", "entry_type"),
            ("startTime", "start_time"),
            ("duration", "duration"),
        )
        if hasattr(entry, attr)
    }
