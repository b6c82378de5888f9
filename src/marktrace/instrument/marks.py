"""
Manual mark/measure API.

Usage errors (duplicate start, end without start, measure of a missing mark)
are logged and turned into no-ops. Nothing here raises into user code.
"""

from contextlib import contextmanager
from typing import Any, Iterator, Optional, Set

from marktrace.core.exceptions import (
    DuplicateMarkError,
    MissingMarkError,
    UnmatchedMarkError,
    UsageError,
)
from marktrace.core.logging import AsyncLogger
from marktrace.models.entry import (
    END_PREFIX,
    START_PREFIX,
    MEASURE_PREFIX,
    end_mark_name,
    measure_name,
    start_mark_name,
)
from marktrace.timeline.timeline import TimelineLike

logger = AsyncLogger("marks")


def _report(error: UsageError) -> None:
    logger.warning(error.message, **error.to_dict())


class MarkApi:
    """
    User-facing start/end/measure surface over a host timeline.

    Tracks which names are currently open so duplicate starts and
    unmatched ends are detected without scanning the timeline.

    Usage:
    ```
    mark = MarkApi(timeline)
    mark.start("db")
    rows = fetch_rows()
    mark.end("db")
    mark.measure("db-fetch", "db", "db")
    ```
    """

    def __init__(self, timeline: TimelineLike) -> None:
        self.timeline = timeline
        self._open: Set[str] = set()

    def start(self, name: str) -> bool:
        """Records `start:<name>` unless `name` is already open."""
        if name in self._open:
            _report(
                DuplicateMarkError(
                    f"Mark already started: {name}", context={"mark": start_mark_name(name)}
                )
            )
            return False

        self.timeline.mark(start_mark_name(name))
        self._open.add(name)
        return True

    def end(self, name: str) -> bool:
        """Records `end:<name>` for an open `name`; otherwise writes nothing."""
        if name not in self._open:
            _report(
                UnmatchedMarkError(
                    f"Mark ended without start: {name}", context={"mark": end_mark_name(name)}
                )
            )
            return False

        self.timeline.mark(end_mark_name(name))
        self._open.discard(name)
        return True

    def measure(self, name: str, start_name: str, end_name: str) -> Optional[Any]:
        """
        Appends a measure between `start:<start_name>` and `end:<end_name>`.

        Returns:
            The recorded measure, or None when either mark is missing
        """
        record_measure = getattr(self.timeline, "measure", None)
        if not callable(record_measure):
            _report(
                UsageError(
                    "Timeline cannot record measures",
                    context={"timeline": type(self.timeline).__name__},
                )
            )
            return None

        start_mark = start_mark_name(start_name)
        end_mark = end_mark_name(end_name)
        names = {getattr(entry, "name", None) for entry in self.timeline.get_entries()}
        for mark in (start_mark, end_mark):
            if mark not in names:
                _report(MissingMarkError(f"Mark not found: {mark}", context={"mark": mark}))
                return None

        try:
            return record_measure(name, start_mark, end_mark)
        except UsageError as e:
            _report(e)
            return None

    @contextmanager
    def span(self, name: str) -> Iterator[None]:
        """
        Marks the start and end of a block.

        Usage:
        ```
        with mark.span("render"):
            html = render(page)
        ```
        """
        started = self.start(name)
        try:
            yield
        finally:
            if started:
                self.end(name)

    @property
    def open_marks(self) -> Set[str]:
        """Names started but not yet ended."""
        return set(self._open)


def add_auto_measures(timeline: TimelineLike) -> int:
    """
    Adds `measure:<name>` for every closed start/end pair not yet measured.

    Returns:
        Number of measures added
    """
    record_measure = getattr(timeline, "measure", None)
    if not callable(record_measure):
        return 0

    names = [getattr(entry, "name", "") for entry in timeline.get_entries()]
    existing = set(names)
    added = 0
    seen: Set[str] = set()

    for entry_name in names:
        if not entry_name.startswith(START_PREFIX):
            continue
        base = entry_name[len(START_PREFIX) :]
        if base in seen:
            continue
        seen.add(base)
        if f"{END_PREFIX}{base}" not in existing or f"{MEASURE_PREFIX}{base}" in existing:
            continue

        try:
            record_measure(measure_name(base), start_mark_name(base), end_mark_name(base))
            added += 1
        except UsageError as e:
            _report(e)

    if added:
        logger.debug("Auto measures added", count=added)
    return added
