"""
Append-only performance timeline.

The host owns one Timeline per invocation and hands it to marktrace, which
only ever appends to it. Any object matching `TimelineLike` is accepted.
"""

import time
from typing import Any, List, Optional, Protocol, runtime_checkable

from marktrace.core.exceptions import MarkOrderError, MissingMarkError
from marktrace.core.utils.datetime_utils import utc_now, epoch_millis
from marktrace.models.entry import EntryType, PerformanceEntry


@runtime_checkable
class TimelineLike(Protocol):
    """
    Recording interface marktrace needs from a timeline.

    - mark(name): append a named mark timestamped now
    - get_entries(): list the current entries
    """

    def mark(self, name: str) -> Any:
        ...  # pragma: no cover

    def get_entries(self) -> List[Any]:
        ...  # pragma: no cover


class Timeline:
    """
    Monotonic-clock timeline of marks and measures.

    Times are milliseconds relative to the moment the timeline was created,
    read from time.perf_counter(). With ``timestamp=True`` every entry also
    carries the epoch time it was recorded at.

    Usage:
    ```
    timeline = Timeline(timestamp=True)
    timeline.mark("start:query")
    ...
    timeline.mark("end:query")
    timeline.measure("measure:query", "start:query", "end:query")
    ```
    """

    def __init__(self, timestamp: bool = False) -> None:
        self.timestamp = timestamp
        self.data: List[PerformanceEntry] = []
        self._origin = time.perf_counter()

    def now(self) -> float:
        """Milliseconds elapsed since the timeline origin."""
        return (time.perf_counter() - self._origin) * 1000

    def mark(self, name: str) -> PerformanceEntry:
        """Appends a mark named `name` at the current time."""
        entry = PerformanceEntry(
            name=name,
            entry_type=EntryType.MARK,
            start_time=self.now(),
            timestamp=epoch_millis(utc_now()) if self.timestamp else None,
        )
        self.data.append(entry)
        return entry

    def measure(self, name: str, start_mark: str, end_mark: str) -> PerformanceEntry:
        """
        Appends a measure spanning two existing marks.

        The most recent mark of each name is used.

        Raises:
            MissingMarkError: either mark is not in the timeline; nothing is appended
            MarkOrderError: the end mark precedes the start mark; nothing is appended
        """
        start = self._latest_mark(start_mark)
        end = self._latest_mark(end_mark)
        if end.start_time < start.start_time:
            raise MarkOrderError(
                f"Mark {end_mark} precedes {start_mark}",
                context={"start_mark": start_mark, "end_mark": end_mark},
            )

        entry = PerformanceEntry(
            name=name,
            entry_type=EntryType.MEASURE,
            start_time=start.start_time,
            duration=end.start_time - start.start_time,
            timestamp=start.timestamp,
        )
        self.data.append(entry)
        return entry

    def _latest_mark(self, name: str) -> PerformanceEntry:
        marks = self.get_entries_by_name(name, EntryType.MARK)
        if not marks:
            raise MissingMarkError(f"Mark not found: {name}", context={"mark": name})
        return marks[-1]

    def get_entries(self) -> List[PerformanceEntry]:
        """All entries in append order."""
        return list(self.data)

    def get_entries_by_name(
        self, name: str, entry_type: Optional[EntryType] = None
    ) -> List[PerformanceEntry]:
        """Entries with the given name, optionally of one type only."""
        wanted = EntryType(entry_type).value if entry_type is not None else None
        return [
            entry
            for entry in self.data
            if entry.name == name and (wanted is None or entry.entry_type == wanted)
        ]

    def get_entries_by_type(self, entry_type: EntryType) -> List[PerformanceEntry]:
        wanted = EntryType(entry_type).value
        return [entry for entry in self.data if entry.entry_type == wanted]

    def to_list(self) -> List[dict]:
        """Serializable copy of every entry."""
        return [entry.to_dict() for entry in self.data]

    def __len__(self) -> int:
        return len(self.data)
