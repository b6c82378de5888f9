"""
Capture & filter pipeline for intercepted calls.

Records live in the host's data store keyed by correlation ID. The user
filter runs once per call, after the outcome is known.
"""

from typing import Any, Callable, Dict, MutableMapping, Optional, Set

from pydantic import ValidationError

from marktrace.core.exceptions import FilterError
from marktrace.core.logging import AsyncLogger
from marktrace.models.record import CapturedRecord, ErrorSummary

logger = AsyncLogger("capture")

RecordFilter = Callable[[Dict[str, Any]], Any]


class CapturePipeline:
    """
    Builds, completes and filters captured records.

    Filter outcomes:
    - returns an object: it replaces the stored record
    - returns a falsy value: the record is dropped
    - raises: the record is dropped and a warning is logged

    Correlation IDs of calls still in flight stay in `pending` until the
    call completes.
    """

    def __init__(
        self, data: MutableMapping[str, Any], record_filter: Optional[RecordFilter] = None
    ) -> None:
        self.data = data
        self.record_filter = record_filter
        self.pending: Set[str] = set()

    def begin(
        self, correlation_id: str, name: str, integration: str, request: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Stores the request half of a record.

        Summaries that do not fit the record model are replaced by their
        string form (name, integration) or an empty request.
        """
        try:
            record = CapturedRecord(
                name=name, integration=integration, request=request
            ).to_dict()
        except ValidationError as e:
            logger.warning(
                "Invalid call summary, recording fallback",
                correlation_id=correlation_id,
                errors=[
                    ".".join(str(part) for part in err["loc"]) for err in e.errors()
                ],
            )
            record = CapturedRecord(
                name=str(name), integration=str(integration), request=_plain_request(request)
            ).to_dict()
        self.data[correlation_id] = record
        self.pending.add(correlation_id)
        return record

    def complete(
        self,
        correlation_id: str,
        response: Optional[Dict[str, Any]] = None,
        error: Optional[Dict[str, Any]] = None,
    ) -> Optional[Any]:
        """
        Adds the outcome half and applies the filter.

        Returns:
            The final stored record, or None if it was dropped
        """
        self.pending.discard(correlation_id)
        record = self.data.get(correlation_id)
        if record is None:
            # Popped by the host before the call finished
            logger.debug("Record missing at completion", correlation_id=correlation_id)
            return None

        if error is not None:
            record["error"] = error
        else:
            record["response"] = response if response is not None else {}

        return self._apply_filter(correlation_id, record)

    def _apply_filter(self, correlation_id: str, record: Dict[str, Any]) -> Optional[Any]:
        if self.record_filter is None:
            return record

        try:
            filtered = self.record_filter(record)
        except Exception as e:
            self.data.pop(correlation_id, None)
            error = FilterError(
                "Record filter raised, record dropped",
                context={"correlation_id": correlation_id, "record_name": record.get("name")},
                cause=e,
            )
            logger.warning(error.message, **error.to_dict())
            return None

        if not filtered:
            self.data.pop(correlation_id, None)
            return None

        self.data[correlation_id] = filtered
        return filtered


def summarize_error(error: BaseException) -> Dict[str, Any]:
    """Default error summary: exception type and message."""
    return ErrorSummary.from_exception(error).model_dump()


def _plain_request(request: Any) -> Dict[str, Any]:
    if isinstance(request, dict) and all(isinstance(key, str) for key in request):
        return request
    return {}
