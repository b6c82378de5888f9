"""
HTTP integration for requests.

Every request made through a ``requests.Session`` (module-level helpers
included) goes through ``Session.request``. Only method, URL without query
string and status code are captured.
"""

from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit, urlunsplit

import requests

from marktrace.instrument.call_style import CallStyle
from marktrace.instrument.wrapper import WrapTarget

INTEGRATION = "http"
METHOD = "request"


def strip_query(url: Any) -> str:
    """Drops query string, fragment and credentials from a URL."""
    parts = urlsplit(str(url))
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, "", ""))


def _method_and_url(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Tuple[str, str]:
    method = args[0] if args else kwargs.get("method", "")
    url = args[1] if len(args) > 1 else kwargs.get("url", "")
    return str(method).upper(), strip_query(url)


def record_name(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> str:
    return _method_and_url(args, kwargs)[1]


def describe_request(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Dict[str, Any]:
    method, url = _method_and_url(args, kwargs)
    return {"method": method, "url": url}


def describe_response(result: Any) -> Dict[str, Any]:
    status = getattr(result, "status_code", None)
    if status is None:
        return {"type": type(result).__name__}
    return {"status_code": status}


def targets(session_cls: Optional[type] = None) -> List[WrapTarget]:
    """Wrap target for Session.request (requests.Session unless given)."""
    return [
        WrapTarget(
            owner=session_cls or requests.Session,
            method=METHOD,
            integration=INTEGRATION,
            call_style=CallStyle.SYNC,
            record_name=record_name,
            describe_request=describe_request,
            describe_response=describe_response,
        )
    ]
