"""
redis-py integration.

Instruments ``execute_command``, the single dispatch point every command
helper (get, set, hget...) goes through. Works for the sync client and,
when available, the asyncio client.
"""

from typing import Any, Dict, List, Optional, Tuple

from marktrace.core.logging import AsyncLogger
from marktrace.instrument.call_style import CallStyle
from marktrace.instrument.wrapper import WrapTarget

logger = AsyncLogger("integrations.redis")

INTEGRATION = "redis"
METHOD = "execute_command"


def _text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def command_name(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> str:
    """Lower-cased command, e.g. 'set' for SET."""
    return _text(args[0]).lower() if args else METHOD


def describe_request(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Dict[str, Any]:
    request: Dict[str, Any] = {"command": command_name(args, kwargs)}
    if len(args) > 1:
        request["key"] = _text(args[1])
    return request


def describe_response(result: Any) -> Dict[str, Any]:
    response: Dict[str, Any] = {"type": type(result).__name__}
    if isinstance(result, (list, tuple, set, dict)):
        response["size"] = len(result)
    return response


def targets(client_cls: Optional[type] = None) -> List[WrapTarget]:
    """
    Wrap targets for the redis clients.

    Args:
        client_cls: Explicit client class; defaults to redis.Redis and
            redis.asyncio.Redis when the redis package is installed
    """
    if client_cls is not None:
        classes = [client_cls]
    else:
        classes = _installed_clients()

    return [
        WrapTarget(
            owner=cls,
            method=METHOD,
            integration=INTEGRATION,
            call_style=CallStyle.AUTO,
            record_name=command_name,
            describe_request=describe_request,
            describe_response=describe_response,
        )
        for cls in classes
    ]


def _installed_clients() -> List[type]:
    try:
        import redis
    except ImportError:
        logger.info("redis package not installed, redis tracing disabled")
        return []

    classes: List[type] = [redis.Redis]
    try:
        from redis.asyncio import Redis as AsyncRedis
    except ImportError:
        return classes
    classes.append(AsyncRedis)
    return classes
