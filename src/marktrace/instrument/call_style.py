"""
Call-style adapter.

Decides how an intercepted call signals completion and hooks exactly one
finish handler onto that signal:

- SYNC: the call returns a plain value or raises
- DEFERRED: the call returns a future, an awaitable or a thenable
- CALLBACK: the caller passed a node-style ``(error, result)`` callback last

With AUTO the style is inferred per call. A trailing callback wins over a
deferred return value; SYNC is the fallback.
Any callable in the last positional slot counts as a callback under AUTO,
so methods taking callables for other purposes must declare SYNC or DEFERRED.
"""

import asyncio
import concurrent.futures
import inspect
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from marktrace.core.logging import AsyncLogger

logger = AsyncLogger("call_style")

FinishHandler = Callable[[Optional[BaseException], Any], None]


class CallStyle(str, Enum):
    """Completion conventions of a wrapped method."""

    AUTO = "auto"
    SYNC = "sync"
    DEFERRED = "deferred"
    CALLBACK = "callback"


class Completion:
    """
    Fires the finish handler once per call.

    Later signals are ignored, so a callback that fires after the original
    already raised cannot produce a second end mark.
    """

    def __init__(self, on_finish: FinishHandler) -> None:
        self._on_finish = on_finish
        self.done = False

    def succeed(self, result: Any) -> None:
        self._finish(None, result)

    def fail(self, error: BaseException) -> None:
        self._finish(error, None)

    def _finish(self, error: Optional[BaseException], result: Any) -> None:
        if self.done:
            return
        self.done = True
        self._on_finish(error, result)


def is_deferred(value: Any) -> bool:
    """True for futures, awaitables and objects with a callable `then`."""
    return (
        asyncio.isfuture(value)
        or isinstance(value, concurrent.futures.Future)
        or inspect.isawaitable(value)
        or callable(getattr(value, "then", None))
    )


def has_trailing_callback(args: Tuple[Any, ...], skip: int = 0) -> bool:
    """True when the last caller-supplied positional argument is callable."""
    return len(args) > skip and callable(args[-1])


def classify(
    style: CallStyle, args: Tuple[Any, ...], skip: int = 0
) -> CallStyle:
    """
    Resolves the style known before the call runs.

    Returns CALLBACK or SYNC/DEFERRED as declared; AUTO without a trailing
    callback stays AUTO and is settled on the returned value.
    """
    style = CallStyle(style)
    if style == CallStyle.CALLBACK:
        return style if has_trailing_callback(args, skip) else CallStyle.AUTO
    if style == CallStyle.AUTO and has_trailing_callback(args, skip):
        return CallStyle.CALLBACK
    return style


def invoke(
    func: Callable[..., Any],
    args: Tuple[Any, ...],
    kwargs: Dict[str, Any],
    completion: Completion,
    style: CallStyle = CallStyle.AUTO,
    skip: int = 0,
) -> Any:
    """
    Calls `func` and routes its completion into `completion`.

    Args:
        func: The original, unwrapped callable
        args: Positional arguments as received (bound ``self`` included)
        kwargs: Keyword arguments as received
        completion: One-shot finish handler for this call
        style: Declared call style, AUTO to infer
        skip: Leading positional arguments that belong to the binding, not the caller

    Returns:
        What the caller would have received from `func`. Deferred values are
        either the original object or an equivalent resolving identically.
    """
    resolved = classify(style, args, skip)

    if resolved == CallStyle.CALLBACK:
        return _invoke_with_callback(func, args, kwargs, completion)

    try:
        result = func(*args, **kwargs)
    except Exception as e:
        completion.fail(e)
        raise

    if resolved == CallStyle.SYNC:
        completion.succeed(result)
        return result

    if is_deferred(result):
        return attach_deferred(result, completion)

    if resolved == CallStyle.DEFERRED:
        logger.debug("Declared deferred call returned a plain value", type=type(result).__name__)

    completion.succeed(result)
    return result


def _invoke_with_callback(
    func: Callable[..., Any],
    args: Tuple[Any, ...],
    kwargs: Dict[str, Any],
    completion: Completion,
) -> Any:
    original_callback = args[-1]

    def traced_callback(*cb_args: Any, **cb_kwargs: Any) -> Any:
        error = cb_args[0] if cb_args else None
        result = cb_args[1] if len(cb_args) > 1 else None
        if isinstance(error, BaseException):
            completion.fail(error)
        elif error:
            completion.fail(RuntimeError(str(error)))
        else:
            completion.succeed(result)
        return original_callback(*cb_args, **cb_kwargs)

    try:
        return func(*args[:-1], traced_callback, **kwargs)
    except Exception as e:
        completion.fail(e)
        raise


def attach_deferred(value: Any, completion: Completion) -> Any:
    """
    Hooks `completion` onto a deferred value.

    - Futures get a done callback and are returned unchanged. A cancelled
      future never completes the call.
    - Other awaitables are returned as a coroutine awaiting the original.
    - Thenables get an observing ``then(on_ok, on_err)`` and are returned
      unchanged, so any rejection reason reaches the caller as-is.
    """
    if asyncio.isfuture(value) or isinstance(value, concurrent.futures.Future):

        def on_done(future: Any) -> None:
            if future.cancelled():
                return
            error = future.exception()
            if error is not None:
                completion.fail(error)
            else:
                completion.succeed(future.result())

        value.add_done_callback(on_done)
        return value

    if inspect.isawaitable(value):
        return _observe(value, completion)

    def on_ok(result: Any) -> Any:
        completion.succeed(result)
        return result

    def on_err(error: Any) -> None:
        if isinstance(error, BaseException):
            completion.fail(error)
        else:
            completion.fail(RuntimeError(str(error)))

    # Observer branch only; the caller keeps the original thenable
    value.then(on_ok, on_err)
    return value


async def _observe(awaitable: Any, completion: Completion) -> Any:
    try:
        result = await awaitable
    except Exception as e:
        completion.fail(e)
        raise
    completion.succeed(result)
    return result
