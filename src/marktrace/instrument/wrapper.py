"""
Method wrapper: installs and removes instrumented replacements.

Each MethodWrapper owns its registry of originals, so one host invocation
gets one engine and nothing survives it. Every intercepted call:

1. mints a correlation ID
2. marks ``start:<integration>-<id>``
3. stores the request half of its captured record
4. delegates through the call-style adapter
5. on completion marks ``end:<integration>-<id>`` and completes the record
"""

import functools
import inspect
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from marktrace.core.exceptions import ConfigurationError, IncompatibleTimelineError
from marktrace.core.id_generator import generate_correlation_id
from marktrace.core.logging import AsyncLogger
from marktrace.instrument.call_style import CallStyle, Completion, invoke
from marktrace.instrument.capture import CapturePipeline, RecordFilter, summarize_error
from marktrace.models.entry import end_mark_name, start_mark_name
from marktrace.timeline.timeline import TimelineLike

logger = AsyncLogger("wrapper")

WRAPPED_MARKER = "__marktrace_wrapped__"

RegistryKey = Tuple[int, str]


def default_request(args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Dict[str, Any]:
    return {"args": len(args), "kwargs": sorted(kwargs)}


def default_response(result: Any) -> Dict[str, Any]:
    return {"type": type(result).__name__}


@dataclass
class WrapTarget:
    """
    One method to instrument.

    `owner` may be a class, an instance or a module. The describe_*
    callables receive the caller's arguments without any bound self/cls.

    Leave `call_style` at AUTO only when a trailing callable always means an
    `(error, result)` callback; otherwise declare SYNC or DEFERRED.
    """

    owner: Any
    method: str
    integration: str
    call_style: CallStyle = CallStyle.AUTO
    record_name: Optional[Callable[[Tuple[Any, ...], Dict[str, Any]], str]] = None
    describe_request: Callable[[Tuple[Any, ...], Dict[str, Any]], Dict[str, Any]] = field(
        default=default_request
    )
    describe_response: Callable[[Any], Dict[str, Any]] = field(default=default_response)
    describe_error: Callable[[BaseException], Dict[str, Any]] = field(default=summarize_error)


@dataclass
class WrapEntry:
    """Registry entry: what to put back on unwrap."""

    owner: Any
    method: str
    original: Any
    owned: bool


@dataclass
class _Plan:
    target: WrapTarget
    raw: Any
    func: Callable[..., Any]
    skip: int
    rebind: Callable[[Any], Any]


def is_wrapped_callable(value: Any) -> bool:
    """True if `value` (or the function inside a static/classmethod) is a replacement."""
    if isinstance(value, (staticmethod, classmethod)):
        value = value.__func__
    return bool(getattr(value, WRAPPED_MARKER, False))


class MethodWrapper:
    """
    Wrap/unwrap engine bound to one timeline and data store at a time.

    Usage:
    ```
    engine = MethodWrapper()
    engine.wrap(timeline, data, [WrapTarget(Client, "send", "client")])
    ...
    engine.unwrap()
    ```
    """

    def __init__(self) -> None:
        self._registry: Dict[RegistryKey, WrapEntry] = {}
        self.timeline: Optional[TimelineLike] = None
        self.capture: Optional[CapturePipeline] = None

    def wrap(
        self,
        timeline: Any,
        data: Any,
        targets: Iterable[WrapTarget],
        record_filter: Optional[RecordFilter] = None,
    ) -> bool:
        """
        Instruments every target method.

        All or nothing: an incompatible timeline, a non-mapping data store or
        an unresolvable target leaves every owner untouched.

        Returns:
            True when the targets are instrumented, False otherwise
        """
        if not isinstance(timeline, TimelineLike):
            error = IncompatibleTimelineError(
                "Timeline lacks mark()/get_entries(), not wrapping",
                context={"timeline": type(timeline).__name__},
            )
            error.add_suggestion("Pass a marktrace.Timeline or an object with the same methods")
            logger.warning(error.message, **error.to_dict())
            return False

        if not isinstance(data, MutableMapping):
            error = ConfigurationError(
                "Data store must be a mutable mapping, not wrapping",
                context={"data": type(data).__name__},
            )
            logger.warning(error.message, **error.to_dict())
            return False

        plans: List[_Plan] = []
        for target in targets:
            plan = self._plan(target)
            if plan is False:
                return False
            if plan is not None:
                plans.append(plan)

        self.timeline = timeline
        self.capture = CapturePipeline(data, record_filter)

        installed: List[RegistryKey] = []
        for plan in plans:
            key = (id(plan.target.owner), plan.target.method)
            if key in self._registry:
                continue
            owned = plan.target.method in _own_dict(plan.target.owner)
            replacement = self._build_replacement(key, plan)
            try:
                setattr(plan.target.owner, plan.target.method, plan.rebind(replacement))
            except (AttributeError, TypeError) as e:
                logger.warning(
                    "Cannot patch method, rolling back",
                    method=plan.target.method,
                    owner=_describe(plan.target.owner),
                    error=str(e),
                )
                for done in reversed(installed):
                    self._restore(self._registry.pop(done))
                return False
            self._registry[key] = WrapEntry(plan.target.owner, plan.target.method, plan.raw, owned)
            installed.append(key)

        logger.debug("Methods wrapped", count=len(installed), total=len(self._registry))
        return True

    def _plan(self, target: WrapTarget) -> Any:
        """Resolves a target; None to skip it, False to abort the whole wrap."""
        try:
            raw = inspect.getattr_static(target.owner, target.method)
        except AttributeError:
            logger.warning(
                "Target method not found, not wrapping",
                method=target.method,
                owner=_describe(target.owner),
            )
            return False

        if is_wrapped_callable(raw):
            logger.debug("Method already wrapped", method=target.method)
            return None

        if isinstance(raw, staticmethod):
            return _Plan(target, raw, raw.__func__, 0, staticmethod)
        if isinstance(raw, classmethod):
            return _Plan(target, raw, raw.__func__, 1, classmethod)
        if inspect.isclass(target.owner):
            if not inspect.isfunction(raw):
                logger.warning(
                    "Unsupported class attribute, not wrapping",
                    method=target.method,
                    kind=type(raw).__name__,
                )
                return False
            return _Plan(target, raw, raw, 1, _identity)

        func = getattr(target.owner, target.method)
        if not callable(func):
            logger.warning("Target is not callable, not wrapping", method=target.method)
            return False
        return _Plan(target, raw, func, 0, _identity)

    def _build_replacement(self, key: RegistryKey, plan: _Plan) -> Callable[..., Any]:
        engine = self
        func = plan.func

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def traced_async(*args: Any, **kwargs: Any) -> Any:
                return await engine._call(key, plan, args, kwargs, CallStyle.DEFERRED)

            replacement: Callable[..., Any] = traced_async
        else:

            @functools.wraps(func)
            def traced(*args: Any, **kwargs: Any) -> Any:
                return engine._call(key, plan, args, kwargs, plan.target.call_style)

            replacement = traced

        setattr(replacement, WRAPPED_MARKER, True)
        return replacement

    def _call(
        self,
        key: RegistryKey,
        plan: _Plan,
        args: Tuple[Any, ...],
        kwargs: Dict[str, Any],
        style: CallStyle,
    ) -> Any:
        timeline, capture = self.timeline, self.capture
        # Stale references kept past unwrap() behave like the original
        if key not in self._registry or timeline is None or capture is None:
            return plan.func(*args, **kwargs)

        target = plan.target
        caller_args = args[plan.skip :]
        correlation_id = generate_correlation_id()
        label = f"{target.integration}-{correlation_id}"

        name = _safe(target.record_name, target.method, caller_args, kwargs) or target.method
        request = _safe(target.describe_request, {}, caller_args, kwargs)

        timeline.mark(start_mark_name(label))
        capture.begin(correlation_id, name, target.integration, request)

        def finish(error: Optional[BaseException], result: Any) -> None:
            timeline.mark(end_mark_name(label))
            if error is not None:
                capture.complete(
                    correlation_id,
                    error=_safe(target.describe_error, summarize_error(error), error),
                )
            else:
                capture.complete(
                    correlation_id, response=_safe(target.describe_response, {}, result)
                )

        return invoke(plan.func, args, kwargs, Completion(finish), style, plan.skip)

    def unwrap(self) -> None:
        """
        Restores every original and clears the registry.

        Safe when nothing is wrapped. In-flight calls are not awaited.
        """
        if not self._registry:
            return

        for entry in reversed(list(self._registry.values())):
            self._restore(entry)
        count = len(self._registry)
        self._registry.clear()
        logger.debug("Methods unwrapped", count=count)

    def _restore(self, entry: WrapEntry) -> None:
        try:
            if entry.owned:
                setattr(entry.owner, entry.method, entry.original)
            else:
                delattr(entry.owner, entry.method)
        except (AttributeError, TypeError) as e:
            logger.error(
                "Failed to restore method",
                method=entry.method,
                owner=_describe(entry.owner),
                error=str(e),
            )

    def is_wrapped(self, owner: Any, method: str) -> bool:
        """True while `owner.method` is instrumented by this engine."""
        return (id(owner), method) in self._registry

    @property
    def wrapped_methods(self) -> List[Tuple[Any, str]]:
        return [(entry.owner, entry.method) for entry in self._registry.values()]


def _identity(value: Any) -> Any:
    return value


def _own_dict(owner: Any) -> Dict[str, Any]:
    try:
        return vars(owner)
    except TypeError:
        return {}


def _describe(owner: Any) -> str:
    if inspect.isclass(owner) or inspect.ismodule(owner):
        return owner.__name__
    return type(owner).__name__


def _safe(describe: Optional[Callable[..., Any]], fallback: Any, *args: Any) -> Any:
    """Runs an integration summary callable; failures never reach the host call."""
    if describe is None:
        return fallback
    try:
        return describe(*args)
    except Exception as e:
        logger.warning(
            "Call summary failed", summary=getattr(describe, "__name__", "describe"), error=str(e)
        )
        return fallback
