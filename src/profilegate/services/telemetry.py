"""Service timing spans for ``--verbose`` output.

``@traced`` opens a span around a service method; ``trace_span`` opens
child spans inside it (the resolver marks its ledger read, audience read,
and redaction this way). When the method returns a ServiceResult the span
tree lands in ``result.meta["telemetry"]``.

Disabled by default. A disabled ``@traced`` call costs one ContextVar read.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from profilegate.services.result import ServiceResult

log = structlog.get_logger("profilegate.telemetry")

# Root spans slower than this are logged at WARNING.
SLOW_SPAN_MS = 1000.0

_telemetry_on: ContextVar[bool] = ContextVar("profilegate_telemetry", default=False)
_active_span: ContextVar[Span | None] = ContextVar("profilegate_span", default=None)


@dataclass
class Span:
    name: str
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    def end(self) -> None:
        self.finished = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        """Nested dict form; empty annotations and children are left out."""
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


@contextmanager
def _activate(span: Span) -> Generator[Span]:
    """Make *span* current for the duration of the block and close it after."""
    token = _active_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _active_span.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Open a child of the current span.

    Yields None when telemetry is off or no ``@traced`` call is active,
    so callers guard annotations with ``if span:``.
    """
    parent = _active_span.get() if _telemetry_on.get() else None
    if parent is None:
        yield None
        return

    child = Span(name=name)
    parent.children.append(child)
    with _activate(child):
        yield child


def _annotate_result(span: Span, result: ServiceResult) -> None:
    span.annotate("op", result.op)
    if result.error is not None:
        span.annotate("error", result.error.code)


def _report(span: Span, *, ok: bool, nested: bool) -> None:
    duration = round(span.duration_ms, 2)
    if not nested and duration > SLOW_SPAN_MS:
        log.warning("span.slow", span_name=span.name, duration_ms=duration, ok=ok)
    else:
        log.debug(
            "span.complete",
            span_name=span.name,
            duration_ms=duration,
            ok=ok,
            children=len(span.children),
        )


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a service method and attach its span tree to the ServiceResult.

    A traced method called from another traced method becomes a child span
    of the caller.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _telemetry_on.get():
            return func(*args, **kwargs)

        parent = _active_span.get()
        span = Span(name=func.__qualname__)
        if parent is not None:
            parent.children.append(span)

        ok = False
        try:
            with _activate(span):
                result = func(*args, **kwargs)
            ok = not isinstance(result, ServiceResult) or result.ok
        finally:
            _report(span, ok=ok, nested=parent is not None)

        if isinstance(result, ServiceResult):
            _annotate_result(span, result)
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def enable_telemetry() -> None:
    """Turn spans on for this context (AppContext does this for ``--verbose``)."""
    _telemetry_on.set(True)


def disable_telemetry() -> None:
    _telemetry_on.set(False)


def get_active_span() -> Span | None:
    """The innermost active span, or None when telemetry is off."""
    if not _telemetry_on.get():
        return None
    return _active_span.get()
