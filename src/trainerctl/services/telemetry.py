"""Timing spans for service calls, shown with ``--verbose``.

A ``@traced`` service method opens a root span; ``trace_span`` blocks and
``annotate`` calls inside it attach children and key/value notes (the
package debited, conflict retries, fallbacks). The finished tree lands in
``ServiceResult.meta["telemetry"]``. Telemetry is off unless
:func:`enable_telemetry` ran in the current context.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from trainerctl.services.result import ServiceResult

_enabled: ContextVar[bool] = ContextVar("trainerctl_telemetry", default=False)
_active: ContextVar[Span | None] = ContextVar("trainerctl_active_span", default=None)

_log = structlog.get_logger("trainerctl.telemetry")


@dataclass
class Span:
    """One timed step of a service call."""

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter)
    ended: float | None = None
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.ended is None:
            return 0.0
        return (self.ended - self.started) * 1000

    def end(self) -> None:
        if self.ended is None:
            self.ended = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def child(self, name: str) -> Span:
        span = Span(name=name, parent=self)
        self.children.append(span)
        return span

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            out["annotations"] = dict(self.annotations)
        if self.children:
            out["children"] = [c.to_dict() for c in self.children]
        return out


@contextmanager
def _activate(span: Span) -> Iterator[Span]:
    token = _active.set(span)
    try:
        yield span
    finally:
        span.end()
        _active.reset(token)


def current_span() -> Span | None:
    """The innermost open span, or None when telemetry is off."""
    return _active.get() if _enabled.get() else None


def annotate(key: str, value: Any) -> None:
    """Annotate the innermost open span; a no-op without one."""
    span = current_span()
    if span is not None:
        span.annotate(key, value)


@contextmanager
def trace_span(name: str, **annotations: Any) -> Generator[Span | None]:
    """Time a block as a child of the open span.

    Yields None when telemetry is off or no ``@traced`` call is running.
    """
    parent = current_span()
    if parent is None:
        yield None
        return

    span = parent.child(name)
    span.annotations.update(annotations)
    with _activate(span):
        yield span


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a service method and attach its span tree to the returned result."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        root = Span(name=func.__qualname__)
        try:
            with _activate(root):
                result = func(*args, **kwargs)
        except Exception:
            _log.debug("span.complete", span_name=root.name, duration_ms=root.duration_ms, ok=False)
            raise

        if not isinstance(result, ServiceResult):
            return result

        if result.error is not None:
            root.annotate("error", result.error.code)
        _log.debug(
            "span.complete",
            span_name=root.name,
            op=result.op,
            duration_ms=round(root.duration_ms, 2),
            ok=result.ok,
            children=len(root.children),
        )
        meta = {**(result.meta or {}), "telemetry": root.to_dict()}
        return result.model_copy(update={"meta": meta})  # type: ignore[return-value]

    return wrapper


def enable_telemetry() -> None:
    """Turn span recording on for the current context (``--verbose``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)
