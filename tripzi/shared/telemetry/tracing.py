"""Span helpers used by the wipe service and storage backends.

When no tracer provider is configured these fall through to OpenTelemetry's
no-op tracer, so the decorated code behaves identically with tracing off.
"""

import inspect
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

_tracer = trace.get_tracer("tripzi")

# Keyword arguments copied onto spans. Anything else (tokens, payloads) is not.
_RECORDED_KWARGS = frozenset({"user_id", "chat_id", "prefix", "path", "count"})

AttributeValue = str | int | float | bool


@contextmanager
def _span(name: str, attributes: dict[str, AttributeValue] | None, kwargs: dict) -> Iterator[trace.Span]:
    with _tracer.start_as_current_span(name, record_exception=False) as span:
        for key, value in (attributes or {}).items():
            span.set_attribute(key, value)
        for key, value in kwargs.items():
            if key in _RECORDED_KWARGS:
                span.set_attribute(f"arg.{key}", str(value))
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, f"{type(e).__name__}: {e}"))
            raise
        span.set_status(Status(StatusCode.OK))


def traced(
    operation_name: str | None = None,
    attributes: dict[str, AttributeValue] | None = None,
) -> Callable:
    """Run the decorated function (sync or async) inside a span.

    The span is named operation_name, or module.qualname when omitted, and is
    marked as an error when the function raises.
    """

    def decorator(func: Callable) -> Callable:
        name = operation_name or f"{func.__module__}.{func.__qualname__}"

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def run_async(*args: Any, **kwargs: Any) -> Any:
                with _span(name, attributes, kwargs):
                    return await func(*args, **kwargs)

            return run_async

        @wraps(func)
        def run_sync(*args: Any, **kwargs: Any) -> Any:
            with _span(name, attributes, kwargs):
                return func(*args, **kwargs)

        return run_sync

    return decorator


def add_span_attributes(**attributes: AttributeValue) -> None:
    """Attach attributes to the active span, if one is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attributes(attributes)


def add_span_event(name: str, attributes: dict[str, AttributeValue] | None = None) -> None:
    """Record a point-in-time event (e.g. a skipped media delete) on the active span."""
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(name, attributes=attributes or {})
