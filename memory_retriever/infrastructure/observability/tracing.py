"""Tracing helpers shared by the vector store, providers and retriever."""

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode, Tracer

P = ParamSpec("P")
R = TypeVar("R")

AttributeValue = str | int | float | bool


def get_tracer(name: str) -> Tracer:
    """Get a tracer for the given module name (typically ``__name__``)."""
    return trace.get_tracer(name)


def record_error(span: Span, error: BaseException) -> None:
    """Record ``error`` on ``span`` and mark the span as failed."""
    span.record_exception(error)
    span.set_status(Status(StatusCode.ERROR, str(error)))


def add_span_attributes(attributes: dict[str, AttributeValue]) -> None:
    """Add attributes to the current span, if it is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        for key, value in attributes.items():
            span.set_attribute(key, value)


def get_current_trace_id() -> str | None:
    """Return the current trace ID as 32 hex characters, or None."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        return format(span_context.trace_id, "032x")
    return None


def get_current_span_id() -> str | None:
    """Return the current span ID as 16 hex characters, or None."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        return format(span_context.span_id, "016x")
    return None


def traced(
    span_name: str | None = None,
    *,
    attributes: dict[str, AttributeValue] | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Wrap a sync or async function in a span.

    The span is named ``span_name`` (default: the function's qualified
    name). Exceptions are recorded on the span and re-raised.

    Example:
        @traced("vectordb.from_texts")
        async def from_texts(...): ...
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        tracer = get_tracer(fn.__module__)
        name = span_name or fn.__qualname__

        def _start(span: Span) -> None:
            for key, value in (attributes or {}).items():
                span.set_attribute(key, value)

        if inspect.iscoroutinefunction(fn):

            @wraps(fn)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
                with tracer.start_as_current_span(
                    name, record_exception=False, set_status_on_exception=False
                ) as span:
                    _start(span)
                    try:
                        return await fn(*args, **kwargs)  # type: ignore[misc]
                    except Exception as e:
                        record_error(span, e)
                        raise

            return async_wrapper  # type: ignore[return-value]

        @wraps(fn)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            with tracer.start_as_current_span(
                name, record_exception=False, set_status_on_exception=False
            ) as span:
                _start(span)
                try:
                    return fn(*args, **kwargs)
                except Exception as e:
                    record_error(span, e)
                    raise

        return sync_wrapper

    return decorator
