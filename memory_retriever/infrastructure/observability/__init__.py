"""Observability module providing OpenTelemetry tracing and structlog integration."""

from memory_retriever.infrastructure.observability.setup import (
    configure_logging,
    init_observability,
    init_observability_from_settings,
    shutdown_observability,
)
from memory_retriever.infrastructure.observability.structlog_processor import (
    add_trace_context,
)
from memory_retriever.infrastructure.observability.tracing import (
    add_span_attributes,
    get_current_span_id,
    get_current_trace_id,
    get_tracer,
    record_error,
    traced,
)

__all__ = [
    "add_span_attributes",
    "add_trace_context",
    "configure_logging",
    "get_current_span_id",
    "get_current_trace_id",
    "get_tracer",
    "init_observability",
    "init_observability_from_settings",
    "record_error",
    "shutdown_observability",
    "traced",
]
