"""OpenTelemetry and structlog setup."""

import logging

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ParentBasedTraceIdRatio

from memory_retriever.config import Settings
from memory_retriever.infrastructure.observability.structlog_processor import (
    add_trace_context,
)

_tracer_provider: TracerProvider | None = None
_initialized: bool = False


def init_observability(
    service_name: str,
    service_version: str,
    *,
    otlp_endpoint: str | None = None,
    console_export: bool = False,
    enabled: bool = True,
    sample_rate: float = 1.0,
    log_level: str = "INFO",
    json_logs: bool = False,
) -> None:
    """Initialize OpenTelemetry tracing and configure structlog.

    Calling this more than once is a no-op until ``shutdown_observability``
    runs.

    Args:
        service_name: Name of the service for resource attribution.
        service_version: Version of the service.
        otlp_endpoint: OTLP collector endpoint (e.g., "http://localhost:4318").
        console_export: If True, export spans to the console.
        enabled: If False, install a no-op tracer provider.
        sample_rate: Sampling ratio between 0.0 and 1.0.
        log_level: Standard library log level name.
        json_logs: Render log events as JSON instead of console key/values.
    """
    global _tracer_provider, _initialized

    if _initialized:
        return

    configure_logging(log_level=log_level, json_logs=json_logs)

    if not enabled:
        trace.set_tracer_provider(trace.NoOpTracerProvider())
        _initialized = True
        return

    resource = Resource.create(
        {
            SERVICE_NAME: service_name,
            SERVICE_VERSION: service_version,
        }
    )
    _tracer_provider = TracerProvider(
        resource=resource, sampler=ParentBasedTraceIdRatio(sample_rate)
    )

    if console_export:
        _tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    if otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(endpoint=f"{otlp_endpoint}/v1/traces")
        _tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    trace.set_tracer_provider(_tracer_provider)
    _initialized = True


def init_observability_from_settings(settings: Settings) -> None:
    """Initialize observability using application settings."""
    init_observability(
        settings.app_name,
        settings.app_version,
        otlp_endpoint=settings.otlp_endpoint,
        console_export=settings.trace_console_export,
        enabled=settings.tracing_enabled,
        sample_rate=settings.trace_sample_rate,
        log_level="DEBUG" if settings.debug else settings.log_level,
        json_logs=settings.json_logs,
    )


def shutdown_observability() -> None:
    """Flush pending spans and shut the tracer provider down."""
    global _tracer_provider, _initialized

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        _tracer_provider = None

    _initialized = False


def configure_logging(*, log_level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structlog with trace context injection.

    Every log event gains ``trace_id`` and ``span_id`` when emitted inside an
    active span.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level!r}")

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", level=level)
