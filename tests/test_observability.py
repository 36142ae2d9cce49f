"""Tests for the observability module."""

from unittest.mock import MagicMock

import pytest
import structlog
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from memory_retriever.config import Settings
from memory_retriever.infrastructure.embeddings import FakeEmbeddingProvider
from memory_retriever.infrastructure.observability import (
    add_span_attributes,
    add_trace_context,
    configure_logging,
    get_current_span_id,
    get_current_trace_id,
    get_tracer,
    init_observability_from_settings,
    shutdown_observability,
    traced,
)
from memory_retriever.infrastructure.observability import setup as obs_setup_module
from memory_retriever.infrastructure.vectordb import Document, InMemoryVectorStore

# Module-level setup: configure TracerProvider once before any tests run
_exporter = InMemorySpanExporter()
_provider = TracerProvider()
_provider.add_span_processor(SimpleSpanProcessor(_exporter))
trace.set_tracer_provider(_provider)


@pytest.fixture(autouse=True)
def clear_spans():
    """Clear spans before each test."""
    _exporter.clear()
    yield
    _exporter.clear()


def get_finished_spans():
    """Get finished spans from the module-level exporter."""
    return _exporter.get_finished_spans()


def span_named(name: str):
    return next(s for s in get_finished_spans() if s.name == name)


class TestTracedDecorator:
    """Tests for the @traced decorator."""

    def test_sync_function_creates_span(self):
        """A decorated sync function should run inside a named span."""

        @traced("test.sync", attributes={"component": "test"})
        def work() -> str:
            return "result"

        assert work() == "result"
        span = span_named("test.sync")
        assert dict(span.attributes or {})["component"] == "test"

    async def test_async_function_creates_span(self):
        """A decorated coroutine should run inside a named span."""

        @traced("test.async")
        async def work() -> str:
            return "async_result"

        assert await work() == "async_result"
        assert span_named("test.async") is not None

    def test_default_span_name_is_qualname(self):
        """Without a name the function's qualified name is used."""

        @traced()
        def named_function() -> None:
            return None

        named_function()

        assert get_finished_spans()[0].name.endswith("named_function")

    def test_exception_marks_span_failed(self):
        """Exceptions should be recorded and re-raised."""

        @traced("test.failing")
        def failing() -> None:
            raise ValueError("test error")

        with pytest.raises(ValueError, match="test error"):
            failing()

        span = span_named("test.failing")
        assert span.status.status_code == trace.StatusCode.ERROR
        assert any(event.name == "exception" for event in span.events)


class TestSpanHelpers:
    """Tests for span attribute and id helpers."""

    def test_adds_attributes_to_current_span(self):
        """add_span_attributes should add attributes to current span."""
        with get_tracer("test").start_as_current_span("test_span"):
            add_span_attributes({"custom_key": "custom_value", "number": 100})

        attrs = dict(get_finished_spans()[0].attributes or {})
        assert attrs["custom_key"] == "custom_value"
        assert attrs["number"] == 100

    def test_does_nothing_without_active_span(self):
        """add_span_attributes should not fail without active span."""
        add_span_attributes({"key": "value"})

    def test_ids_inside_span(self):
        """Trace and span ids should be hex strings of fixed width."""
        with get_tracer("test").start_as_current_span("test_span"):
            trace_id = get_current_trace_id()
            span_id = get_current_span_id()

        assert trace_id is not None and len(trace_id) == 32
        assert span_id is not None and len(span_id) == 16


class TestStructlogProcessor:
    """Tests for structlog trace context processor."""

    def test_adds_trace_context_when_in_span(self):
        """Processor should add trace_id and span_id to event dict."""
        with get_tracer("test").start_as_current_span("test_span"):
            result = add_trace_context(None, "info", {"event": "test_event"})

        assert len(result["trace_id"]) == 32
        assert len(result["span_id"]) == 16

    def test_without_span_keeps_event(self):
        """Processor should leave the event intact outside a span."""
        result = add_trace_context(None, "info", {"event": "test_event"})

        assert result["event"] == "test_event"


class TestConfigureLogging:
    """Tests for structlog configuration."""

    def test_unknown_level_rejected(self):
        """An unknown level name should be rejected."""
        with pytest.raises(ValueError):
            configure_logging(log_level="LOUD")

    def test_json_logging_configures_structlog(self):
        """JSON logging should install a JSON renderer."""
        try:
            configure_logging(log_level="debug", json_logs=True)
            processors = structlog.get_config()["processors"]
            assert isinstance(processors[-1], structlog.processors.JSONRenderer)
            assert add_trace_context in processors
        finally:
            structlog.reset_defaults()


class TestRetrievalSpans:
    """Spans emitted by the store and retriever."""

    async def test_retrieval_emits_nested_spans(self):
        """A retrieval call should wrap the store search in its span."""
        store = InMemoryVectorStore(FakeEmbeddingProvider())
        await store.add_documents([Document("a"), Document("b")])
        _exporter.clear()

        await store.as_retriever(k=1).get_relevant_documents("q")

        parent = span_named("retrieval.get_relevant_documents")
        child = span_named("vectordb.similarity_search")
        assert child.parent is not None
        assert child.parent.span_id == parent.context.span_id
        attrs = dict(parent.attributes or {})
        assert attrs["retrieval.top_k"] == 1
        assert attrs["retrieval.results_count"] == 1

    async def test_dimension_mismatch_recorded_on_span(self):
        """A rejected batch should mark the add span as failed."""
        store = InMemoryVectorStore(FakeEmbeddingProvider())
        await store.add_documents([Document("a")])

        with pytest.raises(Exception, match="dimension"):
            await store.add_vectors([[1.0]], [Document("b")])

        span = span_named("vectordb.add_vectors")
        assert span.status.status_code == trace.StatusCode.ERROR

    async def test_from_documents_is_traced(self):
        """The from_documents constructor should emit its own span."""
        await InMemoryVectorStore.from_documents(
            [Document("a")], FakeEmbeddingProvider()
        )

        assert span_named("vectordb.from_documents") is not None


class TestInitObservability:
    """Tests for init/shutdown driven by settings."""

    @pytest.fixture
    def installed(self, monkeypatch):
        """Capture tracer providers instead of replacing the global one."""
        captured = MagicMock()
        monkeypatch.setattr(obs_setup_module.trace, "set_tracer_provider", captured)
        yield captured
        shutdown_observability()
        structlog.reset_defaults()

    def test_installs_sdk_provider(self, installed):
        """Enabled tracing should install an SDK TracerProvider once."""
        settings = Settings(_env_file=None, trace_sample_rate=0.5)

        init_observability_from_settings(settings)
        init_observability_from_settings(settings)

        installed.assert_called_once()
        assert isinstance(installed.call_args.args[0], TracerProvider)

    def test_disabled_installs_noop_provider(self, installed):
        """Disabled tracing should install a no-op provider."""
        init_observability_from_settings(
            Settings(_env_file=None, tracing_enabled=False)
        )

        assert isinstance(installed.call_args.args[0], trace.NoOpTracerProvider)

    def test_shutdown_allows_reinitialization(self, installed):
        """After shutdown, init should install a provider again."""
        settings = Settings(_env_file=None)

        init_observability_from_settings(settings)
        shutdown_observability()
        init_observability_from_settings(settings)

        assert installed.call_count == 2
