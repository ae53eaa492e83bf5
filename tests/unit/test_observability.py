"""Unit tests for observability module."""

import json
import logging
import sys

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from prometheus_client import REGISTRY
import pytest

from connections_search.domain.model import CompactionOutcome, EntryType
from connections_search.observability import (
    JsonFormatter,
    configure_logging,
    configure_trace_exporter,
    create_span,
    get_metrics,
    get_metrics_content_type,
    get_trace_context,
    set_trace_context,
)
from connections_search.observability import tracing as tracing_module
from connections_search.observability.context import trace_context, update_span_id
from connections_search.service_layer.index_writer import IndexWriter


def _record(msg="test message", level=logging.INFO, name="connections_search.service_layer.query_engine"):
    return logging.LogRecord(name=name, level=level, pathname="test.py", lineno=1, msg=msg, args=(), exc_info=None)


@pytest.fixture(autouse=True)
def reset_trace_context():
    token = trace_context.set(None)
    yield
    trace_context.reset(token)


@pytest.mark.unit
class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_includes_trace_context(self):
        set_trace_context("a" * 32, "b" * 16)

        data = json.loads(JsonFormatter().format(_record()))

        assert data["message"] == "test message"
        assert data["level"] == "INFO"
        assert data["trace_id"] == "a" * 32
        assert data["span_id"] == "b" * 16
        assert data["component"] == "query_engine"
        assert "timestamp" in data

    def test_format_includes_owner_when_bound(self):
        set_trace_context("t", "s", owner="u-17")

        data = json.loads(JsonFormatter().format(_record()))

        assert data["owner"] == "u-17"

    def test_format_without_owner(self):
        data = json.loads(JsonFormatter().format(_record()))
        assert "owner" not in data

    def test_extra_fields_are_redacted(self):
        record = _record()
        record.cassandra_password = "hunter2"
        record.keyspace = "contacts"

        data = json.loads(JsonFormatter().format(record))

        assert data["cassandra_password"] == "[REDACTED]"
        assert data["keyspace"] == "contacts"

    def test_long_messages_are_truncated(self):
        data = json.loads(JsonFormatter().format(_record(msg="x" * 5000)))
        assert data["message"].endswith("...")
        assert len(data["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3

    def test_enum_extra_is_serialized_by_value(self):
        record = _record()
        record.outcome = CompactionOutcome.TIMED_OUT

        data = json.loads(JsonFormatter().format(record))

        assert data["outcome"] == "timed_out"

    def test_exception_is_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JsonFormatter().format(record))

        assert "ValueError: boom" in data["exception"]


@pytest.mark.unit
class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_handler_installed(self):
        configure_logging("debug", json_output=True, logger_levels={"connections_search.test_override": "warning"})

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("connections_search.test_override").level == logging.WARNING
        assert logging.getLogger("cassandra").level == logging.WARNING

    def test_plain_handler(self):
        configure_logging("INFO", json_output=False)
        assert not isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)


@pytest.mark.unit
class TestTraceContext:
    def test_get_trace_context_generates_ids(self):
        ctx = get_trace_context()
        assert len(ctx["trace_id"]) == 32
        assert len(ctx["span_id"]) == 16

    def test_update_span_id_keeps_trace_and_owner(self):
        set_trace_context("t1", "s1", owner="u1")
        update_span_id("s2")
        assert get_trace_context() == {"trace_id": "t1", "span_id": "s2", "owner": "u1"}


@pytest.mark.unit
class TestTracing:
    @pytest.fixture
    def exporter(self, monkeypatch):
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        monkeypatch.setitem(tracing_module._tracer_holder, "tracer", provider.get_tracer("test"))
        return exporter

    def test_create_span_records_attributes_and_span_id(self, exporter):
        set_trace_context("t" * 32, "s" * 16)
        with create_span("index.search", attributes={"search.query_length": 5}):
            pass

        span = exporter.get_finished_spans()[0]
        assert span.name == "index.search"
        assert span.attributes["search.query_length"] == 5
        assert get_trace_context()["span_id"] == format(span.context.span_id, "016x")

    def test_create_span_marks_errors(self, exporter):
        with pytest.raises(RuntimeError), create_span("index.add_entry"):
            raise RuntimeError("write failed")

        span = exporter.get_finished_spans()[0]
        assert span.status.status_code is StatusCode.ERROR

    def test_exporter_disabled_without_endpoint(self):
        assert configure_trace_exporter("", "http") is False


@pytest.mark.unit
class TestMetrics:
    def test_metrics_exposition_lists_index_metrics(self):
        body = get_metrics().decode("utf-8")
        assert "keyword_search_latency_seconds" in body
        assert "keyword_index_rows_written_total" in body
        assert "text/plain" in get_metrics_content_type()

    @pytest.mark.asyncio
    async def test_index_writes_are_counted(self, repository):
        labels = {"entry_type": "person"}
        before = REGISTRY.get_sample_value("keyword_index_rows_written_total", labels) or 0.0

        await IndexWriter(repository).add_entry("u1", "Fritz Meyer", "p1", EntryType.PERSON)

        assert REGISTRY.get_sample_value("keyword_index_rows_written_total", labels) == before + 2
