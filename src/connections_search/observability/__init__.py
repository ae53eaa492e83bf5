"""Observability module for OpenTelemetry-aligned tracing, metrics, and logging."""

from connections_search.observability.context import get_trace_context, set_trace_context, trace_context
from connections_search.observability.logging import JsonFormatter, configure_logging
from connections_search.observability.metrics import (
    COMPACTION_CHECKS,
    INDEX_WRITES,
    SEARCH_CANDIDATES,
    SEARCH_LATENCY,
    STORAGE_ERRORS,
    get_metrics,
    get_metrics_content_type,
)
from connections_search.observability.tracing import (
    configure_trace_exporter,
    create_span,
    get_tracer,
    init_tracing,
)


__all__ = [
    "COMPACTION_CHECKS",
    "INDEX_WRITES",
    "SEARCH_CANDIDATES",
    "SEARCH_LATENCY",
    "STORAGE_ERRORS",
    "JsonFormatter",
    "configure_logging",
    "configure_trace_exporter",
    "create_span",
    "get_metrics",
    "get_metrics_content_type",
    "get_trace_context",
    "get_tracer",
    "init_tracing",
    "set_trace_context",
    "trace_context",
]
