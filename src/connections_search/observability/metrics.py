"""Prometheus metrics for the keyword index."""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


SEARCH_LATENCY = Histogram(
    "keyword_search_latency_seconds",
    "Search query latency including all prefix scans",
    ["outcome"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
)

SEARCH_CANDIDATES = Histogram(
    "keyword_search_candidates",
    "Distinct candidate rows ranked per query",
    buckets=(0, 1, 10, 50, 100, 500, 1000, 5000),
)

INDEX_WRITES = Counter(
    "keyword_index_rows_written_total",
    "Index rows upserted",
    ["entry_type"],
)

STORAGE_ERRORS = Counter(
    "keyword_index_storage_errors_total",
    "Failed storage calls",
    ["operation"],
)

COMPACTION_CHECKS = Counter(
    "keyword_index_compaction_checks_total",
    "Startup compaction checks by outcome",
    ["outcome"],
)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get content type for metrics endpoint."""
    return CONTENT_TYPE_LATEST
