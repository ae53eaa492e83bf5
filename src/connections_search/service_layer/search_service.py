"""Search service orchestration layer.

Single entry point for callers (HTTP handlers, workers, the CLI): ingest
goes to ``IndexWriter``, queries to ``QueryEngine``. Adds tracing spans,
latency metrics and owner-scoped log context around both.
"""

from __future__ import annotations

import logging
import time

from connections_search.adapters.index_repository import AbstractIndexRepository, InMemoryIndexRepository
from connections_search.config import Settings
from connections_search.domain.errors import StorageUnavailableError
from connections_search.domain.model import CompactionCheck, EntryType, IndexEntry, QueryHit
from connections_search.observability.context import get_trace_context, set_trace_context
from connections_search.observability.metrics import SEARCH_LATENCY, STORAGE_ERRORS
from connections_search.observability.tracing import create_span
from connections_search.runtime.health import check_storage_health
from connections_search.service_layer.index_writer import IndexWriter
from connections_search.service_layer.query_engine import QueryEngine
from connections_search.service_layer.schema_bootstrap import run_migrations


logger = logging.getLogger(__name__)


def _bind_owner(owner_id: str) -> None:
    ctx = get_trace_context()
    set_trace_context(ctx["trace_id"], ctx["span_id"], owner=owner_id)


class SearchService:
    """High-level keyword index API."""

    def __init__(
        self,
        repository: AbstractIndexRepository,
        *,
        fetch_limit: int = 1000,
        result_limit: int = 10,
        write_concurrency: int = 8,
        compaction_attempts: int = 6,
        compaction_interval: float = 0.5,
    ) -> None:
        """Initialize search service with dependencies.

        Args:
            repository: Index storage implementation (required)
            fetch_limit: Rows fetched per prefix scan
            result_limit: Default number of hits per query
            write_concurrency: Concurrent upserts per ingested document
            compaction_attempts: Catalog polls in the startup compaction check
            compaction_interval: Seconds between catalog polls
        """
        self.repository = repository
        self.writer = IndexWriter(repository, concurrency=write_concurrency)
        self.engine = QueryEngine(repository, fetch_limit=fetch_limit, result_limit=result_limit)
        self._compaction_attempts = compaction_attempts
        self._compaction_interval = compaction_interval

    @classmethod
    def from_settings(cls, settings: Settings, repository: AbstractIndexRepository | None = None) -> SearchService:
        """Build the service for the configured backend."""
        if repository is None:
            if settings.is_memory_backend():
                repository = InMemoryIndexRepository(table=settings.search_table)
            else:
                # Imported lazily so the memory backend never loads the driver
                from connections_search.adapters.cassandra_session import create_repository

                repository = create_repository(settings)
        return cls(
            repository,
            fetch_limit=settings.search_fetch_limit,
            result_limit=settings.search_result_limit,
            write_concurrency=settings.index_write_concurrency,
            compaction_attempts=settings.compaction_poll_attempts,
            compaction_interval=settings.compaction_poll_interval_seconds,
        )

    async def migrate(self) -> CompactionCheck:
        """Provision keyspace and table, then run the compaction check."""
        with create_span("index.migrate", attributes={"index.table": self.repository.table}):
            return await run_migrations(
                self.repository,
                attempts=self._compaction_attempts,
                interval=self._compaction_interval,
            )

    async def add_entry(
        self,
        owner_id: str,
        text: str,
        reference_id: str,
        entry_type: EntryType = EntryType.UNKNOWN,
    ) -> list[IndexEntry]:
        """Index ``text`` for ``owner_id`` under every distinct keyword."""
        _bind_owner(owner_id)
        with create_span(
            "index.add_entry",
            attributes={"index.reference_id": reference_id, "index.entry_type": entry_type.name},
        ) as span:
            entries = await self.writer.add_entry(owner_id, text, reference_id, entry_type)
            span.set_attribute("index.rows", len(entries))
        logger.info("Indexed %s (%s) under %d keywords", reference_id, entry_type.name.lower(), len(entries))
        return entries

    async def add(self, entry: IndexEntry) -> IndexEntry:
        """Upsert a single caller-built row (keyword gets normalized)."""
        _bind_owner(entry.owner_id)
        with create_span("index.add", attributes={"index.reference_id": entry.reference_id}):
            return await self.writer.add(entry)

    async def search(self, owner_id: str, query_text: str, limit: int | None = None) -> list[QueryHit]:
        """Return the closest hits of ``owner_id`` for ``query_text``."""
        _bind_owner(owner_id)
        outcome = "ok"
        start = time.perf_counter()
        with create_span("index.search", attributes={"search.query_length": len(query_text)}) as span:
            try:
                hits = await self.engine.search(owner_id, query_text, limit)
            except StorageUnavailableError:
                outcome = "error"
                STORAGE_ERRORS.labels(operation="scan_prefix").inc()
                raise
            finally:
                SEARCH_LATENCY.labels(outcome=outcome).observe(time.perf_counter() - start)
                span.set_attribute("search.outcome", outcome)
            span.set_attribute("search.hits", len(hits))
        logger.debug("Search returned %d hits", len(hits))
        return hits

    async def health(self) -> dict[str, str]:
        """Storage health payload (see ``runtime.health``)."""
        return await check_storage_health(self.repository)
