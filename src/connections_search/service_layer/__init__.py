"""Service layer - Business logic orchestration.

Following Cosmic Python Chapter 4:
- Service layer orchestrates use cases (ingest, query, startup migration)
- Works with domain model and repositories
"""

from .compaction_guard import ensure_leveled_compaction
from .index_writer import IndexWriter
from .query_engine import QueryEngine, merge_candidates
from .schema_bootstrap import provision_schema, run_migrations
from .search_service import SearchService


__all__ = [
    "IndexWriter",
    "QueryEngine",
    "SearchService",
    "ensure_leveled_compaction",
    "merge_candidates",
    "provision_schema",
    "run_migrations",
]
