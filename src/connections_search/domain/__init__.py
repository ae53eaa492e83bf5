"""Domain layer - pure business logic with no infrastructure dependencies.

Following Cosmic Python Chapter 2 (Repository Pattern), this layer contains
the stored row, the search hit, the compaction check result and the error
kinds. Nothing here imports the database driver.
"""

from connections_search.domain.errors import SchemaUnavailableError, SearchIndexError, StorageUnavailableError
from connections_search.domain.model import (
    CompactionCheck,
    CompactionOutcome,
    EntryType,
    IndexEntry,
    IndexKey,
    QueryHit,
)


__all__ = [
    "CompactionCheck",
    "CompactionOutcome",
    "EntryType",
    "IndexEntry",
    "IndexKey",
    "QueryHit",
    "SchemaUnavailableError",
    "SearchIndexError",
    "StorageUnavailableError",
]
