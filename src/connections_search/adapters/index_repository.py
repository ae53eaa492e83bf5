"""Index repository abstractions and the in-process implementation.

Defines the storage seam of the keyword index following the Repository
Pattern. Rows live in one partition per owner and are ordered by
``(keyword, entry_type, reference_id)`` inside it, which is what makes a
keyword prefix a contiguous range.

Schema and catalog calls are synchronous: they run once at startup, off the
event loop. Row reads and writes are coroutines.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
import logging

from connections_search.domain.model import EntryType, IndexEntry, IndexKey


logger = logging.getLogger(__name__)

DEFAULT_TABLE = "search_entry"
LEVELED_COMPACTION = "LeveledCompactionStrategy"
SIZE_TIERED_COMPACTION = "SizeTieredCompactionStrategy"

_MAX_CODE_POINT = 0x10FFFF
_SURROGATE_FIRST = 0xD800
_SURROGATE_LAST = 0xDFFF


def prefix_upper_bound(prefix: str) -> str | None:
    """Return the smallest string greater than every string starting with ``prefix``.

    ``None`` means the range is unbounded above (empty prefix, or a prefix made
    only of the maximum code point).

    Examples:
        >>> prefix_upper_bound("alph")
        'alpi'
        >>> prefix_upper_bound("") is None
        True
    """
    chars = list(prefix)
    while chars:
        code = ord(chars[-1])
        if code < _MAX_CODE_POINT:
            code += 1
            # Surrogates cannot be encoded as UTF-8 on the wire
            if _SURROGATE_FIRST <= code <= _SURROGATE_LAST:
                code = _SURROGATE_LAST + 1
            chars[-1] = chr(code)
            return "".join(chars)
        chars.pop()
    return None


class AbstractIndexRepository(ABC):
    """Abstract repository for keyword index rows.

    Implementations talk to a concrete store (a Cassandra cluster, process
    memory). They also expose the compaction catalog used by the startup
    compaction check.
    """

    table: str = DEFAULT_TABLE
    keyspace: str | None = None

    def ensure_keyspace(self) -> None:
        """Optional hook creating the keyspace that holds the table."""

        return

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create the index table if absent. Safe to call repeatedly."""
        raise NotImplementedError

    @abstractmethod
    async def upsert(self, entry: IndexEntry) -> None:
        """Insert ``entry``, overwriting any row with the same primary key."""
        raise NotImplementedError

    @abstractmethod
    async def scan_prefix(self, owner_id: str, prefix: str, limit: int) -> list[IndexEntry]:
        """Return up to ``limit`` rows of ``owner_id`` whose keyword starts with ``prefix``.

        Rows come back in clustering order.
        """
        raise NotImplementedError

    @abstractmethod
    def read_compaction(self) -> Mapping[str, str] | None:
        """Return the table's compaction options from the metadata catalog.

        ``None`` means the catalog does not show the table (yet).
        """
        raise NotImplementedError

    @abstractmethod
    def alter_compaction(self, strategy_class: str) -> None:
        """Switch the table to ``strategy_class``."""
        raise NotImplementedError

    async def ping(self) -> bool:
        """Optional hook returning whether the store answered a trivial query."""

        return True

    def close(self) -> None:
        """Optional hook releasing connections."""

        return


class InMemoryIndexRepository(AbstractIndexRepository):
    """Process-local repository with the same key layout as the cluster table.

    Used for local runs (``STORAGE_BACKEND=memory``) and tests. The catalog
    reports the table once ``ensure_schema`` ran, starting out size-tiered the
    way a freshly created Cassandra table does.
    """

    def __init__(self, table: str = DEFAULT_TABLE, keyspace: str | None = "memory") -> None:
        self.table = table
        self.keyspace = keyspace
        self._partitions: dict[str, dict[tuple[str, EntryType, str], IndexEntry]] = {}
        self._compaction: dict[str, str] | None = None

    def ensure_schema(self) -> None:
        if self._compaction is None:
            self._compaction = {"class": f"org.apache.cassandra.db.compaction.{SIZE_TIERED_COMPACTION}"}
            logger.debug("Created in-memory table %s", self.table)

    async def upsert(self, entry: IndexEntry) -> None:
        partition = self._partitions.setdefault(entry.owner_id, {})
        partition[(entry.keyword, entry.entry_type, entry.reference_id)] = entry

    async def scan_prefix(self, owner_id: str, prefix: str, limit: int) -> list[IndexEntry]:
        partition = self._partitions.get(owner_id)
        if not partition:
            return []
        matches = [partition[key] for key in sorted(partition) if key[0].startswith(prefix)]
        return matches[:limit]

    def read_compaction(self) -> Mapping[str, str] | None:
        if self._compaction is None:
            return None
        return dict(self._compaction)

    def alter_compaction(self, strategy_class: str) -> None:
        if self._compaction is None:
            raise RuntimeError(f"Table {self.table} does not exist")
        self._compaction = {"class": f"org.apache.cassandra.db.compaction.{strategy_class}"}

    def rows(self, owner_id: str | None = None) -> list[IndexEntry]:
        """Return stored rows (of one owner, or all) in clustering order."""
        owners = [owner_id] if owner_id is not None else sorted(self._partitions)
        result: list[IndexEntry] = []
        for owner in owners:
            partition = self._partitions.get(owner, {})
            result.extend(partition[key] for key in sorted(partition))
        return result

    def keys(self) -> set[IndexKey]:
        return {entry.key for entry in self.rows()}
