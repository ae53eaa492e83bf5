"""Cassandra-backed keyword index.

Table layout::

    PRIMARY KEY ((owner_id), keyword, type, reference_id)

``owner_id`` is the partition key so every read and write stays inside one
owner's partition. ``keyword`` is the first clustering column, so a keyword
prefix maps onto a clustering range (``keyword >= p AND keyword < p'``).

Driver response futures are bridged onto the running asyncio loop; the
driver invokes callbacks on its own I/O thread.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
import logging
import threading
from typing import TYPE_CHECKING, Any

from cassandra import DriverException, OperationTimedOut, Unauthorized
from cassandra.cluster import NoHostAvailable
from cassandra.query import SimpleStatement

from connections_search.adapters.index_repository import (
    DEFAULT_TABLE,
    AbstractIndexRepository,
    prefix_upper_bound,
)
from connections_search.domain.errors import SchemaUnavailableError, StorageUnavailableError
from connections_search.domain.model import EntryType, IndexEntry


if TYPE_CHECKING:
    from cassandra.cluster import ResponseFuture, Session
    from cassandra.query import PreparedStatement


logger = logging.getLogger(__name__)

DRIVER_ERRORS: tuple[type[Exception], ...] = (DriverException, NoHostAvailable, OperationTimedOut)

_SELECT_COLUMNS = "owner_id, keyword, type, reference_id, text"


def _row_value(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row[name]
    return getattr(row, name)


def _row_to_entry(row: Any) -> IndexEntry:
    return IndexEntry(
        owner_id=_row_value(row, "owner_id"),
        keyword=_row_value(row, "keyword"),
        entry_type=EntryType(_row_value(row, "type")),
        reference_id=_row_value(row, "reference_id"),
        text=_row_value(row, "text") or "",
    )


def _resolve(future: asyncio.Future, rows: list[Any]) -> None:
    if not future.done():
        future.set_result(rows)


def _reject(future: asyncio.Future, exc: BaseException) -> None:
    if not future.done():
        future.set_exception(exc)


async def execute_async(session: Session, statement: Any, parameters: Sequence[Any] | None = None) -> list[Any]:
    """Run ``statement`` without blocking the loop and return every row.

    Further pages are requested from the driver callback until the result
    set is exhausted.
    """
    loop = asyncio.get_running_loop()
    done: asyncio.Future = loop.create_future()
    rows: list[Any] = []
    response_future: ResponseFuture = session.execute_async(statement, parameters)

    def on_page(page: Sequence[Any] | None) -> None:
        if page:
            rows.extend(page)
        if response_future.has_more_pages:
            response_future.start_fetching_next_page()
            return
        loop.call_soon_threadsafe(_resolve, done, rows)

    def on_error(exc: BaseException) -> None:
        loop.call_soon_threadsafe(_reject, done, exc)

    response_future.add_callbacks(callback=on_page, errback=on_error)
    return await done


class CassandraIndexRepository(AbstractIndexRepository):
    """Keyword index stored in a Cassandra / ScyllaDB table."""

    def __init__(
        self,
        session: Session,
        keyspace: str | None = None,
        table: str = DEFAULT_TABLE,
        *,
        replication_class: str = "SimpleStrategy",
        replication_factor: int = 1,
    ) -> None:
        self._session = session
        self.keyspace = keyspace or getattr(session, "keyspace", None)
        self.table = table
        self._replication_class = replication_class
        self._replication_factor = replication_factor
        self._prepared: dict[str, PreparedStatement] = {}
        self._prepare_lock = threading.Lock()

    @property
    def qualified_table(self) -> str:
        if not self.keyspace:
            raise SchemaUnavailableError("Session has no keyspace configured")
        return f"{self.keyspace}.{self.table}"

    def ensure_keyspace(self) -> None:
        if not self.keyspace:
            raise SchemaUnavailableError("Session has no keyspace configured")
        cql = (
            f"CREATE KEYSPACE IF NOT EXISTS {self.keyspace} WITH replication = "
            f"{{'class': '{self._replication_class}', 'replication_factor': '{self._replication_factor}'}}"
        )
        try:
            self._session.execute(cql)
            logger.info("Ensured keyspace %s (%s x%s)", self.keyspace, self._replication_class, self._replication_factor)
        except Unauthorized:
            logger.warning("Not authorized to create keyspace %s, using it as provisioned", self.keyspace)
        except DRIVER_ERRORS as exc:
            raise SchemaUnavailableError(f"Could not create keyspace {self.keyspace}: {exc}") from exc
        self._session.set_keyspace(self.keyspace)

    def ensure_schema(self) -> None:
        cql = (
            f"CREATE TABLE IF NOT EXISTS {self.qualified_table} ("
            "owner_id text, keyword text, type int, reference_id text, text text, "
            "PRIMARY KEY ((owner_id), keyword, type, reference_id))"
        )
        try:
            self._session.execute(cql)
        except DRIVER_ERRORS as exc:
            raise SchemaUnavailableError(f"Could not create table {self.qualified_table}: {exc}") from exc
        logger.info("Ensured table %s", self.qualified_table)

    def _statement(self, name: str, cql: str) -> PreparedStatement:
        prepared = self._prepared.get(name)
        if prepared is None:
            with self._prepare_lock:
                prepared = self._prepared.get(name)
                if prepared is None:
                    prepared = self._session.prepare(cql)
                    self._prepared[name] = prepared
        return prepared

    async def upsert(self, entry: IndexEntry) -> None:
        try:
            statement = self._statement(
                "insert",
                f"INSERT INTO {self.qualified_table} ({_SELECT_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
            )
            await execute_async(
                self._session,
                statement,
                (entry.owner_id, entry.keyword, int(entry.entry_type), entry.reference_id, entry.text),
            )
        except DRIVER_ERRORS as exc:
            raise StorageUnavailableError("upsert", str(exc)) from exc

    async def scan_prefix(self, owner_id: str, prefix: str, limit: int) -> list[IndexEntry]:
        upper = prefix_upper_bound(prefix)
        try:
            if upper is None:
                statement = self._statement(
                    "scan_open",
                    f"SELECT {_SELECT_COLUMNS} FROM {self.qualified_table} "
                    "WHERE owner_id = ? AND keyword >= ? LIMIT ?",
                )
                parameters: tuple[Any, ...] = (owner_id, prefix, limit)
            else:
                statement = self._statement(
                    "scan_range",
                    f"SELECT {_SELECT_COLUMNS} FROM {self.qualified_table} "
                    "WHERE owner_id = ? AND keyword >= ? AND keyword < ? LIMIT ?",
                )
                parameters = (owner_id, prefix, upper, limit)
            rows = await execute_async(self._session, statement, parameters)
        except DRIVER_ERRORS as exc:
            raise StorageUnavailableError("scan_prefix", str(exc)) from exc
        return [_row_to_entry(row) for row in rows]

    def read_compaction(self) -> Mapping[str, str] | None:
        if not self.keyspace:
            raise SchemaUnavailableError("Session has no keyspace configured")
        statement = SimpleStatement(
            "SELECT compaction FROM system_schema.tables WHERE keyspace_name = %s AND table_name = %s"
        )
        row = self._session.execute(statement, (self.keyspace, self.table)).one()
        if row is None:
            return None
        return dict(_row_value(row, "compaction") or {})

    def alter_compaction(self, strategy_class: str) -> None:
        self._session.execute(f"ALTER TABLE {self.qualified_table} WITH compaction = {{'class': '{strategy_class}'}}")

    async def ping(self) -> bool:
        try:
            rows = await execute_async(self._session, SimpleStatement("SELECT now() FROM system.local"))
        except DRIVER_ERRORS as exc:
            raise StorageUnavailableError("ping", str(exc)) from exc
        return bool(rows)

    def close(self) -> None:
        cluster = getattr(self._session, "cluster", None)
        if cluster is not None:
            cluster.shutdown()
