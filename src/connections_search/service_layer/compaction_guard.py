"""Switch the index table to leveled compaction once the catalog shows it.

A freshly created table may not be visible in ``system_schema`` on the node
answering the query yet, so the catalog is polled a bounded number of times.
The check is an optimization only: every failure path ends in a
``CompactionCheck`` result instead of an exception, and the table keeps
whatever strategy it already has.

This runs synchronously and sleeps between polls. Call it from a worker
thread (``asyncio.to_thread``), never from the loop serving requests.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
import time
from typing import Protocol

from connections_search.adapters.index_repository import LEVELED_COMPACTION
from connections_search.domain.model import CompactionCheck, CompactionOutcome


logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 6
DEFAULT_INTERVAL_SECONDS = 0.5


class CompactionCatalog(Protocol):
    table: str

    def read_compaction(self) -> Mapping[str, str] | None: ...

    def alter_compaction(self, strategy_class: str) -> None: ...


def is_leveled(compaction_class: str | None) -> bool:
    return bool(compaction_class) and LEVELED_COMPACTION.lower() in compaction_class.lower()


def ensure_leveled_compaction(
    catalog: CompactionCatalog,
    *,
    attempts: int = DEFAULT_ATTEMPTS,
    interval: float = DEFAULT_INTERVAL_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> CompactionCheck:
    """Poll the catalog, then alter the table to leveled compaction if needed.

    Args:
        catalog: Repository exposing the table's compaction options.
        attempts: Catalog reads before giving up.
        interval: Seconds slept after each empty read.
        sleep: Blocking sleep, injectable for tests.

    Returns:
        ``CONVERGED`` when already leveled, ``ALTERED`` after switching,
        ``TIMED_OUT`` when the table never showed up, ``FAILED`` on any error.
    """
    table = getattr(catalog, "table", "<unknown>")
    compaction: Mapping[str, str] | None = None
    polls = 0
    try:
        for polls in range(1, attempts + 1):
            compaction = catalog.read_compaction()
            if compaction is not None:
                break
            if polls < attempts:
                sleep(interval)

        if compaction is None:
            return CompactionCheck(outcome=CompactionOutcome.TIMED_OUT, table=table, attempts=polls)

        current = compaction.get("class")
        if is_leveled(current):
            return CompactionCheck(
                outcome=CompactionOutcome.CONVERGED, table=table, compaction_class=current, attempts=polls
            )

        catalog.alter_compaction(LEVELED_COMPACTION)
        return CompactionCheck(
            outcome=CompactionOutcome.ALTERED, table=table, compaction_class=current, attempts=polls
        )
    except Exception as exc:
        logger.debug("Compaction check raised for %s", table, exc_info=True)
        return CompactionCheck(outcome=CompactionOutcome.FAILED, table=table, attempts=polls, error=str(exc))
