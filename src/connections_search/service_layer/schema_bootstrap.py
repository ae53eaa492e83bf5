"""Startup migration step for the keyword index.

Creates the keyspace and table (fatal on failure), then runs the compaction
check (never fatal). Both are blocking driver calls and run in a worker
thread so the event loop stays free.
"""

from __future__ import annotations

import asyncio
import logging

from connections_search.adapters.index_repository import AbstractIndexRepository
from connections_search.domain.errors import SchemaUnavailableError
from connections_search.domain.model import CompactionCheck
from connections_search.observability.metrics import COMPACTION_CHECKS
from connections_search.service_layer.compaction_guard import (
    DEFAULT_ATTEMPTS,
    DEFAULT_INTERVAL_SECONDS,
    ensure_leveled_compaction,
)


logger = logging.getLogger(__name__)


def provision_schema(repository: AbstractIndexRepository) -> None:
    """Create keyspace and table, raising ``SchemaUnavailableError`` on failure."""
    try:
        repository.ensure_keyspace()
        repository.ensure_schema()
    except SchemaUnavailableError:
        logger.error("Schema provisioning failed for table %s", repository.table, exc_info=True)
        raise
    except Exception as exc:
        logger.error("Schema provisioning failed for table %s", repository.table, exc_info=True)
        raise SchemaUnavailableError(f"Could not provision table {repository.table}: {exc}") from exc


def report_compaction_check(check: CompactionCheck) -> None:
    """Log and count a compaction check result."""
    COMPACTION_CHECKS.labels(outcome=check.outcome.value).inc()
    if check.skipped:
        logger.warning(
            "Compaction check skipped for %s (%s after %d polls): %s",
            check.table,
            check.outcome.value,
            check.attempts,
            check.error or "table not visible in schema catalog",
        )
        return
    logger.info(
        "Compaction check for %s: %s (was %s)",
        check.table,
        check.outcome.value,
        check.compaction_class,
    )


async def run_migrations(
    repository: AbstractIndexRepository,
    *,
    attempts: int = DEFAULT_ATTEMPTS,
    interval: float = DEFAULT_INTERVAL_SECONDS,
) -> CompactionCheck:
    """Provision the schema, then run the compaction check off the loop."""
    await asyncio.to_thread(provision_schema, repository)
    check = await asyncio.to_thread(ensure_leveled_compaction, repository, attempts=attempts, interval=interval)
    report_compaction_check(check)
    return check
