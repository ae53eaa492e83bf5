"""Storage health probe."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from connections_search.adapters.index_repository import AbstractIndexRepository


logger = logging.getLogger(__name__)


async def check_storage_health(repository: AbstractIndexRepository) -> dict[str, str]:
    """Run a trivial query against the store and classify the answer.

    ``healthy`` when a row came back, ``degraded`` when the query succeeded
    without rows, ``unhealthy`` when it raised.
    """
    target = f"{repository.keyspace}.{repository.table}" if repository.keyspace else repository.table
    try:
        answered = await repository.ping()
    except Exception as exc:
        logger.error("Storage health check failed", exc_info=True)
        return {"status": "unhealthy", "table": target, "error": str(exc)}

    if answered:
        return {"status": "healthy", "table": target, "message": "Storage is responsive"}
    return {"status": "degraded", "table": target, "message": "Storage query returned no results"}
