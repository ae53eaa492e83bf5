"""Fan a document's text out into one index row per distinct keyword."""

from __future__ import annotations

import asyncio
import logging

from connections_search.adapters.index_repository import AbstractIndexRepository
from connections_search.domain.errors import StorageUnavailableError
from connections_search.domain.model import EntryType, IndexEntry
from connections_search.observability.metrics import INDEX_WRITES, STORAGE_ERRORS
from connections_search.search.normalizer import keywords, normalize_word


logger = logging.getLogger(__name__)


class IndexWriter:
    """Writes index rows for documents.

    Rows of one document are upserted concurrently, at most ``concurrency``
    at a time. There is no cross-row atomicity: a reader can see a document
    under some of its keywords before the rest land.
    """

    def __init__(self, repository: AbstractIndexRepository, *, concurrency: int = 8) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.repository = repository
        self.concurrency = concurrency

    async def add_entry(
        self,
        owner_id: str,
        text: str,
        reference_id: str,
        entry_type: EntryType = EntryType.UNKNOWN,
    ) -> list[IndexEntry]:
        """Index ``text`` under every distinct normalized keyword.

        Returns the rows written. The first failed upsert cancels the rest and
        propagates; rows already written stay in place.
        """
        entries = [
            IndexEntry(owner_id=owner_id, keyword=word, entry_type=entry_type, reference_id=reference_id, text=text)
            for word in keywords(text)
        ]
        if not entries:
            logger.debug("Nothing to index for %s: no keywords in text", reference_id)
            return []

        semaphore = asyncio.Semaphore(self.concurrency)

        async def write(entry: IndexEntry) -> None:
            async with semaphore:
                await self._upsert(entry)

        tasks = [asyncio.ensure_future(write(entry)) for entry in entries]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        logger.debug("Indexed %s under %d keywords for owner %s", reference_id, len(entries), owner_id)
        return entries

    async def add(self, entry: IndexEntry) -> IndexEntry:
        """Upsert a caller-built row after normalizing its keyword."""
        keyword = normalize_word(entry.keyword.strip())
        if not keyword:
            raise ValueError(f"Keyword {entry.keyword!r} is empty after normalization")
        normalized = entry.model_copy(update={"keyword": keyword})
        await self._upsert(normalized)
        return normalized

    async def _upsert(self, entry: IndexEntry) -> None:
        try:
            await self.repository.upsert(entry)
        except StorageUnavailableError:
            STORAGE_ERRORS.labels(operation="upsert").inc()
            raise
        INDEX_WRITES.labels(entry_type=entry.entry_type.name.lower()).inc()
