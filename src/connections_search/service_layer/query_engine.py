"""Multi-term fan-out query and edit-distance ranking.

For a query the engine:

1. builds the canonical form ``Q`` of the query text,
2. runs one prefix scan per distinct token of ``Q``, all concurrently
   (the first failed scan cancels the others),
3. merges the scans and drops rows fetched more than once,
4. ranks every row by the edit distance between its canonical text and ``Q``
   (stable, so equal distances keep arrival order),
5. returns the top ``limit`` hits.

Any failed scan fails the whole query; partial candidate sets are never
ranked.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
import logging

from connections_search.adapters.index_repository import AbstractIndexRepository
from connections_search.domain.model import IndexEntry, IndexKey, QueryHit
from connections_search.observability.metrics import SEARCH_CANDIDATES
from connections_search.search.fuzzy import rank_by_distance
from connections_search.search.normalizer import normalize_text


logger = logging.getLogger(__name__)

DEFAULT_FETCH_LIMIT = 1000
DEFAULT_RESULT_LIMIT = 10


def merge_candidates(batches: Iterable[list[IndexEntry]]) -> list[IndexEntry]:
    """Flatten scan results, keeping the first occurrence of each primary key."""
    seen: set[IndexKey] = set()
    merged: list[IndexEntry] = []
    for batch in batches:
        for entry in batch:
            if entry.key in seen:
                continue
            seen.add(entry.key)
            merged.append(entry)
    return merged


class QueryEngine:
    """Answers free-text queries against one owner's partition."""

    def __init__(
        self,
        repository: AbstractIndexRepository,
        *,
        fetch_limit: int = DEFAULT_FETCH_LIMIT,
        result_limit: int = DEFAULT_RESULT_LIMIT,
    ) -> None:
        self.repository = repository
        self.fetch_limit = fetch_limit
        self.result_limit = result_limit

    async def search(self, owner_id: str, query_text: str, limit: int | None = None) -> list[QueryHit]:
        """Return at most ``limit`` hits of ``owner_id`` ordered by edit distance."""
        limit = self.result_limit if limit is None else limit
        canonical_query = normalize_text(query_text)
        tokens = list(dict.fromkeys(canonical_query.split()))
        if not tokens or limit <= 0:
            return []

        scans = [
            asyncio.ensure_future(self.repository.scan_prefix(owner_id, token, self.fetch_limit)) for token in tokens
        ]
        try:
            batches = await asyncio.gather(*scans)
        except BaseException:
            for scan in scans:
                scan.cancel()
            await asyncio.gather(*scans, return_exceptions=True)
            raise
        candidates = merge_candidates(batches)
        SEARCH_CANDIDATES.observe(len(candidates))

        ranked = rank_by_distance(canonical_query, [normalize_text(entry.text) for entry in candidates], limit)
        hits = [QueryHit.from_entry(candidates[index], distance) for index, distance in ranked]

        logger.debug(
            "Query for owner %s: %d tokens, %d candidates, %d hits",
            owner_id,
            len(tokens),
            len(candidates),
            len(hits),
        )
        return hits

