"""Edit distance used to rank query candidates.

Candidates are compared as whole canonical strings (see
``connections_search.search.normalizer.normalize_text``), so the distance is
computed over the full sorted text rather than per term.
"""

from __future__ import annotations

from collections.abc import Sequence
import heapq


def levenshtein_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Return the number of single-character edits turning ``s1`` into ``s2``.

    With ``max_distance`` set, the computation stops as soon as the distance
    is known to exceed it and returns ``max_distance + 1``. The ranking uses
    this to drop candidates that can no longer reach the top hits.

    Examples:
        >>> levenshtein_distance("alpha report", "alpha")
        7
        >>> levenshtein_distance("blue widget", "widget", max_distance=2)
        3
    """
    # Keep the shorter string as the row so the table stays small
    short, long_ = (s1, s2) if len(s1) <= len(s2) else (s2, s1)
    bound = None if max_distance is None else max_distance + 1

    if bound is not None and len(long_) - len(short) >= bound:
        return bound
    if not short:
        return len(long_)

    previous = list(range(len(short) + 1))
    for row, long_char in enumerate(long_, start=1):
        current = [row]
        for col, short_char in enumerate(short, start=1):
            current.append(
                min(
                    previous[col] + 1,
                    current[col - 1] + 1,
                    previous[col - 1] + (short_char != long_char),
                )
            )
        if bound is not None and min(current) >= bound:
            return bound
        previous = current

    return previous[-1]


def rank_by_distance(target: str, candidates: Sequence[str], limit: int | None = None) -> list[tuple[int, int]]:
    """Return ``(index, distance)`` pairs for candidates, closest first.

    Equal distances keep their input order. With ``limit`` only the best
    ``limit`` pairs are returned, and each candidate is measured only up to
    the distance of the current worst kept one.
    """
    if limit is None:
        scored = [(index, levenshtein_distance(candidate, target)) for index, candidate in enumerate(candidates)]
        scored.sort(key=lambda pair: pair[1])
        return scored
    if limit <= 0:
        return []

    # Max-heap on (distance, index): the root is the pair that drops out first
    kept: list[tuple[int, int]] = []
    for index, candidate in enumerate(candidates):
        if len(kept) < limit:
            heapq.heappush(kept, (-levenshtein_distance(candidate, target), -index))
            continue
        worst = -kept[0][0]
        distance = levenshtein_distance(candidate, target, max_distance=worst)
        # A tie with the worst kept pair loses to its earlier index
        if distance < worst:
            heapq.heapreplace(kept, (-distance, -index))

    return sorted(((-index, -distance) for distance, index in kept), key=lambda pair: (pair[1], pair[0]))
