"""Unit tests for edit distance and ranking."""

import pytest

from connections_search.search.fuzzy import levenshtein_distance, rank_by_distance


class TestLevenshteinDistance:
    @pytest.mark.parametrize(
        ("s1", "s2", "expected"),
        [
            ("kitten", "sitting", 3),
            ("", "abc", 3),
            ("abc", "", 3),
            ("", "", 0),
            ("widget", "widget", 0),
            ("blue widget", "widget", 5),
            ("flaw", "lawn", 2),
        ],
    )
    def test_distances(self, s1, s2, expected):
        assert levenshtein_distance(s1, s2) == expected

    def test_symmetric(self):
        assert levenshtein_distance("alpha report", "alpha") == levenshtein_distance("alpha", "alpha report")

    def test_max_distance_short_circuits(self):
        assert levenshtein_distance("a", "abcdefgh", max_distance=2) == 3

    def test_max_distance_not_exceeded(self):
        assert levenshtein_distance("kitten", "sitting", max_distance=5) == 3


class TestRankByDistance:
    def test_closest_first(self):
        ranked = rank_by_distance("widget", ["blue widget", "widget", "widgets"])
        assert ranked == [(1, 0), (2, 1), (0, 5)]

    def test_ties_keep_input_order(self):
        ranked = rank_by_distance("ab", ["ax", "xb", "ab"])
        assert [index for index, _ in ranked] == [2, 0, 1]

    def test_empty_candidates(self):
        assert rank_by_distance("anything", []) == []

    @pytest.mark.parametrize("limit", [1, 2, 3, 5, 10])
    def test_limit_matches_head_of_full_ranking(self, limit):
        candidates = ["alpha summary", "alpha report", "report", "alpha", "alpha report", "beta", "alpha reports"]

        full = rank_by_distance("alpha report", candidates)

        assert rank_by_distance("alpha report", candidates, limit) == full[:limit]

    def test_limit_keeps_earliest_of_tied_candidates(self):
        ranked = rank_by_distance("ab", ["ax", "xb", "ay", "ab"], limit=2)
        assert ranked == [(3, 0), (0, 1)]

    def test_zero_limit(self):
        assert rank_by_distance("ab", ["ab"], limit=0) == []
