"""
Text handling for the keyword index.

- normalizer: word tokens for storage keys and the sorted canonical form
- fuzzy: edit distance used to rank candidates
"""

from connections_search.search.fuzzy import levenshtein_distance, rank_by_distance
from connections_search.search.normalizer import keywords, normalize_text, normalize_word, tokenize


__all__ = [
    "keywords",
    "levenshtein_distance",
    "normalize_text",
    "normalize_word",
    "rank_by_distance",
    "tokenize",
]
