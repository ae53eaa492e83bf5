"""Word normalization for the keyword index.

Two forms are produced from raw text:

* the per-word token list (``tokenize`` / ``keywords``) which becomes the
  clustering keys written to storage, and
* the canonical form (``normalize_text``) where tokens are sorted and joined.
  It is only ever compared against other canonical strings when scoring, so
  "red car" and "car red" rank identically.

Singularization is deliberately naive: one trailing "s" is removed, nothing
else. Irregular plurals are not handled.
"""

from __future__ import annotations


def normalize_word(word: str) -> str:
    """Lowercase ``word`` and strip a single trailing ``s``.

    Examples:
        >>> normalize_word("Widgets")
        'widget'
        >>> normalize_word("s")
        ''
    """
    processed = word.lower()
    if processed.endswith("s"):
        processed = processed[:-1]
    return processed


def tokenize(text: str) -> list[str]:
    """Split ``text`` on whitespace runs and normalize each piece.

    Order and duplicates are preserved. Pieces that normalize to an empty
    string (a lone "s") are dropped so they never become a keyword.
    """
    tokens = (normalize_word(piece) for piece in text.split())
    return [token for token in tokens if token]


def keywords(text: str) -> list[str]:
    """Return the distinct tokens of ``text`` in first-seen order."""
    return list(dict.fromkeys(tokenize(text)))


def normalize_text(text: str) -> str:
    """Return the order-independent canonical form of ``text``.

    Examples:
        >>> normalize_text("Red Cars")
        'car red'
        >>> normalize_text("   ")
        ''
    """
    return " ".join(sorted(tokenize(text)))
