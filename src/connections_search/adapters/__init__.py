"""Adapters layer - Repository implementations.

Following Cosmic Python Chapter 2: Repository Pattern
Abstracts index row storage behind ``AbstractIndexRepository``.
"""

from .index_repository import (
    AbstractIndexRepository,
    InMemoryIndexRepository,
    prefix_upper_bound,
)


__all__ = [
    "AbstractIndexRepository",
    "InMemoryIndexRepository",
    "prefix_upper_bound",
]
