"""Domain models for the keyword index.

Following Cosmic Python principles:
- Value Objects are immutable (frozen=True)
- No infrastructure dependencies

``IndexEntry`` is the stored row, ``QueryHit`` is what a search returns and
``CompactionCheck`` reports what the startup compaction check did.
"""

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field


class EntryType(IntEnum):
    """Kind of entity a row points back to. Stored as an ``int`` column."""

    UNKNOWN = 0
    PERSON = 1
    LOCATION = 2

    @classmethod
    def parse(cls, value: "str | int | EntryType") -> "EntryType":
        """Accept enum members, stored ints, or case-insensitive names."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[value.strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown entry type: {value!r}") from exc


IndexKey = tuple[str, str, EntryType, str]


class IndexEntry(BaseModel):
    """One inverted-index row: a single keyword of one document.

    ``(owner_id, keyword, entry_type, reference_id)`` is the primary key;
    writing the same key twice overwrites the row.
    """

    model_config = ConfigDict(frozen=True)

    owner_id: str = Field(min_length=1)
    keyword: str
    entry_type: EntryType = EntryType.UNKNOWN
    reference_id: str
    text: str

    @property
    def key(self) -> IndexKey:
        return (self.owner_id, self.keyword, self.entry_type, self.reference_id)


class QueryHit(BaseModel):
    """Value object for a single ranked search hit."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    reference_id: str
    entry_type: EntryType
    score: int = Field(ge=0, description="Edit distance to the normalized query; lower is better")

    @classmethod
    def from_entry(cls, entry: IndexEntry, score: int) -> "QueryHit":
        return cls(
            name=entry.text,
            description=entry.keyword,
            reference_id=entry.reference_id,
            entry_type=entry.entry_type,
            score=score,
        )


class CompactionOutcome(str, Enum):
    """Result tags of the leveled-compaction check."""

    CONVERGED = "converged"
    ALTERED = "altered"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class CompactionCheck(BaseModel):
    """Tagged result returned by the compaction guard.

    ``TIMED_OUT`` and ``FAILED`` mean the check was skipped; the table keeps
    its current strategy and the index stays fully usable.
    """

    model_config = ConfigDict(frozen=True)

    outcome: CompactionOutcome
    table: str
    compaction_class: str | None = None
    attempts: int = 0
    error: str | None = None

    @property
    def skipped(self) -> bool:
        return self.outcome in (CompactionOutcome.TIMED_OUT, CompactionOutcome.FAILED)
