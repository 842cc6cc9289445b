"""Search data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class Term(NamedTuple):
    """An analyzed term scoped to the field it was indexed under."""

    field: str
    text: str

    def __str__(self) -> str:
        return f"{self.field}:{self.text}"


@dataclass(frozen=True, slots=True)
class Posting:
    """A posting records that a term occurs ``frequency`` times in a document."""

    doc_id: int
    frequency: int = 1


@dataclass(frozen=True, slots=True)
class ScoredDocument:
    """A document id paired with its relevance score."""

    doc_id: int
    score: float
