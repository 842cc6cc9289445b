"""Domain models for search results.

Value objects are immutable (frozen=True) so a rendered result can never drift
from the index snapshot it was read from.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


MODIFIED_FORMAT = "%Y%m%d%H%M%S"


class SearchHit(BaseModel):
    """Value object for one ranked document with its stored fields."""

    model_config = ConfigDict(frozen=True)

    rank: int = Field(ge=1)
    doc_id: int = Field(ge=0)
    score: float
    path: str | None = None
    name: str | None = None
    modified: str | None = None
    title: str | None = None
    summary: str | None = None

    def modified_at(self) -> datetime | None:
        """Parse the ``yyyyMMddHHmmss`` timestamp as an aware UTC datetime."""
        if not self.modified:
            return None
        try:
            return datetime.strptime(self.modified, MODIFIED_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError:
            return None


class SearchStats(BaseModel):
    """Timing and volume information for a search operation."""

    model_config = ConfigDict(frozen=True)

    parsed_query: str
    documents_searched: int
    search_time: float


class SearchResponse(BaseModel):
    """Value object for a complete search response."""

    model_config = ConfigDict(frozen=True)

    query: str
    results: list[SearchHit] = Field(default_factory=list)
    stats: SearchStats | None = None

    @property
    def total_count(self) -> int:
        return len(self.results)
