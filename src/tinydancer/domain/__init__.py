"""Domain layer - result value objects with no infrastructure dependencies."""

from tinydancer.domain.search import SearchHit, SearchResponse, SearchStats


__all__ = [
    "SearchHit",
    "SearchResponse",
    "SearchStats",
]
