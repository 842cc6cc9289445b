"""Errors surfaced by the retrieval core.

Every error derives from ``SearchError`` so collaborators can catch the whole
family when they only need to report and move on.
"""

from __future__ import annotations


class SearchError(Exception):
    """Base class for retrieval core errors."""


class QueryParseError(SearchError, ValueError):
    """Raised when a query string does not follow the query grammar."""

    def __init__(self, position: int, message: str) -> None:
        super().__init__(f"{message} (at position {position})")
        self.position = position
        self.message = message


class SchemaError(SearchError, ValueError):
    """Raised when a field is undeclared or receives a value the schema rejects."""

    def __init__(self, field: str, kind: str) -> None:
        super().__init__(f"Field '{field}': {kind}")
        self.field = field
        self.kind = kind


class IndexClosedError(SearchError):
    """Raised when the index is mutated after it was closed."""


class IndexNotReadyError(SearchError):
    """Raised when the index is searched before it was closed."""


class IndexStateError(SearchError):
    """Raised when begin/add/commit calls are not correctly nested."""
