"""
Retrieval core package.

This package provides a pure in-memory search stack:
- analyzers: Tokenizer and filters (lowercase, stop, Porter stemming)
- schema: Field kinds and per-field analyzers
- postings / documents: Inverted index and stored fields
- indexer: Two-phase document indexing
- query / query_parser: Boolean query tree and its parser
- stats / searcher: Classic TF-IDF scoring and top-K retrieval
- index: ``SearchIndex`` facade tying everything together
"""

from tinydancer.search.errors import (
    IndexClosedError,
    IndexNotReadyError,
    IndexStateError,
    QueryParseError,
    SchemaError,
    SearchError,
)
from tinydancer.search.index import SearchIndex


__all__ = [
    "IndexClosedError",
    "IndexNotReadyError",
    "IndexStateError",
    "QueryParseError",
    "SchemaError",
    "SearchError",
    "SearchIndex",
]
