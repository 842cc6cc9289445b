"""In-memory search index - one module hiding the whole retrieval core.

``SearchIndex`` wires the schema, indexer, query parser and searcher together
and enforces the two-phase lifecycle: documents are added until ``close()``,
after which the index is frozen and can be searched any number of times.
"""

from __future__ import annotations

from collections.abc import Mapping
import time

from tinydancer.domain.search import SearchHit, SearchResponse, SearchStats
from tinydancer.search.errors import IndexNotReadyError
from tinydancer.search.indexer import Indexer
from tinydancer.search.models import ScoredDocument
from tinydancer.search.query import Query
from tinydancer.search.query_parser import QueryParser
from tinydancer.search.schema import Schema, create_default_schema
from tinydancer.search.searcher import Explanation, IndexSearcher
from tinydancer.search.stats import CollectionStats, compute_collection_stats


DEFAULT_TOP_K = 10


class SearchIndex:
    """Deep search module with a small interface.

    Indexing goes through ``add_document`` (or the lower-level ``indexer``);
    searching goes through ``search`` which parses, scores and renders hits.
    """

    def __init__(self, schema: Schema | None = None, *, default_field: str | None = None) -> None:
        self.schema = schema or create_default_schema()
        self.indexer = Indexer(self.schema)
        self.parser = QueryParser(self.schema, default_field=default_field)
        self._searcher = IndexSearcher(self.indexer.postings, self.indexer.documents)

    @property
    def closed(self) -> bool:
        return self.indexer.closed

    @property
    def doc_count(self) -> int:
        return self.indexer.doc_count

    def add_document(self, fields: Mapping[str, str]) -> int:
        """Index one document and return its id."""
        return self.indexer.add_document(fields)

    def close(self) -> None:
        """Freeze the index and open it for searching."""
        self.indexer.close()

    def parse(self, query: str, default_field: str | None = None) -> Query:
        return self.parser.parse(query, default_field=default_field)

    def top_docs(self, query: str | Query, k: int | None = DEFAULT_TOP_K) -> list[ScoredDocument]:
        """Return ranked ``(doc_id, score)`` pairs for ``query``."""
        self._require_ready()
        parsed = self.parse(query) if isinstance(query, str) else query
        return self._searcher.search(parsed, k)

    def search(self, query: str, k: int | None = DEFAULT_TOP_K, default_field: str | None = None) -> SearchResponse:
        """Search with a query string and render hits with their stored fields.

        Raises:
            IndexNotReadyError: the index has not been closed yet.
            QueryParseError: ``query`` does not follow the query grammar.
        """
        self._require_ready()
        start = time.perf_counter()
        parsed = self.parse(query, default_field=default_field)
        ranked = self._searcher.search(parsed, k)
        hits = [self._to_hit(rank, scored) for rank, scored in enumerate(ranked, start=1)]
        return SearchResponse(
            query=query,
            results=hits,
            stats=SearchStats(
                parsed_query=str(parsed),
                documents_searched=self.doc_count,
                search_time=time.perf_counter() - start,
            ),
        )

    def explain(self, query: str | Query, doc_id: int) -> Explanation:
        self._require_ready()
        parsed = self.parse(query) if isinstance(query, str) else query
        return self._searcher.explain(parsed, doc_id)

    def stored_fields(self, doc_id: int) -> Mapping[str, str]:
        return self.indexer.documents.stored_fields(doc_id)

    def stats(self) -> CollectionStats:
        return compute_collection_stats(self.indexer.postings, self.indexer.documents)

    def _to_hit(self, rank: int, scored: ScoredDocument) -> SearchHit:
        stored = self.stored_fields(scored.doc_id)
        return SearchHit(
            rank=rank,
            doc_id=scored.doc_id,
            score=scored.score,
            path=stored.get("path"),
            name=stored.get("name"),
            modified=stored.get("modified"),
            title=stored.get("title"),
            summary=stored.get("summary"),
        )

    def _require_ready(self) -> None:
        if not self.closed:
            raise IndexNotReadyError("Index must be closed before it can be searched")
