"""Boolean matching and ranked retrieval over a frozen index.

The searcher resolves every term leaf once per query (postings, idf), builds
the candidate set from the leaves that are not prohibited, walks candidates in
ascending document id order, applies the boolean gate and keeps the best
``k`` documents in a bounded min-heap.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import heapq

from tinydancer.search.documents import DocumentStore
from tinydancer.search.models import ScoredDocument, Term
from tinydancer.search.postings import PostingsStore
from tinydancer.search.query import BooleanQuery, Occur, Query, TermQuery, iter_term_queries
from tinydancer.search.stats import calculate_idf, classic_score, length_norm


@dataclass(frozen=True)
class TermContribution:
    """Score contributed by one matched term leaf."""

    field: str
    term: str
    frequency: int
    doc_frequency: int
    idf: float
    norm: float
    boost: float
    score: float


@dataclass(frozen=True)
class Explanation:
    """Why a document did or did not match a query."""

    doc_id: int
    matched: bool
    score: float
    contributions: tuple[TermContribution, ...] = ()


@dataclass(frozen=True)
class _LeafStats:
    frequencies: dict[int, int]
    doc_frequency: int
    idf: float


class IndexSearcher:
    """Evaluate ``Query`` trees against the postings and document stores."""

    def __init__(self, postings: PostingsStore, documents: DocumentStore) -> None:
        self.postings = postings
        self.documents = documents

    def search(self, query: Query, k: int | None = 10) -> list[ScoredDocument]:
        """Return up to ``k`` matching documents by descending score.

        Equal scores are ordered by ascending document id. ``k=None`` returns
        every match. An index that is still being built yields no results.
        """
        if k is not None and k <= 0:
            return []
        if not self.postings.frozen:
            return []

        leaves = self._resolve_leaves(query)
        if not leaves:
            return []

        heap: list[tuple[float, int]] = []
        for doc_id in self._candidates(query, leaves):
            matched, score = self._evaluate(query, doc_id, leaves, None)
            if not matched:
                continue
            entry = (score, -doc_id)
            if k is None or len(heap) < k:
                heapq.heappush(heap, entry)
            elif entry > heap[0]:
                heapq.heapreplace(heap, entry)

        ranked: list[ScoredDocument] = []
        while heap:
            score, neg_doc_id = heapq.heappop(heap)
            ranked.append(ScoredDocument(doc_id=-neg_doc_id, score=score))
        ranked.reverse()
        return ranked

    def count(self, query: Query) -> int:
        """Return the number of documents satisfying the boolean gate."""
        return len(self.search(query, k=None))

    def explain(self, query: Query, doc_id: int) -> Explanation:
        """Break the score of ``doc_id`` down into per-term contributions."""
        leaves = self._resolve_leaves(query)
        if not self.postings.frozen or not leaves or doc_id not in self.documents:
            return Explanation(doc_id=doc_id, matched=False, score=0.0)
        contributions: list[TermContribution] = []
        matched, score = self._evaluate(query, doc_id, leaves, contributions)
        if not matched:
            return Explanation(doc_id=doc_id, matched=False, score=0.0)
        return Explanation(doc_id=doc_id, matched=True, score=score, contributions=tuple(contributions))

    # --- internal helpers -------------------------------------------------

    def _resolve_leaves(self, query: Query) -> dict[Term, _LeafStats]:
        total_docs = self.postings.doc_count()
        leaves: dict[Term, _LeafStats] = {}
        for leaf in iter_term_queries(query, include_prohibited=True):
            term = leaf.term
            if term in leaves:
                continue
            posting_list = self.postings.postings(term)
            leaves[term] = _LeafStats(
                frequencies=posting_list.frequencies_by_doc(),
                doc_frequency=posting_list.doc_frequency,
                idf=calculate_idf(posting_list.doc_frequency, total_docs),
            )
        return leaves

    def _candidates(self, query: Query, leaves: dict[Term, _LeafStats]) -> list[int]:
        candidates: set[int] = set()
        for leaf in iter_term_queries(query):
            candidates.update(leaves[leaf.term].frequencies)
        return sorted(candidates)

    def _evaluate(
        self,
        query: Query,
        doc_id: int,
        leaves: dict[Term, _LeafStats],
        trace: list[TermContribution] | None,
    ) -> tuple[bool, float]:
        if isinstance(query, TermQuery):
            return self._evaluate_term(query, doc_id, leaves, trace)
        if isinstance(query, BooleanQuery):
            return self._evaluate_boolean(query, doc_id, leaves, trace)
        return False, 0.0

    def _evaluate_term(
        self,
        query: TermQuery,
        doc_id: int,
        leaves: dict[Term, _LeafStats],
        trace: list[TermContribution] | None,
    ) -> tuple[bool, float]:
        stats = leaves[query.term]
        tf = stats.frequencies.get(doc_id, 0)
        if tf == 0:
            return False, 0.0
        norm = length_norm(self.documents.length(doc_id))
        score = classic_score(tf, stats.idf, norm, query.boost)
        if trace is not None:
            trace.append(
                TermContribution(
                    field=query.field,
                    term=query.text,
                    frequency=tf,
                    doc_frequency=stats.doc_frequency,
                    idf=stats.idf,
                    norm=norm,
                    boost=query.boost,
                    score=score,
                )
            )
        return True, score

    def _evaluate_boolean(
        self,
        query: BooleanQuery,
        doc_id: int,
        leaves: dict[Term, _LeafStats],
        trace: list[TermContribution] | None,
    ) -> tuple[bool, float]:
        mark = len(trace) if trace is not None else 0
        score = 0.0
        has_required = False
        optional_matched = False

        for clause in query.clauses:
            clause_mark = len(trace) if trace is not None else 0
            matched, clause_score = self._evaluate(clause.query, doc_id, leaves, trace)
            if clause.occur is Occur.MUST_NOT:
                # prohibited clauses never contribute to the score
                if trace is not None:
                    del trace[clause_mark:]
                if matched:
                    return self._reject(trace, mark)
                continue
            if clause.occur is Occur.MUST:
                has_required = True
                if not matched:
                    return self._reject(trace, mark)
                score += clause_score
            elif matched:
                optional_matched = True
                score += clause_score

        if not has_required and not optional_matched:
            return self._reject(trace, mark)

        if query.boost != 1.0 and trace is not None:
            for idx in range(mark, len(trace)):
                contribution = trace[idx]
                trace[idx] = replace(
                    contribution,
                    boost=contribution.boost * query.boost,
                    score=contribution.score * query.boost,
                )
        return True, score * query.boost

    @staticmethod
    def _reject(trace: list[TermContribution] | None, mark: int) -> tuple[bool, float]:
        if trace is not None:
            del trace[mark:]
        return False, 0.0
