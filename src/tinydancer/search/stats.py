"""Statistical helpers for classic TF-IDF scoring.

The functions here stay independent of the stores so they can be unit tested
on their own. Together they implement the vector-space "classic similarity":

    contribution = (1 + ln tf) * idf^2 * 1/sqrt(length) * boost
    idf          = 1 + ln(N / (df + 1))
"""

from __future__ import annotations

from dataclasses import dataclass
import math

from tinydancer.search.documents import DocumentStore
from tinydancer.search.postings import PostingsStore


@dataclass(frozen=True)
class CollectionStats:
    """Aggregated statistics for a frozen index."""

    document_count: int
    term_count: int
    total_tokens: int

    @property
    def average_length(self) -> float:
        if self.document_count == 0:
            return 0.0
        return self.total_tokens / self.document_count


def compute_collection_stats(postings: PostingsStore, documents: DocumentStore) -> CollectionStats:
    """Return aggregate statistics for the given stores."""

    return CollectionStats(
        document_count=postings.doc_count(),
        term_count=len(postings),
        total_tokens=documents.total_length(),
    )


def tf_weight(tf: int) -> float:
    """Sublinear term-frequency weight; zero for absent terms."""

    if tf <= 0:
        return 0.0
    return 1.0 + math.log(tf)


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Return the smoothed inverse document frequency.

    Because ``doc_freq <= total_docs`` the ratio never drops below one half,
    so the result stays positive for every indexed term.
    """

    if total_docs <= 0:
        return 0.0
    return 1.0 + math.log(total_docs / (doc_freq + 1))


def length_norm(length: int) -> float:
    """Return ``1/sqrt(length)``; empty documents normalize like one token."""

    return 1.0 / math.sqrt(max(length, 1))


def classic_score(tf: int, idf: float, norm: float, boost: float = 1.0) -> float:
    """Combine the factors into one leaf contribution."""

    return tf_weight(tf) * idf * idf * norm * boost
