"""In-memory postings storage.

The term dictionary maps a field-scoped ``Term`` to a ``PostingList``. Each
list keeps document ids and term frequencies in two parallel ``array("I")``
buffers, sorted by document id. Documents are committed in increasing id
order, so appending (or bumping the last frequency) keeps every list sorted
without a separate sort step.
"""

from __future__ import annotations

from array import array
from collections.abc import Iterator, Sequence

from tinydancer.search.errors import IndexClosedError, IndexStateError
from tinydancer.search.models import Posting, Term


class PostingList(Sequence[Posting]):
    """Ordered postings for one term with its cached document frequency."""

    __slots__ = ("_doc_ids", "_frequencies")

    def __init__(self) -> None:
        self._doc_ids = array("I")
        self._frequencies = array("I")

    def __len__(self) -> int:
        return len(self._doc_ids)

    def __getitem__(self, index):  # type: ignore[override]
        if isinstance(index, slice):
            return [Posting(doc_id, freq) for doc_id, freq in zip(self._doc_ids[index], self._frequencies[index])]
        return Posting(self._doc_ids[index], self._frequencies[index])

    def __iter__(self) -> Iterator[Posting]:
        for doc_id, frequency in zip(self._doc_ids, self._frequencies):
            yield Posting(doc_id, frequency)

    def __repr__(self) -> str:
        return f"PostingList(df={len(self)})"

    @property
    def doc_frequency(self) -> int:
        return len(self._doc_ids)

    @property
    def last_doc_id(self) -> int | None:
        return self._doc_ids[-1] if self._doc_ids else None

    def doc_ids(self) -> Sequence[int]:
        return self._doc_ids

    def frequencies_by_doc(self) -> dict[int, int]:
        return dict(zip(self._doc_ids, self._frequencies))

    def _append(self, doc_id: int, frequency: int) -> None:
        last = self.last_doc_id
        if last == doc_id:
            self._frequencies[-1] += frequency
            return
        if last is not None and doc_id < last:
            msg = f"Posting for doc {doc_id} arrives after doc {last}"
            raise IndexStateError(msg)
        self._doc_ids.append(doc_id)
        self._frequencies.append(frequency)


_EMPTY = PostingList()


class PostingsStore:
    """Term dictionary plus collection statistics."""

    def __init__(self) -> None:
        self._lists: dict[Term, PostingList] = {}
        self._doc_count = 0
        self._frozen = False

    def __len__(self) -> int:
        return len(self._lists)

    def __contains__(self, term: object) -> bool:
        return term in self._lists

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add(self, term: Term, doc_id: int, frequency: int = 1) -> None:
        """Record ``frequency`` occurrences of ``term`` in ``doc_id``.

        Bumps the last posting when it already belongs to ``doc_id``,
        otherwise appends a new posting.
        """
        if self._frozen:
            raise IndexClosedError("Postings store is frozen")
        if frequency < 1:
            msg = f"Term frequency must be positive, got {frequency}"
            raise ValueError(msg)
        if doc_id < self._doc_count:
            msg = f"Document {doc_id} is already committed"
            raise IndexStateError(msg)
        posting_list = self._lists.get(term)
        if posting_list is None:
            posting_list = PostingList()
            self._lists[term] = posting_list
        posting_list._append(doc_id, frequency)

    def record_document(self, doc_id: int) -> None:
        """Count ``doc_id`` as committed; ids must arrive densely from zero."""
        if self._frozen:
            raise IndexClosedError("Postings store is frozen")
        if doc_id != self._doc_count:
            msg = f"Expected document {self._doc_count}, got {doc_id}"
            raise IndexStateError(msg)
        self._doc_count += 1

    def postings(self, term: Term) -> PostingList:
        """Return the postings for ``term`` (empty when unknown)."""
        return self._lists.get(term, _EMPTY)

    def df(self, term: Term) -> int:
        posting_list = self._lists.get(term)
        return posting_list.doc_frequency if posting_list is not None else 0

    def doc_count(self) -> int:
        return self._doc_count

    def terms(self, field: str | None = None) -> Iterator[Term]:
        """Iterate dictionary terms, optionally restricted to one field."""
        for term in self._lists:
            if field is None or term.field == field:
                yield term

    def freeze(self) -> None:
        self._frozen = True
