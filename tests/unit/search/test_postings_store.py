"""Unit tests for the postings and document stores."""

import pytest

from tinydancer.search.documents import DocumentStore
from tinydancer.search.errors import IndexClosedError, IndexStateError
from tinydancer.search.models import Posting, Term
from tinydancer.search.postings import PostingsStore


pytestmark = pytest.mark.unit

APPLE = Term("contents", "appl")


class TestPostingsStore:
    def test_unknown_term_has_no_postings(self):
        store = PostingsStore()

        assert list(store.postings(APPLE)) == []
        assert store.df(APPLE) == 0
        assert APPLE not in store

    def test_add_appends_in_doc_order(self):
        store = PostingsStore()
        store.add(APPLE, 0, 2)
        store.record_document(0)
        store.add(APPLE, 1)
        store.record_document(1)

        assert list(store.postings(APPLE)) == [Posting(0, 2), Posting(1, 1)]
        assert store.df(APPLE) == len(store.postings(APPLE)) == 2
        assert store.doc_count() == 2

    def test_repeated_add_for_same_doc_bumps_frequency(self):
        store = PostingsStore()
        store.add(APPLE, 0)
        store.add(APPLE, 0, 3)

        assert list(store.postings(APPLE)) == [Posting(0, 4)]

    def test_terms_are_scoped_by_field(self):
        store = PostingsStore()
        store.add(Term("contents", "hello"), 0)
        store.add(Term("title", "hello"), 0)

        assert store.df(Term("contents", "hello")) == 1
        assert list(store.terms("title")) == [Term("title", "hello")]
        assert len(store) == 2

    def test_rejects_committed_document(self):
        store = PostingsStore()
        store.add(APPLE, 0)
        store.record_document(0)

        with pytest.raises(IndexStateError, match="already committed"):
            store.add(APPLE, 0)

    def test_record_document_requires_dense_ids(self):
        store = PostingsStore()

        with pytest.raises(IndexStateError, match="Expected document 0"):
            store.record_document(1)

    def test_rejects_non_positive_frequency(self):
        with pytest.raises(ValueError, match="must be positive"):
            PostingsStore().add(APPLE, 0, 0)

    def test_frozen_store_is_read_only(self):
        store = PostingsStore()
        store.freeze()

        assert store.frozen
        with pytest.raises(IndexClosedError):
            store.add(APPLE, 0)
        with pytest.raises(IndexClosedError):
            store.record_document(0)

    def test_posting_list_slicing_and_repr(self):
        store = PostingsStore()
        for doc_id in range(3):
            store.add(APPLE, doc_id)
            store.record_document(doc_id)
        postings = store.postings(APPLE)

        assert postings[1:] == [Posting(1, 1), Posting(2, 1)]
        assert postings[-1] == Posting(2, 1)
        assert list(postings.doc_ids()) == [0, 1, 2]
        assert repr(postings) == "PostingList(df=3)"


class TestDocumentStore:
    def test_stored_fields_and_lengths(self):
        documents = DocumentStore()
        documents.put(0, "path", "/tmp/a.txt")
        documents.set_length(0, 5)
        documents.set_length(1, 3)

        assert documents.field(0, "path") == "/tmp/a.txt"
        assert documents.field(1, "path") is None
        assert dict(documents.stored_fields(0)) == {"path": "/tmp/a.txt"}
        assert documents.length(0) == 5
        assert documents.total_length() == 8
        assert 1 in documents
        assert len(documents) == 2

    def test_stored_fields_view_is_read_only(self):
        documents = DocumentStore()
        documents.put(0, "name", "a.txt")

        with pytest.raises(TypeError):
            documents.stored_fields(0)["name"] = "b.txt"  # type: ignore[index]

    def test_rejects_negative_length(self):
        with pytest.raises(ValueError, match="must not be negative"):
            DocumentStore().set_length(0, -1)

    def test_frozen_store_is_read_only(self):
        documents = DocumentStore()
        documents.freeze()

        with pytest.raises(IndexClosedError):
            documents.put(0, "path", "x")
        with pytest.raises(IndexClosedError):
            documents.set_length(0, 1)
