"""Unit tests for the two-phase document indexer."""

import pytest

from tinydancer.search.analyzers import analyze
from tinydancer.search.errors import IndexClosedError, IndexStateError, SchemaError
from tinydancer.search.indexer import Indexer
from tinydancer.search.models import Posting, Term


pytestmark = pytest.mark.unit


def _contents(text: str) -> Term:
    (stem,) = analyze(text)
    return Term("contents", stem)


class TestDocumentLifecycle:
    def test_ids_are_dense_from_zero(self):
        indexer = Indexer()

        ids = [indexer.add_document({"contents": text}) for text in ("one", "two", "three")]

        assert ids == [0, 1, 2]
        assert indexer.doc_count == 3

    def test_add_field_counts_term_frequency_and_length(self):
        indexer = Indexer()
        doc_id = indexer.begin_document()
        indexer.add_field(doc_id, "contents", "Running runs the runner")
        indexer.commit_document(doc_id)

        assert list(indexer.postings.postings(_contents("run"))) == [Posting(0, 2)]
        assert indexer.documents.length(0) == 3

    def test_add_field_stores_value_when_requested(self):
        indexer = Indexer()
        doc_id = indexer.begin_document()
        indexer.add_field(doc_id, "contents", "stored body", store=True)
        indexer.add_field(doc_id, "title", "Hello World")
        indexer.commit_document(doc_id)

        stored = indexer.documents.stored_fields(doc_id)
        assert stored["contents"] == "stored body"
        assert stored["title"] == "Hello World"

    def test_title_tokens_do_not_count_towards_length_of_other_fields(self):
        indexer = Indexer()
        indexer.add_document({"contents": "alpha beta", "title": "gamma delta epsilon"})

        assert indexer.documents.length(0) == 5

    def test_keyword_value_is_stored_and_indexed_as_one_term(self):
        indexer = Indexer()
        doc_id = indexer.begin_document()
        indexer.add_stored(doc_id, "modified", "20240305143015")
        indexer.commit_document(doc_id)

        assert indexer.documents.field(0, "modified") == "20240305143015"
        assert indexer.postings.df(Term("modified", "20240305143015")) == 1
        assert indexer.documents.length(0) == 0

    def test_stored_only_value_is_not_searchable(self):
        indexer = Indexer()
        indexer.add_document({"contents": "body", "path": "/tmp/file.txt"})

        assert indexer.documents.field(0, "path") == "/tmp/file.txt"
        assert list(indexer.postings.terms("path")) == []

    def test_document_is_invisible_until_committed(self):
        indexer = Indexer()
        doc_id = indexer.begin_document()
        indexer.add_field(doc_id, "contents", "pending words")

        assert indexer.postings.df(_contents("pending")) == 0
        assert indexer.doc_count == 0

    def test_abort_discards_document_and_reuses_id(self):
        indexer = Indexer()
        doc_id = indexer.begin_document()
        indexer.add_field(doc_id, "contents", "discarded")
        indexer.abort_document(doc_id)

        assert indexer.begin_document() == doc_id
        assert indexer.postings.df(_contents("discarded")) == 0


class TestNesting:
    def test_begin_twice_raises(self):
        indexer = Indexer()
        indexer.begin_document()

        with pytest.raises(IndexStateError, match="still open"):
            indexer.begin_document()

    def test_add_without_begin_raises(self):
        with pytest.raises(IndexStateError, match="not open"):
            Indexer().add_field(0, "contents", "text")

    def test_commit_wrong_id_raises(self):
        indexer = Indexer()
        indexer.begin_document()

        with pytest.raises(IndexStateError):
            indexer.commit_document(5)

    def test_close_with_open_document_raises(self):
        indexer = Indexer()
        indexer.begin_document()

        with pytest.raises(IndexStateError, match="Cannot close"):
            indexer.close()


class TestSchemaViolations:
    def test_undeclared_field_aborts_document(self):
        indexer = Indexer()
        doc_id = indexer.begin_document()
        indexer.add_field(doc_id, "contents", "kept out")

        with pytest.raises(SchemaError):
            indexer.add_field(doc_id, "author", "nobody")

        assert indexer.begin_document() == doc_id
        assert indexer.postings.df(_contents("kept")) == 0

    def test_stored_only_field_rejected_by_add_field(self):
        indexer = Indexer()
        doc_id = indexer.begin_document()

        with pytest.raises(SchemaError, match="stored-only"):
            indexer.add_field(doc_id, "path", "/tmp/a.txt")

    def test_analyzed_field_rejected_by_add_stored(self):
        indexer = Indexer()
        doc_id = indexer.begin_document()

        with pytest.raises(SchemaError, match="add_field"):
            indexer.add_stored(doc_id, "contents", "text")

    def test_non_string_value_rejected(self):
        indexer = Indexer()
        doc_id = indexer.begin_document()

        with pytest.raises(SchemaError, match="expected a string"):
            indexer.add_field(doc_id, "contents", 42)  # type: ignore[arg-type]

    def test_add_document_failure_leaves_no_trace(self):
        indexer = Indexer()

        with pytest.raises(SchemaError):
            indexer.add_document({"contents": "partial", "author": "x"})

        assert indexer.doc_count == 0
        assert indexer.add_document({"contents": "next"}) == 0
        assert indexer.postings.df(_contents("partial")) == 0


class TestClose:
    def test_close_freezes_both_stores(self):
        indexer = Indexer()
        indexer.add_document({"contents": "text"})
        indexer.close()

        assert indexer.closed
        assert indexer.postings.frozen
        assert indexer.documents.frozen

    def test_close_is_idempotent(self):
        indexer = Indexer()
        indexer.close()
        indexer.close()

        assert indexer.closed

    def test_mutation_after_close_raises(self):
        indexer = Indexer()
        indexer.close()

        with pytest.raises(IndexClosedError):
            indexer.begin_document()
        with pytest.raises(IndexClosedError):
            indexer.add_document({"contents": "late"})

    def test_every_posting_matches_an_occurrence(self):
        texts = ["apple banana apple", "banana cherry", "cherry apple date"]
        indexer = Indexer()
        for text in texts:
            indexer.add_document({"contents": text})

        for term in indexer.postings.terms("contents"):
            postings = indexer.postings.postings(term)
            doc_ids = [posting.doc_id for posting in postings]
            assert doc_ids == sorted(set(doc_ids))
            for posting in postings:
                assert analyze(texts[posting.doc_id]).count(term.text) == posting.frequency
