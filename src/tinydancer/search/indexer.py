"""Document indexing for the in-memory retrieval core.

The indexer assigns dense document ids, runs field text through the schema's
analyzers and writes postings and stored values. Everything a document
contributes is buffered until ``commit_document`` so a document that fails
half-way through never shows up in the postings or the document store.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field

from tinydancer.search.documents import DocumentStore
from tinydancer.search.errors import IndexClosedError, IndexStateError, SchemaError, SearchError
from tinydancer.search.models import Term
from tinydancer.search.postings import PostingsStore
from tinydancer.search.schema import KeywordField, Schema, SchemaField, TextField, create_default_schema


@dataclass
class _PendingDocument:
    doc_id: int
    term_counts: Counter[Term] = field(default_factory=Counter)
    stored: dict[str, str] = field(default_factory=dict)
    length: int = 0


class Indexer:
    """Build the postings and document stores one document at a time."""

    def __init__(
        self,
        schema: Schema | None = None,
        *,
        postings: PostingsStore | None = None,
        documents: DocumentStore | None = None,
    ) -> None:
        self.schema = schema or create_default_schema()
        self.postings = postings if postings is not None else PostingsStore()
        self.documents = documents if documents is not None else DocumentStore()
        self._pending: _PendingDocument | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def doc_count(self) -> int:
        return self.postings.doc_count()

    def begin_document(self) -> int:
        """Open the next document and return its id."""
        self._check_open()
        if self._pending is not None:
            msg = f"Document {self._pending.doc_id} is still open"
            raise IndexStateError(msg)
        self._pending = _PendingDocument(doc_id=self.postings.doc_count())
        return self._pending.doc_id

    def add_field(self, doc_id: int, field_name: str, text: str, store: bool | None = None) -> None:
        """Analyze ``text`` into ``field_name`` of the open document.

        ``store`` overrides the schema's stored flag for this value. Any error
        aborts the open document before it propagates.
        """
        pending = self._require_pending(doc_id)
        try:
            schema_field = self.schema.require(field_name)
            if not schema_field.indexed:
                raise SchemaError(field_name, "stored-only field cannot be analyzed; use add_stored")
            _require_text(field_name, text)
            self._index_value(pending, schema_field, text)
            should_store = schema_field.stored if store is None else store
            if should_store:
                pending.stored[field_name] = text
        except Exception:
            self._pending = None
            raise

    def add_stored(self, doc_id: int, field_name: str, value: str) -> None:
        """Keep ``value`` verbatim; keyword fields are also indexed as one term."""
        pending = self._require_pending(doc_id)
        try:
            schema_field = self.schema.require(field_name)
            if not schema_field.stored:
                raise SchemaError(field_name, "field is not stored; use add_field")
            if isinstance(schema_field, TextField):
                raise SchemaError(field_name, "analyzed field must be added with add_field")
            _require_text(field_name, value)
            if isinstance(schema_field, KeywordField) and schema_field.indexed:
                self._index_value(pending, schema_field, value)
            pending.stored[field_name] = value
        except Exception:
            self._pending = None
            raise

    def commit_document(self, doc_id: int) -> None:
        """Publish the buffered document to the postings and document stores."""
        pending = self._require_pending(doc_id)
        for term, frequency in pending.term_counts.items():
            self.postings.add(term, doc_id, frequency)
        for field_name, value in pending.stored.items():
            self.documents.put(doc_id, field_name, value)
        self.documents.set_length(doc_id, pending.length)
        self.postings.record_document(doc_id)
        self._pending = None

    def abort_document(self, doc_id: int) -> None:
        """Discard the open document; its id is handed out again."""
        self._require_pending(doc_id)
        self._pending = None

    def add_document(self, fields: Mapping[str, str]) -> int:
        """Index a whole document, routing each value by its schema field kind."""
        doc_id = self.begin_document()
        try:
            for field_name, value in fields.items():
                schema_field = self.schema.require(field_name)
                if isinstance(schema_field, TextField):
                    self.add_field(doc_id, field_name, value)
                else:
                    self.add_stored(doc_id, field_name, value)
        except SearchError:
            self._pending = None
            raise
        self.commit_document(doc_id)
        return doc_id

    def close(self) -> None:
        """Freeze the index; it is read-only from here on."""
        if self._closed:
            return
        if self._pending is not None:
            msg = f"Cannot close while document {self._pending.doc_id} is open"
            raise IndexStateError(msg)
        self.postings.freeze()
        self.documents.freeze()
        self._closed = True

    # --- internal helpers -------------------------------------------------

    def _index_value(self, pending: _PendingDocument, schema_field: SchemaField, text: str) -> None:
        analyzer = self.schema.analyzer_for(schema_field.name)
        tokens = analyzer(text)
        for token in tokens:
            pending.term_counts[Term(schema_field.name, token.text)] += 1
        if isinstance(schema_field, TextField):
            pending.length += len(tokens)

    def _check_open(self) -> None:
        if self._closed:
            raise IndexClosedError("Index is closed; no further documents can be added")

    def _require_pending(self, doc_id: int) -> _PendingDocument:
        self._check_open()
        if self._pending is None or self._pending.doc_id != doc_id:
            msg = f"Document {doc_id} is not open"
            raise IndexStateError(msg)
        return self._pending


def _require_text(field_name: str, value: object) -> None:
    if not isinstance(value, str):
        raise SchemaError(field_name, f"expected a string value, got {type(value).__name__}")
