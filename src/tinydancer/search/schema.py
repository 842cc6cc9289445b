"""
Schema definition for the retrieval index.

Defines field kinds and the schema structure, inspired by Whoosh's schema
module:
- TextField: analyzed text that contributes terms and document length
- KeywordField: the whole value indexed as one opaque term (exact match)
- StoredField: kept verbatim for rendering, never searchable

Each field can have:
- stored: whether the raw value is kept in the document store
- indexed: whether the field contributes terms to the postings store
- analyzer_name: text analyzer used at both index and query time
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from tinydancer.search.analyzers import Analyzer, get_analyzer
from tinydancer.search.errors import SchemaError


class FieldType(str, Enum):
    """Types of fields supported in the schema."""

    TEXT = "text"
    KEYWORD = "keyword"
    STORED = "stored"


@dataclass(frozen=True)
class SchemaField(ABC):
    """Base class for all schema fields."""

    name: str
    stored: bool = True
    indexed: bool = True

    @property
    @abstractmethod
    def field_type(self) -> FieldType:
        """Return the field type."""

    @property
    def analyzer_name(self) -> str | None:
        return None


@dataclass(frozen=True)
class TextField(SchemaField):
    """
    Analyzed text field for full-text search.

    Text is tokenized, lowercased, stop-filtered and stemmed before indexing.
    Its token count adds to the document length used for normalization.

    Args:
        name: Field name (e.g., "contents", "title")
        stored: Keep the raw value for rendering (default: False)
        analyzer: Name of analyzer to use (default: "english")
    """

    stored: bool = False
    analyzer: str = "english"

    @property
    def field_type(self) -> FieldType:
        return FieldType.TEXT

    @property
    def analyzer_name(self) -> str | None:
        return self.analyzer


@dataclass(frozen=True)
class KeywordField(SchemaField):
    """
    Exact-match keyword field.

    The value is indexed as a single opaque term, without tokenization or
    stemming. Use for timestamps and identifiers that need equality match.
    """

    @property
    def field_type(self) -> FieldType:
        return FieldType.KEYWORD

    @property
    def analyzer_name(self) -> str | None:
        return "keyword"


@dataclass(frozen=True)
class StoredField(SchemaField):
    """Stored-only field (not indexed)."""

    stored: bool = field(default=True, init=False)
    indexed: bool = field(default=False, init=False)

    @property
    def field_type(self) -> FieldType:
        return FieldType.STORED


@dataclass
class Schema:
    """
    Schema definition for a retrieval index.

    The schema owns one analyzer instance per indexed field. The indexer and the
    query parser both call ``analyzer_for`` so a term is spelled the same way on
    both sides.

    Example:
        schema = Schema(
            fields=[
                TextField("contents"),
                TextField("title", stored=True),
                KeywordField("modified"),
                StoredField("path"),
            ],
            default_field="contents",
        )
    """

    fields: list[SchemaField]
    default_field: str = "contents"
    name: str = "default"

    def __post_init__(self) -> None:
        self._field_map: dict[str, SchemaField] = {}
        for schema_field in self.fields:
            if schema_field.name in self._field_map:
                msg = f"Duplicate field '{schema_field.name}' in schema"
                raise ValueError(msg)
            self._field_map[schema_field.name] = schema_field

        default = self._field_map.get(self.default_field)
        if default is None or not default.indexed:
            msg = f"Default field '{self.default_field}' must be an indexed field of the schema"
            raise ValueError(msg)

        self._analyzers: dict[str, Analyzer] = {
            f.name: get_analyzer(f.analyzer_name) for f in self.fields if f.indexed
        }

    def __getitem__(self, name: str) -> SchemaField:
        """Get field by name."""
        return self._field_map[name]

    def __contains__(self, name: str) -> bool:
        """Check if field exists."""
        return name in self._field_map

    def __iter__(self):
        """Iterate over fields."""
        return iter(self.fields)

    def __len__(self) -> int:
        """Return number of fields."""
        return len(self.fields)

    def require(self, name: str) -> SchemaField:
        """Return the field or raise ``SchemaError`` when it is undeclared."""
        schema_field = self._field_map.get(name)
        if schema_field is None:
            raise SchemaError(name, "field is not declared in the schema")
        return schema_field

    @property
    def text_fields(self) -> list[TextField]:
        """Return all analyzed text fields."""
        return [f for f in self.fields if isinstance(f, TextField)]

    @property
    def stored_fields(self) -> list[SchemaField]:
        """Return all fields whose values are kept in the document store."""
        return [f for f in self.fields if f.stored]

    def analyzer_for(self, name: str) -> Analyzer:
        """Return the analyzer configured for ``name``.

        Fields that are not indexed (or not declared) fall back to the default
        field's analyzer; their terms simply never match anything.
        """
        analyzer = self._analyzers.get(name)
        if analyzer is None:
            return self._analyzers[self.default_field]
        return analyzer


def create_default_schema() -> Schema:
    """
    Create the default schema for directory search.

    Fields:
    - contents: Visible text of the file (analyzed, default search field)
    - title: HTML document title (analyzed + stored)
    - modified: Last modification time as yyyyMMddHHmmss (stored, one opaque term)
    - path: Absolute file path (stored only)
    - name: File name (stored only)
    - summary: Text of the HTML <summary> element (stored only)
    """
    return Schema(
        name="files",
        default_field="contents",
        fields=[
            TextField("contents"),
            TextField("title", stored=True),
            KeywordField("modified"),
            StoredField("path"),
            StoredField("name"),
            StoredField("summary"),
        ],
    )
