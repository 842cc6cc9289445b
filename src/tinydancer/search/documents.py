"""Stored fields and document lengths keyed by document id."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from tinydancer.search.errors import IndexClosedError


class DocumentStore:
    """Keeps the verbatim values needed to render a hit."""

    def __init__(self) -> None:
        self._fields: dict[int, dict[str, str]] = {}
        self._lengths: dict[int, int] = {}
        self._frozen = False

    def __len__(self) -> int:
        return len(self._lengths)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._lengths

    @property
    def frozen(self) -> bool:
        return self._frozen

    def put(self, doc_id: int, field: str, value: str) -> None:
        self._check_writable()
        self._fields.setdefault(doc_id, {})[field] = value

    def field(self, doc_id: int, field: str) -> str | None:
        return self._fields.get(doc_id, {}).get(field)

    def stored_fields(self, doc_id: int) -> Mapping[str, str]:
        return MappingProxyType(self._fields.get(doc_id, {}))

    def set_length(self, doc_id: int, length: int) -> None:
        self._check_writable()
        if length < 0:
            msg = f"Document length must not be negative, got {length}"
            raise ValueError(msg)
        self._lengths[doc_id] = length

    def length(self, doc_id: int) -> int:
        return self._lengths.get(doc_id, 0)

    def total_length(self) -> int:
        return sum(self._lengths.values())

    def freeze(self) -> None:
        self._frozen = True

    def _check_writable(self) -> None:
        if self._frozen:
            raise IndexClosedError("Document store is frozen")
