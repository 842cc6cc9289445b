"""Query expression tree.

A parsed query is a closed set of node types evaluated by a single searcher:

* ``TermQuery`` matches documents whose field contains one analyzed term,
* ``BooleanQuery`` combines clauses tagged ``MUST``, ``SHOULD`` or ``MUST_NOT``,
* ``MatchNoDocs`` is the empty match (e.g. a query made only of stopwords).
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, replace
from enum import Enum
from typing import Union

from tinydancer.search.models import Term


class Occur(str, Enum):
    """How a clause takes part in its boolean query."""

    MUST = "+"
    SHOULD = ""
    MUST_NOT = "-"


@dataclass(frozen=True)
class TermQuery:
    field: str
    text: str
    boost: float = 1.0

    @property
    def term(self) -> Term:
        return Term(self.field, self.text)

    def __str__(self) -> str:
        return f"{self.field}:{self.text}{_boost_suffix(self.boost)}"


@dataclass(frozen=True)
class BooleanClause:
    query: Query
    occur: Occur = Occur.SHOULD

    def __str__(self) -> str:
        inner = str(self.query)
        if isinstance(self.query, BooleanQuery) and self.query.boost == 1.0:
            inner = f"({inner})"
        return f"{self.occur.value}{inner}"


@dataclass(frozen=True)
class BooleanQuery:
    clauses: tuple[BooleanClause, ...]
    boost: float = 1.0

    def __str__(self) -> str:
        body = " ".join(str(clause) for clause in self.clauses)
        if self.boost != 1.0:
            return f"({body}){_boost_suffix(self.boost)}"
        return body


@dataclass(frozen=True)
class MatchNoDocs:
    reason: str = ""

    def __str__(self) -> str:
        return "<no match>"


Query = Union[TermQuery, BooleanQuery, MatchNoDocs]


def with_boost(query: Query, factor: float) -> Query:
    """Return ``query`` with its boost multiplied by ``factor``."""
    if isinstance(query, (TermQuery, BooleanQuery)):
        return replace(query, boost=query.boost * factor)
    return query


def iter_term_queries(query: Query, *, include_prohibited: bool = False) -> Iterator[TermQuery]:
    """Yield the term leaves of ``query`` in clause order.

    Leaves reachable only through ``MUST_NOT`` clauses are skipped unless
    ``include_prohibited`` is set.
    """
    if isinstance(query, TermQuery):
        yield query
    elif isinstance(query, BooleanQuery):
        for clause in query.clauses:
            if clause.occur is Occur.MUST_NOT and not include_prohibited:
                continue
            yield from iter_term_queries(clause.query, include_prohibited=include_prohibited)


def _boost_suffix(boost: float) -> str:
    if boost == 1.0:
        return ""
    return f"^{boost:g}"
