"""Classic field-qualified boolean query parser.

Grammar::

    expr     := clause ( [conj] clause )*
    conj     := "AND" | "OR" | "&&" | "||"
    clause   := [modifier] [ field ":" ] atom [ "^" number ]
    modifier := "+" | "-" | "!" | "NOT"
    atom     := TERM | "(" expr ")"

Operators are case-sensitive and the default operator is OR. Term leaves are
analyzed with the analyzer the schema configures for their field, the same
one used at index time.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import re

from tinydancer.search.errors import QueryParseError
from tinydancer.search.query import (
    BooleanClause,
    BooleanQuery,
    MatchNoDocs,
    Occur,
    Query,
    TermQuery,
    with_boost,
)
from tinydancer.search.schema import Schema, create_default_schema


@dataclass(frozen=True)
class QueryToken:
    """Lexer token with the offset of its first character."""

    type: str
    value: str
    position: int

    @property
    def end(self) -> int:
        return self.position + len(self.value)


_TERM_START = r"(?:[^\s+\-!():^\[\]\"{}~*?\\/]|\\.)"
_TERM_CHAR = r"(?:[^\s!():^\[\]\"{}~*?\\/]|\\.)"
_KEYWORD_END = r"(?=[\s()]|$)"

# Token patterns, tried in order at each position
_PATTERNS: tuple[tuple[str, str], ...] = (
    ("WHITESPACE", r"\s+"),
    ("AND", rf"AND{_KEYWORD_END}|&&"),
    ("OR", rf"OR{_KEYWORD_END}|\|\|"),
    ("NOT", rf"NOT{_KEYWORD_END}|!"),
    ("PLUS", r"\+"),
    ("MINUS", r"-"),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("COLON", r":"),
    ("BOOST", r"\^\d+(?:\.\d+)?"),
    ("TERM", rf"{_TERM_START}{_TERM_CHAR}*"),
)
_TOKEN_RE = re.compile("|".join(f"(?P<{name}>{pattern})" for name, pattern in _PATTERNS), re.DOTALL)
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)

_UNSUPPORTED = {
    '"': "phrase queries are not supported",
    "*": "wildcard queries are not supported",
    "?": "wildcard queries are not supported",
    "~": "fuzzy and proximity queries are not supported",
    "[": "range queries are not supported",
    "]": "range queries are not supported",
    "{": "range queries are not supported",
    "}": "range queries are not supported",
    "/": "regular expression queries are not supported",
    "^": "expected a number after '^'",
    "\\": "dangling escape character",
}

_CONJUNCTIONS = frozenset({"AND", "OR"})
_MODIFIERS = frozenset({"PLUS", "MINUS", "NOT"})
_CLAUSE_STARTS = frozenset({"TERM", "LPAREN"})


def tokenize_query(query: str) -> list[QueryToken]:
    """Split ``query`` into lexer tokens, rejecting characters the grammar lacks."""

    tokens: list[QueryToken] = []
    pos = 0
    while pos < len(query):
        match = _TOKEN_RE.match(query, pos)
        if match is None:
            char = query[pos]
            message = _UNSUPPORTED.get(char, f"unexpected character {char!r}")
            raise QueryParseError(pos, message)
        kind = match.lastgroup or "TERM"
        if kind != "WHITESPACE":
            tokens.append(QueryToken(kind, match.group(0), pos))
        pos = match.end()
    return tokens


class QueryParser:
    """Parse query strings into ``Query`` trees against a schema."""

    def __init__(self, schema: Schema | None = None, default_field: str | None = None) -> None:
        self.schema = schema or create_default_schema()
        self.default_field = default_field or self.schema.default_field

    def parse(self, query: str, default_field: str | None = None) -> Query:
        """Parse ``query``; bare terms search ``default_field``.

        A query whose leaves all analyze to nothing (blank input, stopwords)
        parses to ``MatchNoDocs``.

        Raises:
            QueryParseError: the query does not follow the grammar.
        """
        reader = _QueryReader(self, query, tokenize_query(query))
        parsed = reader.expression(default_field or self.default_field, nested=False)
        if parsed is None:
            return MatchNoDocs("query has no searchable terms")
        return parsed

    def term_query(self, field: str, text: str) -> Query | None:
        """Analyze ``text`` for ``field`` and build the matching leaf.

        Returns ``None`` when analysis yields no terms. Several terms become a
        group of optional term queries.
        """
        analyzer = self.schema.analyzer_for(field)
        terms = [token.text for token in analyzer(text)]
        if not terms:
            return None
        if len(terms) == 1:
            return TermQuery(field, terms[0])
        return BooleanQuery(tuple(BooleanClause(TermQuery(field, term), Occur.SHOULD) for term in terms))


class _QueryReader:
    """Recursive descent over one query's token stream."""

    def __init__(self, parser: QueryParser, source: str, tokens: list[QueryToken]) -> None:
        self._parser = parser
        self._source = source
        self._tokens = tokens
        self._index = 0

    def expression(self, field: str, *, nested: bool) -> Query | None:
        clauses: list[BooleanClause] = []
        first = True
        while True:
            token = self._peek()
            if token is None:
                if nested:
                    raise QueryParseError(len(self._source), "missing closing parenthesis")
                break
            if token.type == "RPAREN":
                if not nested:
                    raise QueryParseError(token.position, "unmatched closing parenthesis")
                if first:
                    raise QueryParseError(token.position, "empty group")
                break

            conjunction = None
            if token.type in _CONJUNCTIONS:
                if first:
                    raise QueryParseError(token.position, f"'{token.value}' needs a clause before it")
                conjunction = token.type
                self._advance()
                token = self._expect(_CLAUSE_STARTS | _MODIFIERS, after=token)

            modifier = None
            if token.type in _MODIFIERS:
                modifier = token.type
                self._advance()
                self._expect(_CLAUSE_STARTS, after=token)

            _add_clause(clauses, conjunction, modifier, self.clause(field))
            first = False

        return _build_boolean(clauses)

    def clause(self, field: str) -> Query | None:
        token = self._advance()
        following = self._peek()
        if token.type == "TERM" and following is not None and following.type == "COLON" and following.position == token.end:
            self._advance()
            field = _unescape(token.value)
            token = self._expect(_CLAUSE_STARTS, after=following)
            self._advance()

        if token.type == "LPAREN":
            query = self.expression(field, nested=True)
            self._advance()  # closing parenthesis, guaranteed by expression()
        elif token.type == "TERM":
            query = self._parser.term_query(field, _unescape(token.value))
        else:
            raise QueryParseError(token.position, f"unexpected '{token.value}'")

        boost = self._peek()
        if boost is not None and boost.type == "BOOST":
            self._advance()
            if query is not None:
                query = with_boost(query, float(boost.value[1:]))
        return query

    def _peek(self) -> QueryToken | None:
        if self._index < len(self._tokens):
            return self._tokens[self._index]
        return None

    def _advance(self) -> QueryToken:
        token = self._peek()
        if token is None:
            raise QueryParseError(len(self._source), "unexpected end of query")
        self._index += 1
        return token

    def _expect(self, allowed: frozenset[str], *, after: QueryToken) -> QueryToken:
        token = self._peek()
        if token is None:
            raise QueryParseError(len(self._source), f"expected a clause after '{after.value}'")
        if token.type not in allowed:
            raise QueryParseError(token.position, f"unexpected '{token.value}' after '{after.value}'")
        return token


def _add_clause(
    clauses: list[BooleanClause],
    conjunction: str | None,
    modifier: str | None,
    query: Query | None,
) -> None:
    # "a AND b" makes the preceding clause required unless it is prohibited
    if clauses and conjunction == "AND" and clauses[-1].occur is not Occur.MUST_NOT:
        clauses[-1] = replace(clauses[-1], occur=Occur.MUST)

    if query is None:
        return

    if modifier in ("MINUS", "NOT"):
        occur = Occur.MUST_NOT
    elif modifier == "PLUS" or conjunction == "AND":
        occur = Occur.MUST
    else:
        occur = Occur.SHOULD
    clauses.append(BooleanClause(query, occur))


def _build_boolean(clauses: list[BooleanClause]) -> Query | None:
    if not clauses:
        return None
    if len(clauses) == 1 and clauses[0].occur is not Occur.MUST_NOT:
        return clauses[0].query
    return BooleanQuery(tuple(clauses))


def _unescape(value: str) -> str:
    return _ESCAPE_RE.sub(r"\1", value)
