"""Analyzer utilities for the retrieval engine.

Analyzers follow Whoosh's composable tokenizer/filter design: a tokenizer emits
``Token`` objects and each filter transforms the stream. The schema hands out
one configured analyzer per field so indexing and query parsing always agree on
term identity.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
import re
from typing import Any, Protocol

from nltk.stem.porter import PorterStemmer


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int

    def copy_with(self, **updates: Any) -> Token:
        return replace(self, **updates)


class Analyzer(Protocol):
    """Protocol implemented by analyzers."""

    def __call__(self, text: str) -> list[Token]:  # pragma: no cover - interface definition
        ...


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


APOSTROPHES = "'’＇"

# Maximal runs of Unicode letters and digits; apostrophes and underscores split runs.
# A trailing possessive 's stays attached so PossessiveFilter can drop it.
WORD_PATTERN = rf"[^\W_]+(?:[{APOSTROPHES}][sS](?![^\W_]))?"


class RegexTokenizer:
    """Regex-based tokenizer that yields word tokens."""

    def __init__(self, pattern: str = WORD_PATTERN, flags: int = re.UNICODE | re.MULTILINE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class PossessiveFilter:
    """Strips a trailing possessive ``'s`` (also with a typographic apostrophe)."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            text = token.text
            if len(text) > 2 and text[-2] in APOSTROPHES and text[-1] in "sS":
                yield token.copy_with(text=text[:-2], end_char=token.end_char - 2)
            else:
                yield token


def _simple_lower(char: str) -> str:
    lowered = char.lower()
    # U+0130 fully lowercases to "i" plus a combining dot; keep the base letter only
    return lowered if len(lowered) == 1 else lowered[0]


def simple_lower(text: str) -> str:
    """Lowercase ``text`` one code point at a time, never changing its length."""
    if text.isascii():
        return text.lower()
    return "".join(_simple_lower(char) for char in text)


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            lowered = simple_lower(token.text)
            if lowered == token.text:
                yield token
            else:
                yield token.copy_with(text=lowered)


ENGLISH_STOPWORDS: tuple[str, ...] = (
    "a",
    "an",
    "and",
    "are",
    "as",
    "at",
    "be",
    "but",
    "by",
    "for",
    "if",
    "in",
    "into",
    "is",
    "it",
    "no",
    "not",
    "of",
    "on",
    "or",
    "such",
    "that",
    "the",
    "their",
    "then",
    "there",
    "these",
    "they",
    "this",
    "to",
    "was",
    "will",
    "with",
)


class StopFilter:
    """Removes stopwords from the stream.

    The filter compares exact token text, so it must run after
    ``LowercaseFilter`` in a pipeline.
    """

    def __init__(self, stopwords: Sequence[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else ENGLISH_STOPWORDS
        self.stopwords = frozenset(word.lower() for word in vocab)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text not in self.stopwords:
                yield token


class PorterStemFilter:
    """Applies the original (1980) Porter stemming algorithm."""

    def __init__(self) -> None:
        self._stemmer = PorterStemmer(mode=PorterStemmer.ORIGINAL_ALGORITHM)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            # words of one or two characters are never stemmed
            if len(token.text) <= 2:
                yield token
                continue
            stemmed = self._stemmer.stem(token.text, to_lowercase=False)
            if stemmed == token.text:
                yield token
            else:
                yield token.copy_with(text=stemmed)


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


class KeywordAnalyzer:
    """Analyzer that treats the entire input as a single opaque token."""

    def __call__(self, text: str) -> list[Token]:
        if not text:
            return []
        return [Token(text=text, position=0, start_char=0, end_char=len(text))]


class StandardAnalyzer:
    """English analyzer: tokenize, drop possessives, lowercase, drop stopwords, Porter stem."""

    def __init__(
        self,
        *,
        stopwords: Sequence[str] | None = None,
        apply_stemming: bool = True,
    ) -> None:
        filters: list[TokenFilter] = [PossessiveFilter(), LowercaseFilter(), StopFilter(stopwords)]
        if apply_stemming:
            filters.append(PorterStemFilter())
        self.pipeline = AnalyzerPipeline(RegexTokenizer(), filters)

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)


_ANALYZER_FACTORIES: dict[str, Callable[[], Analyzer]] = {
    "default": lambda: StandardAnalyzer(),
    "english": lambda: StandardAnalyzer(),
    "english-nostem": lambda: StandardAnalyzer(apply_stemming=False),
    "keyword": lambda: KeywordAnalyzer(),
}


def get_analyzer(name: str | None) -> Analyzer:
    """Return analyzer by name, defaulting to the standard analyzer."""

    if name is None:
        return _ANALYZER_FACTORIES["default"]()
    normalized = name.lower()
    if normalized not in _ANALYZER_FACTORIES:
        msg = f"Unknown analyzer '{name}'. Available: {sorted(_ANALYZER_FACTORIES)}"
        raise ValueError(msg)
    return _ANALYZER_FACTORIES[normalized]()


_DEFAULT_ANALYZER: Analyzer = StandardAnalyzer()


def analyze(text: str) -> list[str]:
    """Run ``text`` through the default English analyzer and return term strings."""

    return [token.text for token in _DEFAULT_ANALYZER(text)]
