"""Shared test fixtures and configuration."""

from collections.abc import Callable
import os
from pathlib import Path

import pytest

from tinydancer.search.index import SearchIndex


# Fixed modification time for every corpus file: 2024-03-05 14:30:15 UTC
CORPUS_MTIME = 1709649015


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    """Drop TINYDANCER_* variables and run every test away from any real .env file."""
    for key in list(os.environ):
        if key.upper().startswith("TINYDANCER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def write_file() -> Callable[[Path, str], Path]:
    """Write a UTF-8 file with a pinned modification time."""

    def _write(path: Path, text: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        os.utime(path, (CORPUS_MTIME, CORPUS_MTIME))
        return path

    return _write


@pytest.fixture
def sample_corpus(tmp_path, write_file) -> Path:
    """Small directory tree mixing text, HTML and ignored files."""
    root = tmp_path / "corpus"
    write_file(root / "a.txt", "the quick brown fox jumps")
    write_file(root / "b.txt", "lazy dog sleeps")
    write_file(
        root / "pages" / "hello.html",
        "<html><head><title>Hello World</title><style>.x { color: red }</style></head>"
        "<body><p>Greetings from the page body</p>"
        "<details><summary>Short summary here</summary>More details</details>"
        "<script>var hidden = 1;</script></body></html>",
    )
    write_file(root / "notes.md", "quick notes that must not be indexed")
    return root


@pytest.fixture
def build_index() -> Callable[..., SearchIndex]:
    """Index plain ``contents`` strings in order and close the index."""

    def _build(*contents: str) -> SearchIndex:
        index = SearchIndex()
        for position, text in enumerate(contents):
            index.add_document({"contents": text, "path": f"/docs/{position}.txt", "name": f"{position}.txt"})
        index.close()
        return index

    return _build


@pytest.fixture
def fruit_index(build_index) -> SearchIndex:
    """Three documents: A 'apple banana', B 'banana cherry', C 'cherry apple'."""
    return build_index("apple banana", "banana cherry", "cherry apple")
