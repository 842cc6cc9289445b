"""Filesystem-backed collection loader.

Walks a directory tree, admits files by extension and feeds them into a
``SearchIndex``. Files that cannot be read or indexed are logged and counted
as skipped; the walk itself only fails when the root does not exist.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from pathlib import Path

from tinydancer.domain.search import MODIFIED_FORMAT
from tinydancer.search.errors import SchemaError
from tinydancer.search.index import SearchIndex
from tinydancer.search.schema import Schema, create_default_schema
from tinydancer.utils.html_extractor import extract_html


logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".txt", ".htm", ".html")
_HTML_EXTENSIONS = frozenset({".htm", ".html"})


class DocumentLoadError(RuntimeError):
    """Raised when a file or the collection root cannot be loaded."""


@dataclass(frozen=True)
class CollectionContext:
    """Immutable context describing which files to index."""

    root: Path
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    follow_symlinks: bool = False
    schema: Schema = field(default_factory=create_default_schema)


@dataclass(frozen=True)
class IndexedFile:
    """One file admitted into the index."""

    doc_id: int
    path: str
    modified: str


@dataclass(frozen=True)
class IndexBuildResult:
    """Outcome of a collection indexing run."""

    documents_indexed: int
    documents_skipped: int
    errors: tuple[str, ...]
    files: tuple[IndexedFile, ...]


def format_modified(timestamp: float) -> str:
    """Render a POSIX timestamp as ``yyyyMMddHHmmss`` in UTC."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(MODIFIED_FORMAT)


class CollectionIndexer:
    """Build a closed ``SearchIndex`` from the files under one root."""

    def __init__(self, context: CollectionContext, *, index: SearchIndex | None = None) -> None:
        self.context = context
        self.index = index if index is not None else SearchIndex(context.schema)
        self._extensions = frozenset(ext.lower() for ext in context.extensions)

    def build(self) -> IndexBuildResult:
        """Index every admitted file and close the index.

        Raises:
            DocumentLoadError: the collection root does not exist.
        """
        root = self.context.root
        if not root.exists():
            raise DocumentLoadError(f"The file {root} doesn't exist")

        documents_skipped = 0
        errors: list[str] = []
        files: list[IndexedFile] = []

        for path in self._discover_files():
            try:
                fields = self._load_fields(path)
                doc_id = self.index.add_document(fields)
            except (DocumentLoadError, SchemaError) as exc:
                logger.warning("Parsing file %s failed: %s", path, exc)
                errors.append(f"{path}: {exc}")
                documents_skipped += 1
                continue

            logger.info("Indexed %s as document %d", path, doc_id)
            files.append(IndexedFile(doc_id=doc_id, path=fields["path"], modified=fields["modified"]))

        self.index.close()
        return IndexBuildResult(
            documents_indexed=len(files),
            documents_skipped=documents_skipped,
            errors=tuple(errors),
            files=tuple(files),
        )

    # --- internal helpers -------------------------------------------------

    def _discover_files(self) -> Iterator[Path]:
        root = self.context.root
        if root.is_dir():
            yield from self._walk(root, seen=set())
        elif self._admits(root):
            yield root
        else:
            logger.info("The file %s is skipped; files of this format cannot be indexed", root.name)

    def _walk(self, directory: Path, *, seen: set[Path]) -> Iterator[Path]:
        resolved = directory.resolve()
        if resolved in seen:
            return
        seen.add(resolved)
        logger.info("Entering the directory %s", directory.absolute())

        try:
            entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
        except OSError as exc:
            logger.warning("Cannot list directory %s: %s", directory, exc)
            return

        for entry in entries:
            if entry.is_dir():
                if entry.is_symlink() and not self.context.follow_symlinks:
                    logger.debug("Skipping symlinked directory %s", entry)
                    continue
                yield from self._walk(entry, seen=seen)
            elif entry.is_file():
                if self._admits(entry):
                    logger.debug("The file %s is added to the file list", entry.name)
                    yield entry
                else:
                    logger.debug("The file %s is skipped; files of this format cannot be indexed", entry.name)

    def _admits(self, path: Path) -> bool:
        return path.suffix.lower() in self._extensions

    def _load_fields(self, path: Path) -> dict[str, str]:
        try:
            raw = path.read_bytes()
            modified = format_modified(path.stat().st_mtime)
        except OSError as exc:
            raise DocumentLoadError(f"Cannot read {path}: {exc}") from exc

        fields = {
            "path": str(path.absolute()),
            "name": path.name,
            "modified": modified,
        }
        if path.suffix.lower() in _HTML_EXTENSIONS:
            content = extract_html(raw)
            # every HTML document carries title and summary, possibly empty
            fields["contents"] = content.body
            fields["title"] = content.title
            fields["summary"] = content.summary
        else:
            fields["contents"] = raw.decode("utf-8", errors="replace")
        return fields
