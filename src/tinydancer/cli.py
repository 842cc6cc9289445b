"""Interactive command line: index a directory, then answer queries until ``q``."""

from __future__ import annotations

import argparse
from collections.abc import Callable, Sequence
from datetime import datetime
import logging
from pathlib import Path
import sys

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tinydancer.collection import CollectionContext, CollectionIndexer, DocumentLoadError, IndexedFile
from tinydancer.config import Settings
from tinydancer.domain.search import MODIFIED_FORMAT, SearchResponse
from tinydancer.observability.logging import configure_logging
from tinydancer.search.errors import QueryParseError
from tinydancer.search.index import SearchIndex


logger = logging.getLogger(__name__)

QUIT_COMMAND = "q"
PROMPT = "Tip 'q' to quit. Searching for: "
DISPLAY_FORMAT = "%d/%m/%Y %H:%M:%S"
ALL_FIELDS = ("contents", "title", "modified")


def build_argument_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinydancer",
        description="Index .txt/.htm/.html files under a directory and search them interactively",
    )
    parser.add_argument(
        "directory",
        type=Path,
        metavar="DIRECTORY",
        help="Directory (or single file) to index",
    )
    parser.add_argument(
        "--top-k",
        type=_positive_int,
        default=settings.top_k,
        help=f"Maximum number of hits shown per query (default: {settings.top_k})",
    )
    parser.add_argument(
        "--all-fields",
        action="store_true",
        default=settings.all_fields_query,
        help="Search contents, title and modified instead of the default field only",
    )
    parser.add_argument(
        "--explain",
        action="store_true",
        help="Print the per-term score breakdown for every hit",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level})",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=settings.log_json,
        help="Emit structured JSON log lines on stderr",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Report directories and files while indexing (-vv for debug output)",
    )
    return parser


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return parsed


def rewrite_all_fields(query: str, fields: Sequence[str] = ALL_FIELDS) -> str:
    """Expand ``query`` into ``contents:(Q) OR title:(Q) OR modified:(Q)``."""
    if not query.strip():
        return query
    return " OR ".join(f"{field}:({query})" for field in fields)


def format_display_time(modified: str | None) -> str:
    """Render a stored ``yyyyMMddHHmmss`` value as ``dd/MM/yyyy HH:mm:ss``."""
    if not modified:
        return ""
    try:
        return datetime.strptime(modified, MODIFIED_FORMAT).strftime(DISPLAY_FORMAT)
    except ValueError:
        return modified


def render_indexed_files(console: Console, files: Sequence[IndexedFile]) -> None:
    table = Table(title="Indexed files")
    table.add_column("ID", justify="right")
    table.add_column("Full file name")
    table.add_column("Last modified date")
    for position, indexed in enumerate(files, start=1):
        table.add_row(str(position), escape(indexed.path), format_display_time(indexed.modified))
    console.print(table)


def render_results(console: Console, response: SearchResponse) -> None:
    console.print(f"\nINFO| Found {response.total_count} hits.")
    if not response.results:
        return
    table = Table()
    table.add_column("ID", justify="right")
    table.add_column("Full file name")
    table.add_column("Last modified date")
    table.add_column("Score", justify="right")
    table.add_column("Title")
    table.add_column("Summary")
    for hit in response.results:
        table.add_row(
            str(hit.rank),
            escape(hit.path or ""),
            format_display_time(hit.modified),
            f"{hit.score:.6f}",
            escape(hit.title or ""),
            escape(hit.summary or ""),
        )
    console.print(table)


def render_explanations(console: Console, index: SearchIndex, query: str, response: SearchResponse) -> None:
    parsed = index.parse(query)
    for hit in response.results:
        explanation = index.explain(parsed, hit.doc_id)
        console.print(f"[bold]#{hit.rank}[/bold] {escape(hit.path or '')} = {explanation.score:.6f}")
        for part in explanation.contributions:
            console.print(
                f"    {escape(part.field)}:{escape(part.term)} tf={part.frequency} df={part.doc_frequency} "
                f"idf={part.idf:.4f} norm={part.norm:.4f} boost={part.boost:g} -> {part.score:.6f}"
            )


def run_repl(
    index: SearchIndex,
    console: Console,
    *,
    top_k: int,
    all_fields: bool = False,
    explain: bool = False,
    read_line: Callable[[str], str] = input,
) -> None:
    """Answer queries until the quit command or end of input."""
    while True:
        try:
            line = read_line(PROMPT)
        except EOFError:
            break
        query = line.strip()
        if query == QUIT_COMMAND:
            break
        if not query:
            continue
        if all_fields:
            query = rewrite_all_fields(query)
        try:
            response = index.search(query, k=top_k)
        except QueryParseError as exc:
            logger.debug("Rejected query %r: %s", query, exc)
            console.print(f"[red]ERROR| Could not parse the query at position {exc.position}: {escape(exc.message)}[/red]")
            continue
        logger.debug("Parsed %r as %s", query, response.stats.parsed_query if response.stats else query)
        render_results(console, response)
        if explain:
            render_explanations(console, index, query, response)


def main(
    argv: Sequence[str] | None = None,
    *,
    read_line: Callable[[str], str] = input,
    console: Console | None = None,
) -> int:
    console = console or Console(highlight=False)
    try:
        settings = Settings()
    except ValidationError as exc:
        console.print(f"[red]ERROR| Invalid configuration: {escape(str(exc))}[/red]")
        return 1

    parser = build_argument_parser(settings)
    args = parser.parse_args(argv)

    level = args.log_level
    if args.verbose == 1:
        level = "info"
    elif args.verbose > 1:
        level = "debug"
    configure_logging(level, args.json_logs)

    context = CollectionContext(
        root=args.directory,
        extensions=settings.get_extensions(),
        follow_symlinks=settings.follow_symlinks,
    )
    index = SearchIndex(context.schema, default_field=settings.default_field)
    try:
        result = CollectionIndexer(context, index=index).build()
    except DocumentLoadError as exc:
        logger.error("%s", exc)
        console.print(f"[red]ERROR| Could not index the directory: {escape(str(args.directory))}[/red]")
        return 1

    if result.documents_skipped:
        logger.warning("Skipped %d file(s) while indexing", result.documents_skipped)
    render_indexed_files(console, result.files)

    run_repl(
        index,
        console,
        top_k=args.top_k,
        all_fields=args.all_fields,
        explain=args.explain,
        read_line=read_line,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
