"""Extract searchable text from HTML files."""

from __future__ import annotations

from dataclasses import dataclass
import re

from bs4 import BeautifulSoup


_INVISIBLE_TAGS = ("script", "style", "noscript", "template", "head", "title")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class HtmlContent:
    """Text pulled out of one HTML document."""

    title: str
    body: str
    summary: str


def extract_html(markup: str | bytes, *, encoding: str | None = "utf-8") -> HtmlContent:
    """Split ``markup`` into its ``<title>``, visible body text and ``<summary>`` text.

    Raw bytes are decoded with ``encoding`` first; when that fails BeautifulSoup
    falls back to the page's declared charset and its own detection. Missing
    parts come back as empty strings. Text of the ``<summary>`` element stays
    part of the body as well since it is visible on the page.
    """
    if isinstance(markup, bytes):
        soup = BeautifulSoup(markup, "html.parser", from_encoding=encoding)
    else:
        soup = BeautifulSoup(markup, "html.parser")

    title_tag = soup.find("title")
    title = _collapse(title_tag.get_text(" ")) if title_tag is not None else ""

    summary_tag = soup.find("summary")
    summary = _collapse(summary_tag.get_text(" ")) if summary_tag is not None else ""

    for tag in soup.find_all(_INVISIBLE_TAGS):
        tag.decompose()

    root = soup.body if soup.body is not None else soup
    body = _collapse(root.get_text(" "))
    return HtmlContent(title=title, body=body, summary=summary)


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()
