"""Text formatting shared by the MCP tools and the CLI.

Design principles:
- Plain text, no markup, so any MCP client renders it
- Same report regardless of whether data came from a clone or the API
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gitscope.ingest.models import SearchResult

CHARS_PER_TOKEN = 4
RESULT_RULE = "-" * 50


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return grammatically correct singular/plural form.

    Examples:
        (1, "file") -> "1 file"
        (3, "match", "matches") -> "3 matches"
    """
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


def estimate_tokens(text: str) -> str:
    """Rough token count of text for display.

    Examples:
        "" -> "0"
        4_000 chars -> "1.0k"
        8_000_000 chars -> "2.0M"
    """
    tokens = len(text) // CHARS_PER_TOKEN
    if tokens < 1_000:
        return str(tokens)
    if tokens < 1_000_000:
        return f"{tokens / 1_000:.1f}k"
    return f"{tokens / 1_000_000:.1f}M"


def format_search_results(query: str, repository: str, results: Sequence[SearchResult]) -> str:
    """Numbered search report, or a no-match line when results is empty."""
    if not results:
        return f'No matches found for query: "{query}"'

    parts = [f'Search results for "{query}" in {repository}:\n\n']
    for index, result in enumerate(results, start=1):
        parts.append(f"Result {index}: {result.path} (Line {result.line})\n")
        parts.append(f"{RESULT_RULE}\n")
        parts.append(f"{result.content.strip()}\n")
        if result.context:
            parts.append("\nContext:\n")
            parts.extend(f"{line}\n" for line in result.context)
        if result.url:
            parts.append(f"\nURL: {result.url}\n")
        parts.append("\n")
    return "".join(parts)


def truncate_query(query: str, max_len: int = 20) -> str:
    """Truncate a search query for log lines and spinners.

    Examples:
        "def _summarize_write_block" -> "def _summarize_wr..."
        "short" -> "short"
    """
    if len(query) <= max_len:
        return query
    return query[: max_len - 3] + "..."
