"""Bounded line-oriented search over a working copy."""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from gitscope.config.constants import MAX_FILE_SIZE_BYTES, SEARCH_CONTEXT_LINES
from gitscope.core.errors import SearchError
from gitscope.ingest.models import SearchResult
from gitscope.ingest.scanner import link_target, read_text
from gitscope.ingest.tree import iter_files, load_directory

log = structlog.get_logger(__name__)


def compile_query(query: str) -> re.Pattern[str]:
    """Case-insensitive regex, or a literal match if the query is not valid regex."""
    try:
        return re.compile(query, re.IGNORECASE)
    except re.error:
        return re.compile(re.escape(query), re.IGNORECASE)


def context_lines(lines: list[str], index: int, radius: int = SEARCH_CONTEXT_LINES) -> list[str]:
    """Numbered neighbours of lines[index], excluding the line itself."""
    start = max(0, index - radius)
    stop = min(len(lines), index + radius + 1)
    return [f"{j + 1}: {lines[j]}" for j in range(start, stop) if j != index]


def search_repository(root: Path, query: str, max_results: int = 10) -> list[SearchResult]:
    """Matching lines in scanner walk order, stopping at max_results.

    Files over the size ceiling are skipped, as are files that cannot be
    read. Symlinks are searched by their target text.

    Raises:
        SearchError: The root is missing or cannot be listed.
    """
    if max_results <= 0:
        return []
    if not root.is_dir():
        raise SearchError.search_failed(f"{root} is not a directory")
    try:
        node = load_directory(root)
    except OSError as e:
        raise SearchError.search_failed(str(e)) from e

    pattern = compile_query(query)
    results: list[SearchResult] = []
    for rel_path in iter_files(node):
        file_path = root / rel_path
        try:
            if (target := link_target(file_path)) is not None:
                lines = [target]
            elif file_path.stat().st_size > MAX_FILE_SIZE_BYTES:
                continue
            else:
                lines = read_text(file_path).split("\n")
        except OSError as e:
            log.warning("search_file_failed", path=rel_path, error=str(e))
            continue

        for i, line in enumerate(lines):
            if not pattern.search(line):
                continue
            results.append(
                SearchResult(
                    path=rel_path,
                    line=i + 1,
                    content=line,
                    context=context_lines(lines, i),
                )
            )
            if len(results) >= max_results:
                return results
    return results
