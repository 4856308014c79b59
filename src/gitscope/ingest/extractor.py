"""Recover individual files from ConcatenatedContent.

Delimiter patterns are tried strictest first and the first pattern that
matches anywhere in the blob is used for the whole blob. Extraction is
exact: a body written by the scanner comes back byte for byte.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from gitscope.ingest.models import FileContent
from gitscope.ingest.scanner import format_block

HEADER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^={50}\nFile: ([^\n]+)\n={50}$", re.MULTILINE),
    re.compile(r"^={10,}\nFile: ([^\n]+)\n={10,}$", re.MULTILINE),
    re.compile(r"^=+[ \t]*File:[ \t]*([^\n]+?)[ \t]*\n=+[ \t]*$", re.MULTILINE),
)

_EXACT, _BASENAME, _SUFFIX = 1, 2, 3


@dataclass(frozen=True, slots=True)
class Block:
    """A declared file name and its body."""

    path: str
    body: str


def _trim_body(raw: str) -> str:
    # Undo exactly the framing the scanner adds: "\n" before, "\n\n" after
    body = raw.removeprefix("\n")
    if body.endswith("\n\n"):
        return body[:-2]
    return body.removesuffix("\n")


def parse_blocks(content: str) -> list[Block]:
    """Split a blob into blocks using the first delimiter pattern that matches."""
    if not content:
        return []
    for pattern in HEADER_PATTERNS:
        headers = list(pattern.finditer(content))
        if not headers:
            continue
        blocks: list[Block] = []
        for i, header in enumerate(headers):
            end = headers[i + 1].start() if i + 1 < len(headers) else len(content)
            raw = content[header.end() : end]
            blocks.append(Block(path=header.group(1).strip(), body=_trim_body(raw)))
        return blocks
    return []


def _basename(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


def match_tier(requested: str, declared: str) -> int | None:
    """How well a requested path matches a declared block name. Lower is better."""
    if requested == declared:
        return _EXACT
    if _basename(requested) == declared or _basename(declared) == requested:
        return _BASENAME
    if requested.endswith(f"/{declared}"):
        return _SUFFIX
    return None


def _select(blocks: Sequence[Block], paths: Sequence[str]) -> dict[str, str]:
    selected: dict[str, str] = {}
    for path in dict.fromkeys(paths):
        best: Block | None = None
        for block in blocks:
            tier = match_tier(path, block.path)
            if tier == _EXACT:
                best = block
                break
            if tier is not None and best is None:
                best = block
        if best is not None:
            selected[path] = best.body
    return selected


def extract_files(content: str, paths: Sequence[str]) -> list[FileContent]:
    """Matched files in request order. Unmatched paths are omitted."""
    selected = _select(parse_blocks(content), paths)
    return [FileContent(path=path, content=body) for path, body in selected.items()]


def extract_files_content(content: str, paths: Sequence[str]) -> str:
    """Matched files re-serialized as ConcatenatedContent under the requested paths."""
    selected = _select(parse_blocks(content), paths)
    return "".join(format_block(path, body) for path, body in selected.items())
