"""Filesystem scanner: tree rendering, file count and concatenated content."""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from gitscope.config.constants import DELIMITER, MAX_FILE_SIZE_BYTES
from gitscope.core.errors import ScanError
from gitscope.ingest.models import ScanResult
from gitscope.ingest.tree import TreeNode, iter_files, load_directory, render_tree
from gitscope.ingest.tree import count_files as count_tree_files

log = structlog.get_logger(__name__)


def format_block(path: str, text: str) -> str:
    """One ConcatenatedContent block."""
    return f"{DELIMITER}\nFile: {path}\n{DELIMITER}\n{text}\n\n"


def too_large_placeholder(size_bytes: int) -> str:
    return f"[File too large to display: {size_bytes / 1024 / 1024:.2f} MB]"


def read_text(path: Path) -> str:
    """Decode a file as UTF-8 without newline translation."""
    return path.read_bytes().decode("utf-8", errors="replace")


def link_target(path: Path) -> str | None:
    """The target text of a symlink, which is what git stores as its blob.

    Returns None for anything that is not a symlink. The link is never
    followed, so a target outside the working copy is never read.
    """
    if not path.is_symlink():
        return None
    return os.readlink(path)


def _load_root(root: Path) -> TreeNode:
    if not root.is_dir():
        raise ScanError.scan_failed(str(root), "not a directory")
    try:
        return load_directory(root)
    except OSError as e:
        raise ScanError.scan_failed(str(root), str(e)) from e


def _concatenate(root: Path, node: TreeNode) -> str:
    blocks: list[str] = []
    for rel_path in iter_files(node):
        file_path = root / rel_path
        try:
            if (target := link_target(file_path)) is not None:
                blocks.append(format_block(rel_path, target))
                continue
            size = file_path.stat().st_size
            if size > MAX_FILE_SIZE_BYTES:
                blocks.append(format_block(rel_path, too_large_placeholder(size)))
                continue
            blocks.append(format_block(rel_path, read_text(file_path)))
        except OSError as e:
            log.warning("file_read_failed", path=rel_path, error=str(e))
    return "".join(blocks)


def render_directory_tree(root: Path) -> str:
    return render_tree(_load_root(root))


def count_files(root: Path) -> int:
    return count_tree_files(_load_root(root))


def read_repository_content(root: Path) -> str:
    return _concatenate(root, _load_root(root))


def scan(root: Path) -> ScanResult:
    """Walk a working copy once and produce tree, file count and content.

    Does not modify the directory. Unreadable files are skipped.

    Raises:
        ScanError: The root is missing or cannot be listed.
    """
    node = _load_root(root)
    result = ScanResult(
        tree=render_tree(node),
        file_count=count_tree_files(node),
        content=_concatenate(root, node),
    )
    log.debug("scan_complete", path=str(root), files=result.file_count, chars=len(result.content))
    return result
