"""Directory trees: loading, walking and box-drawing rendering.

Local working copies and remote API listings are both reduced to the same
nested mapping so they render identically.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

import structlog

from gitscope.config.constants import EXCLUDED_PREFIX

log = structlog.get_logger(__name__)

# Directory name -> subtree, file name -> None
TreeNode = dict[str, "TreeNode | None"]

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


def _visible(node: Mapping[str, object]) -> list[str]:
    return sorted(name for name in node if not name.startswith(EXCLUDED_PREFIX))


def load_directory(root: Path) -> TreeNode:
    """Read a directory hierarchy into a TreeNode.

    Symlinks are treated as files and never followed. An unreadable
    subdirectory is logged and rendered empty.

    Raises:
        OSError: The root itself cannot be listed.
    """
    return _load(root, is_root=True)


def _load(directory: Path, *, is_root: bool = False) -> TreeNode:
    node: TreeNode = {}
    try:
        entries = list(os.scandir(directory))
    except OSError as e:
        if is_root:
            raise
        log.warning("directory_unreadable", path=str(directory), error=str(e))
        return node
    for entry in entries:
        if entry.name.startswith(EXCLUDED_PREFIX):
            continue
        if entry.is_dir(follow_symlinks=False):
            node[entry.name] = _load(Path(entry.path))
        else:
            node[entry.name] = None
    return node


def tree_from_paths(entries: Iterable[tuple[str, bool]]) -> TreeNode:
    """Build a TreeNode from ``(path, is_directory)`` pairs.

    Parent directories are implied by deeper paths and need not be listed.
    """
    root: TreeNode = {}
    for path, is_directory in entries:
        parts = [p for p in path.split("/") if p]
        if not parts:
            continue
        node = root
        for part in parts[:-1]:
            child = node.get(part)
            if child is None:
                child = {}
                node[part] = child
            node = child
        leaf = parts[-1]
        if is_directory:
            if node.get(leaf) is None:
                node[leaf] = {}
        else:
            node.setdefault(leaf, None)
    return root


def render_tree(node: Mapping[str, object], prefix: str = "") -> str:
    """Render a TreeNode with box-drawing connectors.

    Directories and files are sorted together. The last visible entry of a
    level closes it and its subtree is indented without a vertical bar.
    """
    lines: list[str] = []
    names = _visible(node)
    for i, name in enumerate(names):
        is_last = i == len(names) - 1
        lines.append(f"{prefix}{LAST_BRANCH if is_last else BRANCH}{name}\n")
        child = node[name]
        if isinstance(child, Mapping):
            lines.append(render_tree(child, prefix + (SPACE if is_last else PIPE)))
    return "".join(lines)


def iter_files(node: Mapping[str, object], parent: str = "") -> Iterator[str]:
    """Relative paths of all visible files, depth-first in sorted order."""
    for name in _visible(node):
        path = f"{parent}/{name}" if parent else name
        child = node[name]
        if isinstance(child, Mapping):
            yield from iter_files(child, path)
        else:
            yield path


def count_files(node: Mapping[str, object]) -> int:
    return sum(1 for _ in iter_files(node))
