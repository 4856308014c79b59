"""Tests for tree loading and rendering."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from gitscope.ingest.tree import (
    count_files,
    iter_files,
    load_directory,
    render_tree,
    tree_from_paths,
)


class TestRenderTree:
    def test_nested_rendering(self) -> None:
        node = {"b.txt": None, "a": {"y.py": None, "x.py": None}, "c.md": None}

        assert render_tree(node) == (
            "├── a\n"
            "│   ├── x.py\n"
            "│   └── y.py\n"
            "├── b.txt\n"
            "└── c.md\n"
        )

    def test_last_directory_indents_with_spaces(self) -> None:
        node = {"README.md": None, "src": {"pkg": {"mod.py": None}}}

        assert render_tree(node) == (
            "├── README.md\n"
            "└── src\n"
            "    └── pkg\n"
            "        └── mod.py\n"
        )

    def test_git_entries_excluded_before_choosing_last(self) -> None:
        node = {"a": None, ".git": {"HEAD": None}, ".github": {"ci.yml": None}}
        assert render_tree(node) == "└── a\n"

    def test_empty_directory_rendered_as_leaf_line(self) -> None:
        assert render_tree({"empty": {}}) == "└── empty\n"

    def test_empty_tree(self) -> None:
        assert render_tree({}) == ""


class TestLoadDirectory:
    def test_loads_hierarchy(self, tmp_path: Path) -> None:
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "app.py").write_text("x")
        (tmp_path / "README.md").write_text("y")
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "HEAD").write_text("ref")

        assert load_directory(tmp_path) == {"src": {"app.py": None}, "README.md": None}

    def test_only_git_prefixed_names_skipped(self, tmp_path: Path) -> None:
        for name in (".env", ".gitignore", ".github", "node_modules"):
            (tmp_path / name).mkdir()

        assert load_directory(tmp_path) == {".env": {}, "node_modules": {}}

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinked_directory_is_a_leaf(self, tmp_path: Path) -> None:
        (tmp_path / "real").mkdir()
        (tmp_path / "real" / "file.txt").write_text("x")
        (tmp_path / "link").symlink_to(tmp_path / "real", target_is_directory=True)

        node = load_directory(tmp_path)

        assert node["link"] is None
        assert node["real"] == {"file.txt": None}

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            load_directory(tmp_path / "absent")


class TestTreeFromPaths:
    def test_builds_implied_parents(self) -> None:
        node = tree_from_paths(
            [("src", True), ("src/a.py", False), ("docs/guide/x.md", False), ("empty", True)]
        )
        assert node == {
            "src": {"a.py": None},
            "docs": {"guide": {"x.md": None}},
            "empty": {},
        }

    def test_order_independent(self) -> None:
        forward = tree_from_paths([("a", True), ("a/b.txt", False)])
        backward = tree_from_paths([("a/b.txt", False), ("a", True)])
        assert forward == backward == {"a": {"b.txt": None}}


class TestIterFiles:
    def test_depth_first_sorted(self) -> None:
        node = {"z.txt": None, "a": {"b": {"c.py": None}, "a.py": None}, ".gitignore": None}

        assert list(iter_files(node)) == ["a/a.py", "a/b/c.py", "z.txt"]
        assert count_files(node) == 3
