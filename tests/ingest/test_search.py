"""Tests for local line search."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from gitscope.core.errors import SearchError
from gitscope.ingest.search import compile_query, context_lines, search_repository


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    (root / "a.py").write_text("import os\n\ndef Foo():\n    return foo\n")
    (root / "b.txt").write_text("foo\nbar\n")
    (root / ".git").mkdir()
    (root / ".git" / "config").write_text("foo = hidden\n")
    return root


class TestCompileQuery:
    def test_case_insensitive(self) -> None:
        assert compile_query("foo").search("FOO")

    def test_invalid_regex_is_literal(self) -> None:
        pattern = compile_query("foo(")
        assert pattern.search("call foo(x)")
        assert not pattern.search("foo")


class TestContextLines:
    def test_neighbours_numbered_and_clipped(self) -> None:
        lines = ["a", "b", "c", "d"]
        assert context_lines(lines, 0) == ["2: b", "3: c"]
        assert context_lines(lines, 2) == ["1: a", "2: b", "4: d"]


class TestSearchRepository:
    def test_matches_in_walk_order(self, project: Path) -> None:
        results = search_repository(project, "foo")

        assert [(r.path, r.line) for r in results] == [("a.py", 3), ("a.py", 4), ("b.txt", 1)]
        assert results[0].content == "def Foo():"
        assert results[0].context == ["1: import os", "2: ", "4:     return foo", "5: "]

    def test_max_results_bound(self, project: Path) -> None:
        assert len(search_repository(project, "foo", max_results=2)) == 2

    @pytest.mark.parametrize("limit", [0, -5])
    def test_non_positive_limit(self, project: Path, limit: int) -> None:
        assert search_repository(project, "foo", max_results=limit) == []

    def test_regex_anchors(self, project: Path) -> None:
        results = search_repository(project, "^bar$")
        assert [(r.path, r.line) for r in results] == [("b.txt", 2)]

    def test_no_matches(self, project: Path) -> None:
        assert search_repository(project, "zebra") == []

    def test_invalid_regex_searched_literally(self, project: Path) -> None:
        (project / "c.py").write_text("x = call(\n")
        results = search_repository(project, "call(")
        assert [r.path for r in results] == ["c.py"]

    def test_large_files_skipped(self, project: Path) -> None:
        (project / "big.txt").write_text("foo\n" * 300_000)
        assert all(r.path != "big.txt" for r in search_repository(project, "foo", 100))

    def test_missing_root(self, tmp_path: Path) -> None:
        with pytest.raises(SearchError):
            search_repository(tmp_path / "absent", "foo")

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinks_searched_by_target_text(self, project: Path, tmp_path: Path) -> None:
        outside = tmp_path / "outside.txt"
        outside.write_text("foo from the host\n")
        (project / "leak").symlink_to(outside)
        (project / "dir").symlink_to(project, target_is_directory=True)

        assert search_repository(project, "the host") == []
        results = search_repository(project, "outside")
        assert [(r.path, r.content) for r in results] == [("leak", str(outside))]
