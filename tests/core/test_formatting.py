"""Tests for shared text formatting helpers."""

import pytest

from gitscope.core.formatting import (
    RESULT_RULE,
    estimate_tokens,
    format_search_results,
    pluralize,
    truncate_query,
)
from gitscope.ingest.models import SearchResult


class TestPluralize:
    @pytest.mark.parametrize(
        ("count", "expected"),
        [(0, "0 files"), (1, "1 file"), (2, "2 files")],
    )
    def test_default_plural(self, count: int, expected: str) -> None:
        assert pluralize(count, "file") == expected

    def test_irregular_plural(self) -> None:
        assert pluralize(3, "match", "matches") == "3 matches"


class TestEstimateTokens:
    """Token estimates are a display string, not a number."""

    @pytest.mark.parametrize(
        ("length", "expected"),
        [
            (0, "0"),
            (3, "0"),
            (400, "100"),
            (3_996, "999"),
            (4_000, "1.0k"),
            (6_000, "1.5k"),
            (4_000_000, "1.0M"),
        ],
    )
    def test_scales(self, length: int, expected: str) -> None:
        assert estimate_tokens("x" * length) == expected


class TestFormatSearchResults:
    def test_no_results(self) -> None:
        assert format_search_results("needle", "a/b", []) == 'No matches found for query: "needle"'

    def test_single_result_with_context_and_url(self) -> None:
        """Results are numbered from 1 with path, line, rule, content and context."""
        # Given
        result = SearchResult(
            path="src/app.py",
            line=3,
            content="  needle = 1  ",
            context=["1: import os", "2: ", "3:   needle = 1  "],
            url="https://github.com/a/b/blob/main/src/app.py",
        )

        # When
        text = format_search_results("needle", "a/b", [result])

        # Then
        assert text == (
            'Search results for "needle" in a/b:\n\n'
            "Result 1: src/app.py (Line 3)\n"
            f"{RESULT_RULE}\n"
            "needle = 1\n"
            "\nContext:\n"
            "1: import os\n"
            "2: \n"
            "3:   needle = 1  \n"
            "\nURL: https://github.com/a/b/blob/main/src/app.py\n"
            "\n"
        )

    def test_optional_sections_omitted(self) -> None:
        results = [
            SearchResult(path="a.txt", line=1, content="one"),
            SearchResult(path="b.txt", line=7, content="two"),
        ]

        text = format_search_results("o", "repo", results)

        assert "Context:" not in text
        assert "URL:" not in text
        assert "Result 1: a.txt (Line 1)" in text
        assert "Result 2: b.txt (Line 7)" in text
        assert text.index("Result 1") < text.index("Result 2")


class TestTruncateQuery:
    def test_short_query_unchanged(self) -> None:
        assert truncate_query("short") == "short"

    def test_exact_length_unchanged(self) -> None:
        assert truncate_query("x" * 20) == "x" * 20

    def test_long_query_truncated(self) -> None:
        assert truncate_query("def _summarize_write_block") == "def _summarize_wr..."
