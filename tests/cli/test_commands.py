"""Tests for the gitscope CLI commands.

Covers:
- Group options (--version, --help)
- summary, tree, read, search and diff against a local repository
- clear-cache
- serve argument handling
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from gitscope import __version__
from gitscope.cli.main import cli

if TYPE_CHECKING:
    from conftest import RemoteFixture


@pytest.fixture(autouse=True)
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Isolated config: temp cache and workspace, no global or project config."""
    for name in list(os.environ):
        if name.upper().startswith("GITSCOPE__"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GITSCOPE__CACHE__DIRECTORY", str(tmp_path / "cache"))
    monkeypatch.setenv("GITSCOPE__WORKSPACE__ROOT", str(tmp_path / "ws"))
    monkeypatch.setenv("GITSCOPE__REMOTE__ENRICH_METADATA", "false")
    with patch("gitscope.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "global.yaml"):
        yield


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestGroup:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("serve", "summary", "tree", "read", "search", "diff", "clear-cache"):
            assert command in result.output


class TestQueryCommands:
    def test_tree(self, runner: CliRunner, remote: RemoteFixture) -> None:
        result = runner.invoke(cli, ["tree", remote.url])

        assert result.exit_code == 0, result.output
        assert "├── README.md\n└── src\n    └── app.py\n" in result.output

    def test_tree_for_branch(self, runner: CliRunner, remote: RemoteFixture) -> None:
        result = runner.invoke(cli, ["tree", remote.url, "--branch", "feature"])

        assert result.exit_code == 0, result.output
        assert "feature.txt" in result.output

    def test_summary(self, runner: CliRunner, remote: RemoteFixture) -> None:
        result = runner.invoke(cli, ["summary", remote.url])

        assert result.exit_code == 0, result.output
        assert "Files analyzed: 2" in result.output
        assert "File: README.md" in result.output

    def test_read_text(self, runner: CliRunner, remote: RemoteFixture) -> None:
        result = runner.invoke(cli, ["read", remote.url, "README.md", "app.py"])

        assert result.exit_code == 0, result.output
        assert "==> README.md <==" in result.output
        assert "==> app.py <==" in result.output
        assert "return 42" in result.output

    def test_read_json(self, runner: CliRunner, remote: RemoteFixture) -> None:
        result = runner.invoke(cli, ["read", remote.url, "README.md", "--json"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == [{"path": "README.md", "content": "# Test Repo\n"}]

    def test_read_missing(self, runner: CliRunner, remote: RemoteFixture) -> None:
        result = runner.invoke(cli, ["read", remote.url, "nope.txt"])

        assert result.exit_code == 1
        assert "None of the requested files were found" in result.output

    def test_search(self, runner: CliRunner, remote: RemoteFixture) -> None:
        result = runner.invoke(cli, ["search", remote.url, "return", "-n", "5"])

        assert result.exit_code == 0, result.output
        assert "Result 1: src/app.py (Line 2)" in result.output

    def test_diff(self, runner: CliRunner, remote: RemoteFixture) -> None:
        result = runner.invoke(cli, ["diff", remote.url, "main", "feature"])

        assert result.exit_code == 0, result.output
        assert "+feature work" in result.output

    def test_unreachable_repository(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["tree", str(tmp_path / "absent")])

        assert result.exit_code == 1
        assert "only available for GitHub repositories" in result.output

    def test_empty_repository_argument(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["tree", " "])
        assert result.exit_code == 2


class TestClearCache:
    def test_clear_after_query(
        self, runner: CliRunner, remote: RemoteFixture, tmp_path: Path
    ) -> None:
        runner.invoke(cli, ["tree", remote.url])
        assert list((tmp_path / "cache").glob("*.json"))

        result = runner.invoke(cli, ["clear-cache"])

        assert result.exit_code == 0, result.output
        assert "Removed 1 cache entry" in result.output
        assert not list((tmp_path / "cache").glob("*.json"))

    def test_clear_empty(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["clear-cache"])

        assert result.exit_code == 0
        assert "Removed 0 cache entries" in result.output


class TestServe:
    def test_stdout_logging_rejected_for_stdio(self, runner: CliRunner, tmp_path: Path) -> None:
        config_dir = tmp_path / ".gitscope"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("logging:\n  outputs:\n    - destination: stdout\n")

        result = runner.invoke(cli, ["serve"])

        assert result.exit_code == 1
        assert "stdout logging cannot be used with the stdio transport" in result.output

    def test_http_options_forwarded(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls: list[dict[str, Any]] = []

        def fake_run_server(config: Any, **kwargs: Any) -> None:
            calls.append(kwargs)

        monkeypatch.setattr("gitscope.mcp.server.run_server", fake_run_server)

        result = runner.invoke(cli, ["serve", "--transport", "http", "--port", "9100"])

        assert result.exit_code == 0, result.output
        assert calls == [{"transport": "http", "host": None, "port": 9100}]

    def test_invalid_config_is_clean_error(self, runner: CliRunner, tmp_path: Path) -> None:
        config_dir = tmp_path / ".gitscope"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("server:\n  port: 99999\n")

        result = runner.invoke(cli, ["serve"])

        assert result.exit_code == 1
        assert "Invalid value for 'server.port'" in result.output
