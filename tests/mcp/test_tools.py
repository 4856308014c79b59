"""Tests for the MCP tool handlers via an in-memory FastMCP client."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest
import structlog
from fastmcp import Client

from gitscope.config.models import CacheConfig, GitScopeConfig, RemoteConfig, WorkspaceConfig
from gitscope.core.errors import CloneError, RemoteAPIError
from gitscope.core.logging import get_request_id
from gitscope.ingest.context import IngestContext
from gitscope.ingest.models import Reference
from gitscope.ingest.scanner import format_block
from gitscope.ingest.store import MemorySnapshotStore
from gitscope.mcp.server import create_mcp_server
from gitscope.mcp.tools import NO_FILES_FOUND, _extract_log_params, _run_tool

if TYPE_CHECKING:
    from conftest import FakeClock, FakeRemote

TOOL_NAMES = {
    "github_repository_summary",
    "github_directory_structure",
    "github_read_important_files",
    "git_search",
    "git_diff",
}


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "README.md").write_text("# Demo\n")
    (root / "src" / "app.py").write_text("def handler():\n    return 'needle'\n")
    return root


@pytest.fixture
def context(
    tmp_path: Path,
    project: Path,
    fake_remote: FakeRemote,
    clock: FakeClock,
    monkeypatch: pytest.MonkeyPatch,
) -> IngestContext:
    """Context whose working copies are the local project directory."""
    config = GitScopeConfig(
        cache=CacheConfig(directory=str(tmp_path / "cache")),
        workspace=WorkspaceConfig(root=str(tmp_path / "ws")),
        remote=RemoteConfig(enrich_metadata=False),
    )
    context = IngestContext.create(
        config,
        store=MemorySnapshotStore(),
        remote=fake_remote,  # type: ignore[arg-type]
        clock=clock,
    )

    @asynccontextmanager
    async def checkout(reference: Reference) -> AsyncIterator[Path]:
        yield project

    monkeypatch.setattr(context.workspace, "checkout", checkout)
    return context


async def _call(context: IngestContext, tool: str, arguments: dict[str, Any]) -> str:
    mcp = create_mcp_server(context)
    async with Client(mcp) as client:
        result = await client.call_tool(tool, arguments)
    return result.content[0].text


class TestRegistration:
    @pytest.mark.asyncio
    async def test_all_tools_listed(self, context: IngestContext) -> None:
        async with Client(create_mcp_server(context)) as client:
            tools = await client.list_tools()

        assert {t.name for t in tools} == TOOL_NAMES


class TestSummaryTool:
    @pytest.mark.asyncio
    async def test_summary(self, context: IngestContext) -> None:
        text = await _call(context, "github_repository_summary", {"owner": "a", "repo": "b"})

        assert text.startswith("Repository: a/b\nFiles analyzed: 2\n")
        assert format_block("README.md", "# Demo\n") in text

    @pytest.mark.asyncio
    async def test_summary_with_metadata(self, context: IngestContext) -> None:
        text = await _call(
            context,
            "github_repository_summary",
            {"owner": "a", "repo": "b", "include_metadata": True},
        )
        assert "Stars: 7" in text


class TestTreeTool:
    @pytest.mark.asyncio
    async def test_tree(self, context: IngestContext) -> None:
        text = await _call(context, "github_directory_structure", {"owner": "a", "repo": "b"})
        assert text == "├── README.md\n└── src\n    └── app.py\n"

    @pytest.mark.asyncio
    async def test_failure_is_text(
        self, context: IngestContext, fake_remote: FakeRemote, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        @asynccontextmanager
        async def broken(reference: Reference) -> AsyncIterator[Path]:
            raise CloneError.clone_failed(reference.url, "offline")
            yield Path()

        async def no_api(reference: Reference, *, captured_at: float) -> None:
            raise RemoteAPIError.request_failed("/repos/a/b", "HTTP 404 Not Found", 404)

        monkeypatch.setattr(context.workspace, "checkout", broken)
        monkeypatch.setattr(fake_remote, "fetch_snapshot", no_api)

        text = await _call(context, "github_directory_structure", {"owner": "a", "repo": "b"})

        assert text.startswith("Failed to get repository tree: Remote API request")


class TestReadTool:
    @pytest.mark.asyncio
    async def test_text_format(self, context: IngestContext) -> None:
        text = await _call(
            context,
            "github_read_important_files",
            {"owner": "a", "repo": "b", "file_paths": ["app.py"]},
        )
        assert text == format_block("app.py", "def handler():\n    return 'needle'\n")

    @pytest.mark.asyncio
    async def test_json_format(self, context: IngestContext) -> None:
        text = await _call(
            context,
            "github_read_important_files",
            {"owner": "a", "repo": "b", "file_paths": ["README.md"], "format": "json"},
        )
        assert json.loads(text) == [{"path": "README.md", "content": "# Demo\n"}]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("fmt", ["text", "json"])
    async def test_nothing_found(self, context: IngestContext, fmt: str) -> None:
        text = await _call(
            context,
            "github_read_important_files",
            {"owner": "a", "repo": "b", "file_paths": ["nope.txt"], "format": fmt},
        )
        assert text == NO_FILES_FOUND


class TestSearchTool:
    @pytest.mark.asyncio
    async def test_search(self, context: IngestContext) -> None:
        text = await _call(
            context, "git_search", {"owner": "a", "repo": "b", "query": "needle"}
        )

        assert text.startswith('Search results for "needle" in a/b:\n\nResult 1: src/app.py')
        assert "(Line 2)" in text

    @pytest.mark.asyncio
    async def test_no_matches(self, context: IngestContext) -> None:
        text = await _call(context, "git_search", {"owner": "a", "repo": "b", "query": "zebra"})
        assert text == 'No matches found for query: "zebra"'


class TestDiffTool:
    @pytest.mark.asyncio
    async def test_diff_falls_back_to_remote(
        self, context: IngestContext, fake_remote: FakeRemote
    ) -> None:
        """The project directory is not a git repository, so the compare API answers."""
        text = await _call(
            context, "git_diff", {"owner": "a", "repo": "b", "base": "main", "head": "dev"}
        )

        assert text == "Comparing main...dev\n"
        assert fake_remote.calls == ["diff"]


class TestRunTool:
    @pytest.mark.asyncio
    async def test_domain_error_becomes_text(self) -> None:
        async def body() -> str:
            raise RemoteAPIError.request_failed("/search/code", "HTTP 403 Forbidden", 403)

        text = await _run_tool("git_search", "Failed to search repository", body)

        assert text == (
            "Failed to search repository: "
            "Remote API request to /search/code failed: HTTP 403 Forbidden"
        )

    @pytest.mark.asyncio
    async def test_unexpected_error_reraised(self) -> None:
        async def body() -> str:
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            await _run_tool("git_diff", "Failed to get diff", body)

    @pytest.mark.asyncio
    async def test_body_runs_with_request_id_and_repository(self) -> None:
        seen: dict[str, object] = {}

        async def body() -> str:
            seen["request_id"] = get_request_id()
            seen.update(structlog.contextvars.get_contextvars())
            return "ok"

        await _run_tool("git_search", "Failed", body, owner="octo", repo="demo", branch="dev")

        assert seen["request_id"] is not None
        assert seen["repository"] == "octo/demo"
        assert seen["ref"] == "dev"
        assert get_request_id() is None

    def test_extract_log_params(self) -> None:
        params = _extract_log_params(
            {"query": "q" * 60, "paths": ["a", "b", "c", "d"], "branch": None, "owner": "o"}
        )

        assert params == {"query": "q" * 50 + "...", "paths": "[4 items]", "owner": "o"}
