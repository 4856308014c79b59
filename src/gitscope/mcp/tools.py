"""Repository MCP tools - github_* and git_* handlers."""

import json
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Literal

import structlog
from fastmcp import Context
from pydantic import Field

from gitscope.core.errors import GitScopeError
from gitscope.core.formatting import format_search_results, pluralize
from gitscope.core.logging import bind_reference, clear_request_id, set_request_id
from gitscope.ingest.models import Reference
from gitscope.ingest.pipeline import RepositoryIngester

if TYPE_CHECKING:
    from fastmcp import FastMCP

    from gitscope.ingest.context import IngestContext

log = structlog.get_logger(__name__)

NO_FILES_FOUND = "None of the requested files were found in the repository"


def _extract_log_params(kwargs: dict[str, Any]) -> dict[str, Any]:
    """Key params for tool_start, with long values shortened."""
    params: dict[str, Any] = {}
    for key, value in kwargs.items():
        if isinstance(value, str) and len(value) > 50:
            params[key] = value[:50] + "..."
        elif isinstance(value, list) and len(value) > 3:
            params[key] = f"[{len(value)} items]"
        elif value is not None:
            params[key] = value
    return params


async def _run_tool(
    tool_name: str,
    failure_prefix: str,
    body: Callable[[], Awaitable[str]],
    **params: Any,
) -> str:
    """Run a tool body with start/complete logging under a fresh request ID.

    Expected failures come back as plain text for the client. Anything else
    is logged and re-raised for FastMCP to report.
    """
    set_request_id()
    owner, repo = params.get("owner"), params.get("repo")
    repository = f"{owner}/{repo}" if owner and repo else tool_name
    start_time = time.perf_counter()
    try:
        with bind_reference(repository, params.get("branch")):
            log.info("tool_start", tool=tool_name, **_extract_log_params(params))
            try:
                text = await body()
            except GitScopeError as e:
                elapsed_ms = int((time.perf_counter() - start_time) * 1000)
                log.warning(
                    "tool_error",
                    tool=tool_name,
                    error_code=e.code.value,
                    error=e.message,
                    elapsed_ms=elapsed_ms,
                )
                return f"{failure_prefix}: {e.message}"
            except Exception as e:
                elapsed_ms = int((time.perf_counter() - start_time) * 1000)
                log.error("tool_internal_error", tool=tool_name, error=str(e), elapsed_ms=elapsed_ms)
                log.debug("tool_internal_error_traceback", tool=tool_name, exc_info=True)
                raise
            elapsed_ms = int((time.perf_counter() - start_time) * 1000)
            log.info("tool_complete", tool=tool_name, elapsed_ms=elapsed_ms, chars=len(text))
            return text
    finally:
        clear_request_id()


def register_tools(mcp: "FastMCP", ingest_ctx: "IngestContext") -> None:
    """Register repository tools with FastMCP server."""

    def ingester_for(owner: str, repo: str, branch: str | None) -> RepositoryIngester:
        return RepositoryIngester(Reference.from_github(owner, repo, branch), ingest_ctx)

    @mcp.tool
    async def github_repository_summary(
        ctx: Context,
        owner: str = Field(..., description="GitHub organization or username"),
        repo: str = Field(..., description="Repository name"),
        branch: str | None = Field(None, description="Optional branch name"),
        include_metadata: bool = Field(False, description="Include stars, forks, etc."),
    ) -> str:
        """Get a summary of a GitHub repository."""

        async def body() -> str:
            await ctx.report_progress(1, 4)
            ingester = ingester_for(owner, repo, branch)
            await ctx.report_progress(2, 4)
            await ingester.fetch_snapshot()
            await ctx.report_progress(3, 4)
            text = await ingester.render_summary(include_metadata=include_metadata)
            await ctx.report_progress(4, 4)
            return text

        return await _run_tool(
            "github_repository_summary",
            "Failed to get repository summary",
            body,
            owner=owner,
            repo=repo,
            branch=branch,
        )

    @mcp.tool
    async def github_directory_structure(
        ctx: Context,
        owner: str = Field(..., description="GitHub organization or username"),
        repo: str = Field(..., description="Repository name"),
        branch: str | None = Field(None, description="Optional branch name"),
    ) -> str:
        """Get the tree structure of a GitHub repository with an ASCII tree visualization."""

        async def body() -> str:
            await ctx.report_progress(1, 2)
            snapshot = await ingester_for(owner, repo, branch).fetch_snapshot()
            await ctx.report_progress(2, 2)
            return snapshot.tree

        return await _run_tool(
            "github_directory_structure",
            "Failed to get repository tree",
            body,
            owner=owner,
            repo=repo,
            branch=branch,
        )

    @mcp.tool
    async def github_read_important_files(
        ctx: Context,
        owner: str = Field(..., description="GitHub organization or username"),
        repo: str = Field(..., description="Repository name"),
        file_paths: list[str] = Field(..., description="List of paths to files"),
        branch: str | None = Field(None, description="Optional branch name"),
        format: Literal["text", "json"] = Field("text", description="Output format"),
    ) -> str:
        """Get the content of specific files from a GitHub repository."""

        async def body() -> str:
            await ctx.report_progress(1, 3)
            ingester = ingester_for(owner, repo, branch)
            await ctx.report_progress(2, 3)
            await ingester.fetch_snapshot()
            await ctx.report_progress(3, 3)

            if format == "json":
                files = await ingester.get_files_as_objects(file_paths)
                if not files:
                    return NO_FILES_FOUND
                return json.dumps([f.model_dump() for f in files], indent=2)

            content = await ingester.get_files_content(file_paths)
            return content or NO_FILES_FOUND

        return await _run_tool(
            "github_read_important_files",
            "Failed to get file content",
            body,
            owner=owner,
            repo=repo,
            file_paths=file_paths,
            format=format,
        )

    @mcp.tool
    async def git_search(
        ctx: Context,
        owner: str = Field(..., description="GitHub organization or username"),
        repo: str = Field(..., description="Repository name"),
        query: str = Field(..., description="Search query"),
        branch: str | None = Field(None, description="Optional branch name"),
        max_results: int = Field(
            ingest_ctx.config.limits.search_default,
            description="Maximum results to return",
        ),
    ) -> str:
        """Search for content within a GitHub repository."""

        async def body() -> str:
            await ctx.report_progress(1, 3)
            ingester = ingester_for(owner, repo, branch)
            await ctx.report_progress(2, 3)
            results = await ingester.search(query, max_results)
            await ctx.report_progress(3, 3)
            log.debug("search_results", query=query, summary=pluralize(len(results), "result"))
            return format_search_results(query, f"{owner}/{repo}", results)

        return await _run_tool(
            "git_search",
            "Failed to search repository",
            body,
            owner=owner,
            repo=repo,
            query=query,
            max_results=max_results,
        )

    @mcp.tool
    async def git_diff(
        ctx: Context,
        owner: str = Field(..., description="GitHub organization or username"),
        repo: str = Field(..., description="Repository name"),
        base: str = Field(..., description="Base branch/commit"),
        head: str = Field(..., description="Head branch/commit"),
    ) -> str:
        """Get a diff between two branches or commits."""

        async def body() -> str:
            await ctx.report_progress(1, 3)
            ingester = ingester_for(owner, repo, None)
            await ctx.report_progress(2, 3)
            text = await ingester.diff(base, head)
            await ctx.report_progress(3, 3)
            return text

        return await _run_tool(
            "git_diff",
            "Failed to get diff",
            body,
            owner=owner,
            repo=repo,
            base=base,
            head=head,
        )
