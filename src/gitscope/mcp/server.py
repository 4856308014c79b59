"""FastMCP server creation and wiring."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal

import structlog

if TYPE_CHECKING:
    from fastmcp import FastMCP

    from gitscope.config.models import GitScopeConfig
    from gitscope.ingest.context import IngestContext

log = structlog.get_logger(__name__)

Transport = Literal["stdio", "http"]

INSTRUCTIONS = (
    "Repository explorer for GitHub projects: summaries, directory trees, "
    "file contents, text search and branch diffs."
)


async def heartbeat(interval_sec: float) -> None:
    """Emit a low-priority liveness event until cancelled."""
    while True:
        await asyncio.sleep(interval_sec)
        log.debug("heartbeat", at=datetime.now(UTC).isoformat())


def create_mcp_server(context: IngestContext) -> FastMCP:
    """Create FastMCP server with all tools wired to context.

    The lifespan runs the heartbeat and releases the context's HTTP client
    on shutdown.
    """
    from fastmcp import FastMCP

    from gitscope.mcp.tools import register_tools

    interval = context.config.server.heartbeat_interval_sec

    @asynccontextmanager
    async def lifespan(_server: FastMCP) -> AsyncIterator[None]:
        task = asyncio.create_task(heartbeat(interval), name="gitscope-heartbeat")
        log.info("mcp_server_started", heartbeat_interval_sec=interval)
        try:
            yield
        finally:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            await context.aclose()
            log.info("mcp_server_stopped")

    mcp = FastMCP("gitscope", instructions=INSTRUCTIONS, lifespan=lifespan)
    register_tools(mcp, context)
    log.info("mcp_server_created", workspace=str(context.workspace.root))
    return mcp


def run_server(
    config: GitScopeConfig,
    *,
    transport: Transport = "stdio",
    host: str | None = None,
    port: int | None = None,
) -> None:
    """Create and run the MCP server. Blocks until the transport closes."""
    from gitscope.ingest.context import IngestContext

    context = IngestContext.create(config)
    mcp = create_mcp_server(context)

    log.info("mcp_server_running", transport=transport)
    if transport == "http":
        mcp.run(
            transport="http",
            host=host or config.server.host,
            port=port or config.server.port,
        )
    else:
        mcp.run()
