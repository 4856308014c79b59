"""MCP server exposing repository tools."""

from gitscope.mcp.server import create_mcp_server, run_server

__all__ = ["create_mcp_server", "run_server"]
