"""gitscope - repository introspection for AI agents over MCP."""

__version__ = "0.2.0"
