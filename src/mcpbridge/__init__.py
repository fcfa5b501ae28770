"""mcpbridge - connect a chat model to the tools of an MCP server."""

__version__ = "0.1.0"
