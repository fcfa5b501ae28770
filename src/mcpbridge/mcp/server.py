"""MCP server exposing the FHIR query tool over stdio.

Run with ``mcpbridge serve-fhir`` or ``python -m mcpbridge.mcp.server``.
Reads ``FHIR_API_BASE`` and ``FHIR_AUTH_TOKEN`` from the environment.
Stdout carries the protocol, so logs go to stderr.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from mcpbridge.tools.fhir_query import FHIRQueryTool

logger = logging.getLogger(__name__)

server = Server("fhir")


def _local_tools() -> dict[str, FHIRQueryTool]:
    """Instantiate the tools this server offers, keyed by name."""
    tool = FHIRQueryTool()
    return {tool.name: tool}


def _get_tools() -> list[Tool]:
    """Define the MCP tools."""
    return [
        Tool(
            name=t.name,
            description=t.description,
            inputSchema=t.parameters_schema,
        )
        for t in _local_tools().values()
    ]


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available MCP tools."""
    return _get_tools()


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict) -> list[TextContent]:  # type: ignore[type-arg]
    """Handle tool calls.

    Exceptions propagate to the SDK, which reports them to the client as
    an error result.
    """
    tools = _local_tools()
    if name not in tools:
        msg = f"Unknown tool: {name}"
        raise ValueError(msg)
    text = await tools[name].execute(**arguments)
    return [TextContent(type="text", text=text)]


async def run_server() -> None:
    """Start the MCP server on stdio."""
    async with stdio_server() as (read_stream, write_stream):
        logger.info("FHIR MCP server running on stdio")
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)
    asyncio.run(run_server())
