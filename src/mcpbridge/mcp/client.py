"""MCP client -- a :class:`ToolProvider` backed by a stdio MCP server.

Launches the server process, keeps one ``ClientSession`` open between
:meth:`MCPToolProvider.connect` and :meth:`MCPToolProvider.close`, and
translates MCP tool listings and results into mcpbridge types.
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.types import TextContent

from mcpbridge.core.errors import ToolExecutionError, ToolProviderError
from mcpbridge.tools.base import ToolDescriptor

if TYPE_CHECKING:
    from mcp.types import CallToolResult

    from mcpbridge.config.schema import ServerParameters

logger = logging.getLogger(__name__)


def result_payload(result: CallToolResult) -> object:
    """Extract the payload of an MCP tool result.

    Text blocks are joined with newlines; without text, structured
    content (or the dumped content blocks) is returned as-is.

    Raises:
        ToolExecutionError: If the server flagged the result as an error.
    """
    texts = [c.text for c in result.content if isinstance(c, TextContent)]
    if result.isError:
        msg = "\n".join(texts) or "Tool reported an error"
        raise ToolExecutionError(msg)
    if texts:
        return "\n".join(texts)
    if result.structuredContent is not None:
        return result.structuredContent
    return [c.model_dump(mode="json") for c in result.content]


class MCPToolProvider:
    """Tool provider speaking MCP to one server over stdio."""

    def __init__(self, params: ServerParameters, *, name: str = "mcp") -> None:
        self._params = params
        self._name = name
        self._stack: contextlib.AsyncExitStack | None = None
        self._session: ClientSession | None = None

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> None:
        """Start the server process and initialize the session.

        Raises:
            ToolProviderError: If the process or the handshake fails.
        """
        if self._session is not None:
            return
        server_params = StdioServerParameters(
            command=self._params.command,
            args=list(self._params.args),
            env=dict(self._params.env) if self._params.env is not None else None,
        )
        stack = contextlib.AsyncExitStack()
        try:
            read, write = await stack.enter_async_context(stdio_client(server_params))
            session = await stack.enter_async_context(ClientSession(read, write))
            await session.initialize()
        except Exception as e:
            await stack.aclose()
            msg = f"Cannot connect to MCP server '{self._name}': {e}"
            raise ToolProviderError(msg) from e

        self._stack = stack
        self._session = session
        logger.info("Connected to MCP server '%s'", self._name)

    def _require_session(self) -> ClientSession:
        if self._session is None:
            msg = f"MCP server '{self._name}' is not connected"
            raise ToolProviderError(msg)
        return self._session

    async def list_tools(self) -> list[ToolDescriptor]:
        """Return the server's tools as descriptors."""
        session = self._require_session()
        try:
            result = await session.list_tools()
        except Exception as e:
            msg = f"Cannot list tools of MCP server '{self._name}': {e}"
            raise ToolProviderError(msg) from e
        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description,
                input_schema=dict(tool.inputSchema or {}),
            )
            for tool in result.tools
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> object:
        """Call a tool and return its payload (see :func:`result_payload`)."""
        session = self._require_session()
        result = await session.call_tool(name, arguments)
        return result_payload(result)

    async def close(self) -> None:
        """Close the session and stop the server process."""
        stack, self._stack, self._session = self._stack, None, None
        if stack is None:
            return
        await stack.aclose()
        logger.info("Disconnected from MCP server '%s'", self._name)

    async def __aenter__(self) -> MCPToolProvider:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
