"""Bridge between a chat model and the tools of an MCP server.

One turn:

1. Guess the tool the user message is about and, if that tool carries
   instructions, use them as the system prompt.
2. Send the message to the model.
3. While the model asks for tools, execute every call (in order) and
   send the results back.
4. Return the model's final text.

Failures never escape :meth:`MCPLLMBridge.process_message`; they come
back as an ``"Error processing message: ..."`` string.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mcpbridge.core.errors import ConfigError, ToolRoundLimitError
from mcpbridge.tools.catalog import convert_tools, descriptors_from_specs
from mcpbridge.tools.executor import ToolExecutor
from mcpbridge.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from mcpbridge.config.schema import BridgeConfig
    from mcpbridge.providers.base import ModelClient
    from mcpbridge.tools.base import FunctionToolSpec, ToolDescriptor, ToolProvider

logger = logging.getLogger(__name__)


class MCPLLMBridge:
    """Connects one tool provider to one model client.

    The tool provider and model client default to an MCP stdio client for
    ``config.bridge.tool_server`` and an OpenAI-compatible chat client;
    both can be injected.
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        tool_provider: ToolProvider | None = None,
        llm_client: ModelClient | None = None,
    ) -> None:
        self._config = config
        self._closed = False

        if tool_provider is None:
            server_name = config.bridge.tool_server
            params = config.mcp_servers.get(server_name)
            if params is None:
                msg = f"MCP server configuration '{server_name}' is required"
                raise ConfigError(msg)
            from mcpbridge.mcp.client import MCPToolProvider

            tool_provider = MCPToolProvider(params, name=server_name)
        self._tool_provider = tool_provider

        if llm_client is None:
            from mcpbridge.providers.openai import OpenAIChatClient

            llm_client = OpenAIChatClient(config.llm, system_prompt=config.system_prompt)
        self.llm_client = llm_client

        self._tools: list[FunctionToolSpec] = []
        self._executor = self._build_executor([])

    @property
    def tools(self) -> list[FunctionToolSpec]:
        """Function specs currently offered to the model."""
        return list(self._tools)

    @property
    def registry(self) -> ToolRegistry:
        """The registry shared by the executor and prompt detection."""
        return self._executor.registry

    def _build_executor(self, descriptors: Iterable[ToolDescriptor]) -> ToolExecutor:
        registry = ToolRegistry.from_descriptors(descriptors, self._config.tool_hints)
        return ToolExecutor(
            self._tool_provider,
            registry,
            timeout=self._config.bridge.tool_timeout,
        )

    def _install(self, executor: ToolExecutor, tools: list[FunctionToolSpec]) -> None:
        # Registry, executor and tool list change together.
        self._executor = executor
        self._tools = tools
        self.llm_client.tools = list(tools)
        self.llm_client.set_tool_registry(executor.registry)

    async def initialize(self) -> bool:
        """Connect to the tool server and offer its tools to the model.

        Returns False (after logging) if connecting or listing fails.
        """
        try:
            logger.info("Connecting to MCP server...")
            await self._tool_provider.connect()

            descriptors = await self._tool_provider.list_tools()
            logger.info("Received %d tools from MCP server", len(descriptors))

            executor = self._build_executor(descriptors)
            self._install(executor, convert_tools(descriptors))
        except Exception as e:
            logger.error("Bridge initialization failed: %s", e)
            return False

        logger.info("Initialized with %d tools", len(self._tools))
        logger.debug("Available tools: %s", ", ".join(t.name for t in self._tools))
        return True

    async def set_tools(self, specs: Sequence[FunctionToolSpec | dict[str, Any]]) -> None:
        """Replace the tool set with externally supplied function specs.

        The registry is rebuilt from scratch; only configured hints are
        attached to the new tools.
        """
        descriptors = descriptors_from_specs(specs)
        executor = self._build_executor(descriptors)
        self._install(executor, convert_tools(descriptors))
        logger.info("Tool set replaced: %d tools", len(self._tools))

    def _select_instructions(self, message: str) -> None:
        registry = self.registry
        detected = registry.detect_tool_from_prompt(message)
        logger.info("Detected tool: %s", detected)
        if detected is None:
            return
        instructions = registry.get_tool_instructions(detected)
        if instructions:
            self.llm_client.system_prompt = instructions
            logger.debug("Using %s instructions", detected)

    async def process_message(self, message: str) -> str:
        """Run one turn and return the model's final text.

        Never raises; failures are returned as an error description and
        the conversation is rolled back to before the turn.
        """
        checkpoint = self.llm_client.checkpoint()
        try:
            return await self._run_turn(message)
        except Exception as e:
            logger.error("Error processing message: %s", e)
            self.llm_client.rollback(checkpoint)
            return f"Error processing message: {e}"

    async def _run_turn(self, message: str) -> str:
        self._select_instructions(message)

        logger.info("Sending message to LLM...")
        response = await self.llm_client.invoke_with_prompt(message)
        logger.info("LLM response received, is_tool_call: %s", response.is_tool_call)

        max_rounds = self._config.bridge.max_tool_rounds
        rounds = 0
        while response.is_tool_call:
            if rounds >= max_rounds:
                raise ToolRoundLimitError(max_rounds)
            rounds += 1
            logger.info("Processing %d tool calls", len(response.tool_calls))
            results = await self._executor.execute_all(response.tool_calls)
            logger.info("Tool calls completed, sending results back to LLM")
            response = await self.llm_client.invoke(results)

        return response.content

    async def close(self) -> None:
        """Release the tool provider. Calling it again does nothing."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._tool_provider.close()
        except Exception as e:
            logger.error("Error closing tool provider: %s", e)

    async def __aenter__(self) -> MCPLLMBridge:
        await self.initialize()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
