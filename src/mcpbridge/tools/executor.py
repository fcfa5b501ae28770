"""Tool executor -- resolves model tool calls against the tool provider.

Every request yields exactly one :class:`ToolCallResult`.  Failures
(unknown tool, bad arguments, provider errors, timeouts) are captured in
the result's ``output`` as ``"Error: ..."`` so the model sees them on its
next turn; nothing is retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

from mcpbridge.core.errors import ToolArgumentError, ToolNotFoundError, ToolTimeoutError
from mcpbridge.tools.base import ToolCallResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mcpbridge.tools.base import RegisteredTool, ToolCallRequest, ToolProvider
    from mcpbridge.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 30.0

# Argument keys whose values never reach the logs.
SECRET_ARGUMENTS = frozenset({"authToken"})


def parse_arguments(tool: RegisteredTool, raw: str) -> dict[str, Any]:
    """Decode model-supplied arguments and check required parameters.

    Raises:
        ToolArgumentError: On invalid JSON, a non-object payload, or
            missing required parameters.
    """
    if not raw or not raw.strip():
        args: Any = {}
    else:
        try:
            args = json.loads(raw)
        except json.JSONDecodeError as e:
            msg = f"Invalid JSON arguments for '{tool.name}': {e}"
            raise ToolArgumentError(msg) from e

    if not isinstance(args, dict):
        msg = f"Arguments for '{tool.name}' must be a JSON object"
        raise ToolArgumentError(msg)

    missing = [name for name in tool.required if name not in args]
    if missing:
        msg = f"Missing required arguments for '{tool.name}': {', '.join(missing)}"
        raise ToolArgumentError(msg)
    return args


def _redact(args: dict[str, Any]) -> dict[str, Any]:
    return {k: "***" if k in SECRET_ARGUMENTS else v for k, v in args.items()}


def format_output(result: object) -> str:
    """Return text results verbatim and JSON-encode everything else."""
    if isinstance(result, str):
        return result
    return json.dumps(result, default=str)


class ToolExecutor:
    """Runs tool calls one at a time, each bounded by *timeout* seconds.

    The registry is the same instance the bridge uses for prompt
    detection; swapping tools means building a new executor.
    """

    def __init__(
        self,
        provider: ToolProvider,
        registry: ToolRegistry,
        *,
        timeout: float = DEFAULT_TOOL_TIMEOUT,
    ) -> None:
        self._provider = provider
        self.registry = registry
        self.timeout = timeout

    async def execute(self, request: ToolCallRequest) -> ToolCallResult:
        """Execute one tool call. Never raises."""
        try:
            output = await self._call(request)
        except Exception as exc:
            logger.error("Tool %s (%s) failed: %s", request.name, request.id, exc)
            return ToolCallResult(
                tool_call_id=request.id,
                output=f"Error: {exc}",
                is_error=True,
            )
        return ToolCallResult(tool_call_id=request.id, output=output)

    async def execute_all(
        self, requests: Sequence[ToolCallRequest]
    ) -> list[ToolCallResult]:
        """Execute calls sequentially, returning results in request order."""
        results: list[ToolCallResult] = []
        for request in requests:
            results.append(await self.execute(request))
        return results

    async def _call(self, request: ToolCallRequest) -> str:
        try:
            tool = self.registry.get(request.name)
        except KeyError:
            raise ToolNotFoundError(request.name) from None

        args = parse_arguments(tool, request.arguments)
        logger.info("Calling tool %s", request.name)
        logger.debug("Tool %s arguments: %s", request.name, json.dumps(_redact(args)))

        # wait_for cancels the pending call when the timeout wins.
        try:
            result = await asyncio.wait_for(
                self._provider.call_tool(request.name, args),
                timeout=self.timeout,
            )
        except TimeoutError:
            raise ToolTimeoutError(request.name, self.timeout) from None

        logger.info("Received result from tool %s", request.name)
        logger.debug("Tool %s result: %r", request.name, result)
        return format_output(result)
