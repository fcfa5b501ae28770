"""OpenAI-compatible chat client (OpenAI, Ollama, vLLM, ...).

Uses the OpenAI SDK with a configurable ``base_url``.  The client keeps
the conversation of the running process in memory and exposes the tool
list and system prompt the bridge manages.
"""

from __future__ import annotations

import contextlib
import logging
import time
from typing import TYPE_CHECKING, Any

import openai

from mcpbridge.core.errors import (
    ModelNotFoundError,
    ProviderAuthError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)
from mcpbridge.providers.base import LLMResponse, PromptMessage, TokenUsage
from mcpbridge.tools.base import ToolCallRequest

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mcpbridge.config.schema import LLMConfig
    from mcpbridge.tools.base import FunctionToolSpec, ToolCallResult
    from mcpbridge.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

PROVIDER_ID = "openai"

# Local servers such as Ollama ignore the key, but the SDK requires one.
_PLACEHOLDER_API_KEY = "not-needed"


def _map_error(e: openai.APIError) -> Exception:
    """Map OpenAI SDK errors to the mcpbridge error hierarchy."""
    if isinstance(e, openai.AuthenticationError):
        return ProviderAuthError(PROVIDER_ID, str(e))
    if isinstance(e, openai.RateLimitError):
        retry_after = None
        if hasattr(e, "response") and e.response is not None:
            raw = e.response.headers.get("retry-after")
            if raw is not None:
                with contextlib.suppress(ValueError):
                    retry_after = float(raw)
        return ProviderRateLimitError(PROVIDER_ID, retry_after=retry_after)
    if isinstance(e, openai.APITimeoutError):
        return ProviderTimeoutError(PROVIDER_ID, str(e))
    if isinstance(e, openai.InternalServerError):
        return ProviderOverloadedError(PROVIDER_ID, str(e))
    if isinstance(e, openai.NotFoundError):
        return ModelNotFoundError(PROVIDER_ID, str(e))
    # Fallback for unknown API errors
    return ProviderOverloadedError(PROVIDER_ID, str(e))


def _build_messages(
    system_prompt: str,
    messages: Sequence[PromptMessage],
) -> list[dict[str, Any]]:
    """Convert the conversation to OpenAI chat message format."""
    api_messages: list[dict[str, Any]] = []
    if system_prompt:
        api_messages.append({"role": "system", "content": system_prompt})
    for msg in messages:
        entry: dict[str, Any] = {"role": msg.role, "content": msg.content}
        if msg.tool_call_id is not None:
            entry["tool_call_id"] = msg.tool_call_id
        if msg.tool_calls:
            entry["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": tc.arguments},
                }
                for tc in msg.tool_calls
            ]
        api_messages.append(entry)
    return api_messages


def _call_id(raw_id: str | None, index: int) -> str:
    # Some local servers omit tool call ids.
    return raw_id or f"call_{index}"


class OpenAIChatClient:
    """Chat client for any OpenAI-compatible endpoint.

    Implements the :class:`ModelClient` protocol.
    """

    def __init__(
        self,
        config: LLMConfig,
        *,
        system_prompt: str = "",
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        self._config = config
        self.system_prompt = system_prompt
        self.tools: list[FunctionToolSpec] = []
        self._registry: ToolRegistry | None = None
        self._history: list[PromptMessage] = []
        if client is not None:
            self._client = client
        else:
            self._client = openai.AsyncOpenAI(
                base_url=config.base_url,
                api_key=config.api_key or _PLACEHOLDER_API_KEY,
            )

    @property
    def history(self) -> tuple[PromptMessage, ...]:
        """Messages exchanged so far (system prompt excluded)."""
        return tuple(self._history)

    @property
    def tool_registry(self) -> ToolRegistry | None:
        return self._registry

    def set_tool_registry(self, registry: ToolRegistry) -> None:
        self._registry = registry

    async def invoke_with_prompt(self, prompt: str) -> LLMResponse:
        self._history.append(PromptMessage(role="user", content=prompt))
        return await self._complete()

    async def invoke(self, tool_results: Sequence[ToolCallResult]) -> LLMResponse:
        for result in tool_results:
            self._history.append(
                PromptMessage(
                    role="tool",
                    content=result.output,
                    tool_call_id=result.tool_call_id,
                )
            )
        return await self._complete()

    def checkpoint(self) -> int:
        return len(self._history)

    def rollback(self, checkpoint: int) -> None:
        del self._history[checkpoint:]

    def reset(self) -> None:
        self._history.clear()

    async def _complete(self) -> LLMResponse:
        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "messages": _build_messages(self.system_prompt, self._history),
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.temperature,
        }
        if self.tools:
            kwargs["tools"] = [t.to_dict() for t in self.tools]

        logger.debug(
            "Sending %d messages to %s", len(kwargs["messages"]), self._config.model
        )
        start = time.monotonic()
        try:
            if self._config.stream:
                response = await self._stream(kwargs)
            else:
                response = await self._send(kwargs)
        except openai.APIError as e:
            raise _map_error(e) from e
        response.latency_ms = (time.monotonic() - start) * 1000

        self._history.append(
            PromptMessage(
                role="assistant",
                content=response.content,
                tool_calls=tuple(response.tool_calls),
            )
        )
        return response

    async def _send(self, kwargs: dict[str, Any]) -> LLMResponse:
        response = await self._client.chat.completions.create(**kwargs)

        content = ""
        finish_reason = "stop"
        tool_calls: list[ToolCallRequest] = []
        if response.choices:
            message = response.choices[0].message
            content = message.content or ""
            finish_reason = response.choices[0].finish_reason or "stop"
            for i, tc in enumerate(message.tool_calls or []):
                tool_calls.append(
                    ToolCallRequest(
                        id=_call_id(tc.id, i),
                        name=tc.function.name,
                        arguments=tc.function.arguments or "",
                    )
                )

        usage = None
        if response.usage:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
            )

        return LLMResponse(
            content=content,
            finish_reason=finish_reason,
            tool_calls=tool_calls,
            usage=usage,
            raw_response=response,
        )

    async def _stream(self, kwargs: dict[str, Any]) -> LLMResponse:
        stream = await self._client.chat.completions.create(
            stream=True,
            stream_options={"include_usage": True},
            **kwargs,
        )

        parts: list[str] = []
        calls: dict[int, dict[str, str]] = {}
        finish_reason = "stop"
        usage = None
        async for chunk in stream:
            # Usage arrives in the final chunk (choices empty)
            if chunk.usage is not None:
                usage = TokenUsage(
                    input_tokens=chunk.usage.prompt_tokens,
                    output_tokens=chunk.usage.completion_tokens,
                )
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            if choice.delta.content:
                parts.append(choice.delta.content)
            for tc in choice.delta.tool_calls or []:
                slot = calls.setdefault(tc.index, {"id": "", "name": "", "arguments": ""})
                if tc.id:
                    slot["id"] = tc.id
                if tc.function is not None:
                    slot["name"] += tc.function.name or ""
                    slot["arguments"] += tc.function.arguments or ""
            if choice.finish_reason:
                finish_reason = choice.finish_reason

        return LLMResponse(
            content="".join(parts),
            finish_reason=finish_reason,
            tool_calls=[
                ToolCallRequest(
                    id=_call_id(slot["id"], index),
                    name=slot["name"],
                    arguments=slot["arguments"],
                )
                for index, slot in sorted(calls.items())
            ],
            usage=usage,
        )
