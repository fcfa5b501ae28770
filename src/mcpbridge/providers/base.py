"""Model client interface and data classes.

The bridge talks to any object satisfying ``ModelClient``.  Unlike a
stateless provider adapter, a model client owns the conversation of the
current process: the user prompt, assistant turns and tool results.
Data classes are immutable where possible (frozen dataclasses with slots).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mcpbridge.tools.base import FunctionToolSpec, ToolCallRequest, ToolCallResult
    from mcpbridge.tools.registry import ToolRegistry


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token counts from a single model call."""

    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens consumed (input + output)."""
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True, slots=True)
class PromptMessage:
    """A single message in the conversation."""

    role: str  # "system", "user", "assistant", "tool"
    content: str
    tool_call_id: str | None = None  # set on "tool" messages
    tool_calls: tuple[ToolCallRequest, ...] = ()  # set on assistant tool turns


@dataclass(slots=True)
class LLMResponse:
    """Complete response from a model call."""

    content: str
    finish_reason: str = "stop"  # "stop", "length", "tool_calls"
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    usage: TokenUsage | None = None
    latency_ms: float = 0.0
    raw_response: object = field(default=None, repr=False)

    @property
    def is_tool_call(self) -> bool:
        """True when the model asked for at least one tool call."""
        return bool(self.tool_calls)


@runtime_checkable
class ModelClient(Protocol):
    """Protocol the bridge expects from a chat model client.

    ``system_prompt`` is read before every invocation, so changing it
    between turns takes effect on the next call.
    """

    system_prompt: str
    tools: list[FunctionToolSpec]

    def set_tool_registry(self, registry: ToolRegistry) -> None:
        """Give the client the registry backing ``tools``."""
        ...

    async def invoke_with_prompt(self, prompt: str) -> LLMResponse:
        """Add a user message and ask the model for a response."""
        ...

    async def invoke(self, tool_results: Sequence[ToolCallResult]) -> LLMResponse:
        """Add tool results and ask the model to continue."""
        ...

    def checkpoint(self) -> int:
        """Return a marker for the current conversation state."""
        ...

    def rollback(self, checkpoint: int) -> None:
        """Drop everything added to the conversation after *checkpoint*."""
        ...

    def reset(self) -> None:
        """Forget the whole conversation."""
        ...
