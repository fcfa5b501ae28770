"""Chat model clients."""

from mcpbridge.providers.base import (
    LLMResponse,
    ModelClient,
    PromptMessage,
    TokenUsage,
)

__all__ = [
    "LLMResponse",
    "ModelClient",
    "PromptMessage",
    "TokenUsage",
]
