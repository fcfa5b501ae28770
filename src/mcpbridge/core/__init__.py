"""Core errors and shared utilities."""

from mcpbridge.core.errors import (
    BridgeError,
    ConfigError,
    FHIRRequestError,
    ModelNotFoundError,
    ProviderAuthError,
    ProviderError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    ToolArgumentError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolProviderError,
    ToolRoundLimitError,
    ToolTimeoutError,
)

__all__ = [
    "BridgeError",
    "ConfigError",
    "FHIRRequestError",
    "ModelNotFoundError",
    "ProviderAuthError",
    "ProviderError",
    "ProviderOverloadedError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    "ToolArgumentError",
    "ToolError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ToolProviderError",
    "ToolRoundLimitError",
    "ToolTimeoutError",
]
