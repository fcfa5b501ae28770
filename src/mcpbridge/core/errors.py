"""Exception hierarchy for mcpbridge.

Every module imports from here. The hierarchy is:

    BridgeError
    ├── ProviderError(provider_id)
    │   ├── ProviderAuthError
    │   ├── ProviderRateLimitError(retry_after)
    │   ├── ProviderTimeoutError
    │   ├── ProviderOverloadedError
    │   └── ModelNotFoundError
    ├── ToolError
    │   ├── ToolNotFoundError(name)
    │   ├── ToolArgumentError
    │   ├── ToolExecutionError
    │   ├── ToolTimeoutError(name, timeout)
    │   └── ToolRoundLimitError(limit)
    ├── ToolProviderError
    ├── FHIRRequestError(status_code)
    └── ConfigError
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base exception for all mcpbridge errors."""


# ─── Provider Errors ──────────────────────────────────────────


class ProviderError(BridgeError):
    """Base for model provider errors."""

    def __init__(self, provider_id: str, message: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"[{provider_id}] {message}")


class ProviderAuthError(ProviderError):
    """Invalid or missing API key."""


class ProviderRateLimitError(ProviderError):
    """Rate limit exceeded. Includes retry_after if available."""

    def __init__(self, provider_id: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        msg = "Rate limited"
        if retry_after is not None:
            msg += f" (retry after {retry_after}s)"
        super().__init__(provider_id, msg)


class ProviderTimeoutError(ProviderError):
    """Model call timed out."""


class ProviderOverloadedError(ProviderError):
    """Provider is overloaded (529, 503)."""


class ModelNotFoundError(ProviderError):
    """Requested model not available from this provider."""


# ─── Tool Errors ──────────────────────────────────────────────


class ToolError(BridgeError):
    """Base for errors raised while resolving a tool call."""


class ToolNotFoundError(ToolError):
    """The model asked for a tool that is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool not found: {name}")


class ToolArgumentError(ToolError):
    """Tool call arguments are not valid JSON or do not fit the schema."""


class ToolExecutionError(ToolError):
    """The tool ran but reported a failure."""


class ToolTimeoutError(ToolError):
    """A tool call did not settle within the allowed time."""

    def __init__(self, name: str, timeout: float) -> None:
        self.name = name
        self.timeout = timeout
        super().__init__(f"Tool call '{name}' timed out after {timeout:g} seconds")


class ToolRoundLimitError(ToolError):
    """The model kept requesting tools past the configured round limit."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Model still requesting tools after {limit} rounds")


# ─── Tool Provider Errors ─────────────────────────────────────


class ToolProviderError(BridgeError):
    """Connecting to, or talking with, the tool server failed."""


class FHIRRequestError(BridgeError):
    """FHIR endpoint answered with a non-success status."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"FHIR request failed with status {status_code}")


# ─── Configuration Errors ─────────────────────────────────────


class ConfigError(BridgeError):
    """Invalid configuration."""
