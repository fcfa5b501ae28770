"""Tests for the core error hierarchy."""

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


class TestHierarchy:
    """All errors inherit from BridgeError."""

    def test_provider_subclasses_are_provider_error(self):
        subclasses = [
            ProviderAuthError("openai", "bad key"),
            ProviderRateLimitError("openai"),
            ProviderTimeoutError("ollama", "timed out"),
            ProviderOverloadedError("openai", "overloaded"),
            ModelNotFoundError("openai", "no such model"),
        ]
        for err in subclasses:
            assert isinstance(err, ProviderError)
            assert isinstance(err, BridgeError)

    def test_tool_subclasses_are_tool_error(self):
        subclasses = [
            ToolNotFoundError("x"),
            ToolArgumentError("bad json"),
            ToolExecutionError("boom"),
            ToolTimeoutError("x", 30.0),
            ToolRoundLimitError(10),
        ]
        for err in subclasses:
            assert isinstance(err, ToolError)
            assert isinstance(err, BridgeError)

    def test_other_errors_are_bridge_errors(self):
        assert isinstance(ToolProviderError("down"), BridgeError)
        assert isinstance(FHIRRequestError(500), BridgeError)
        assert isinstance(ConfigError("bad config"), BridgeError)

    def test_tool_timeout_is_not_builtin_timeout(self):
        """Executor code catches the builtin TimeoutError; ours must not match it."""
        assert not isinstance(ToolTimeoutError("x", 1.0), TimeoutError)


class TestMessages:
    def test_provider_error_format(self):
        err = ProviderError("openai", "timeout")
        assert err.provider_id == "openai"
        assert str(err) == "[openai] timeout"

    def test_rate_limit_with_retry_after(self):
        err = ProviderRateLimitError("openai", retry_after=2.5)
        assert err.retry_after == 2.5
        assert "retry after 2.5s" in str(err)

    def test_rate_limit_without_retry_after(self):
        err = ProviderRateLimitError("openai")
        assert err.retry_after is None
        assert str(err) == "[openai] Rate limited"

    def test_tool_not_found(self):
        err = ToolNotFoundError("query-fhir")
        assert err.name == "query-fhir"
        assert str(err) == "Tool not found: query-fhir"

    def test_tool_timeout(self):
        err = ToolTimeoutError("query-fhir", 30.0)
        assert err.timeout == 30.0
        assert str(err) == "Tool call 'query-fhir' timed out after 30 seconds"

    def test_tool_timeout_fractional(self):
        assert "after 0.5 seconds" in str(ToolTimeoutError("x", 0.5))

    def test_round_limit(self):
        err = ToolRoundLimitError(10)
        assert err.limit == 10
        assert "10 rounds" in str(err)

    def test_fhir_request_error(self):
        err = FHIRRequestError(401)
        assert err.status_code == 401
        assert str(err) == "FHIR request failed with status 401"
