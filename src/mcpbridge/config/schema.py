"""Pydantic models for mcpbridge configuration.

Config files may use camelCase keys (``mcpServers``, ``systemPrompt``,
``baseUrl``) as in ``bridge_config.json``; snake_case names are
accepted everywhere as well.
"""

from __future__ import annotations

import sys

from pydantic import BaseModel, ConfigDict, Field

from .prompts import DEFAULT_SYSTEM_PROMPT, FHIR_KEYWORDS, FHIR_SYSTEM_PROMPT


class ServerParameters(BaseModel):
    """How to launch one MCP server over stdio."""

    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] | None = None


class LLMConfig(BaseModel):
    """Chat model endpoint (any OpenAI-compatible API, e.g. Ollama)."""

    model_config = ConfigDict(populate_by_name=True)

    model: str = "llama3.2"
    base_url: str = Field(default="http://localhost:11434/v1", alias="baseUrl")
    stream: bool = False
    api_key: str | None = Field(default=None, alias="apiKey")
    api_key_env: str | None = Field(default="OPENAI_API_KEY", alias="apiKeyEnv")
    temperature: float = 0.2
    max_tokens: int = Field(default=2048, alias="maxTokens")


class BridgeSettings(BaseModel):
    """Tool loop settings."""

    model_config = ConfigDict(populate_by_name=True)

    tool_server: str = Field(default="fhir", alias="toolServer")
    tool_timeout: float = Field(default=30.0, gt=0, alias="toolTimeout")
    max_tool_rounds: int = Field(default=10, ge=1, alias="maxToolRounds")


class ToolHint(BaseModel):
    """Prompt-detection hints attached to a tool by name."""

    instructions: str | None = None
    keywords: list[str] = Field(default_factory=list)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""


def _default_servers() -> dict[str, ServerParameters]:
    return {
        "fhir": ServerParameters(
            command=sys.executable,
            args=["-m", "mcpbridge.mcp.server"],
        )
    }


def _default_hints() -> dict[str, ToolHint]:
    return {
        "query-fhir": ToolHint(
            instructions=FHIR_SYSTEM_PROMPT,
            keywords=list(FHIR_KEYWORDS),
        )
    }


class BridgeConfig(BaseModel):
    """Top-level configuration for mcpbridge."""

    model_config = ConfigDict(populate_by_name=True)

    mcp_servers: dict[str, ServerParameters] = Field(
        default_factory=_default_servers, alias="mcpServers"
    )
    llm: LLMConfig = Field(default_factory=LLMConfig)
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, alias="systemPrompt")
    bridge: BridgeSettings = Field(default_factory=BridgeSettings)
    tool_hints: dict[str, ToolHint] = Field(
        default_factory=_default_hints, alias="toolHints"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
