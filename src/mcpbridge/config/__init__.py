"""Configuration loading and validation."""

from mcpbridge.config.loader import load_config
from mcpbridge.config.schema import (
    BridgeConfig,
    BridgeSettings,
    LLMConfig,
    LoggingConfig,
    ServerParameters,
    ToolHint,
)

__all__ = [
    "BridgeConfig",
    "BridgeSettings",
    "LLMConfig",
    "LoggingConfig",
    "ServerParameters",
    "ToolHint",
    "load_config",
]
