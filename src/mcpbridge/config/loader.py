"""Configuration loading: JSON/TOML files, env var overrides, merge logic.

Discovery order (later overrides earlier):
    1. Built-in defaults (Pydantic model defaults)
    2. Project-local config: ``./bridge_config.json`` or ``./bridge_config.toml``
    3. ``$MCPBRIDGE_CONFIG`` environment variable (explicit path)
    4. Explicit path passed to ``load_config``
    5. Programmatic overrides (passed to ``load_config``)

A missing project-local file is not an error: defaults are used and a
warning is logged.  Explicit paths must exist.

Environment variable overrides:
    ``llm.api_key`` is resolved from the env var named by
    ``llm.api_key_env`` when not set explicitly.  ``FHIR_API_BASE`` and
    ``FHIR_AUTH_TOKEN`` are passed through to every MCP server whose
    ``env`` does not already define them.
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from mcpbridge.core.errors import ConfigError

from .schema import BridgeConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MCPBRIDGE_CONFIG"
PASSTHROUGH_ENV = ("FHIR_API_BASE", "FHIR_AUTH_TOKEN")

_PROJECT_CONFIG_NAMES = ("bridge_config.json", "bridge_config.toml")

# camelCase keys accepted in config files.
_TOP_LEVEL_ALIASES = {
    "mcpServers": "mcp_servers",
    "systemPrompt": "system_prompt",
    "toolHints": "tool_hints",
}
_SECTION_ALIASES = {
    "llm": {
        "baseUrl": "base_url",
        "apiKey": "api_key",
        "apiKeyEnv": "api_key_env",
        "maxTokens": "max_tokens",
    },
    "bridge": {
        "toolServer": "tool_server",
        "toolTimeout": "tool_timeout",
        "maxToolRounds": "max_tool_rounds",
    },
}


def _project_config_path() -> Path | None:
    """Return the first project-local config file, if any."""
    for name in _PROJECT_CONFIG_NAMES:
        candidate = Path.cwd() / name
        if candidate.is_file():
            return candidate
    return None


def _discover_config_files() -> list[Path]:
    """Return config files in merge order (first = lowest priority)."""
    paths: list[Path] = []

    project = _project_config_path()
    if project is not None:
        paths.append(project)
    else:
        logger.warning(
            "No %s found in %s, using defaults",
            " or ".join(_PROJECT_CONFIG_NAMES),
            Path.cwd(),
        )

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        if not p.is_file():
            msg = f"{CONFIG_ENV_VAR} points to non-existent file: {env_path}"
            raise ConfigError(msg)
        paths.append(p)

    return paths


def _read_config_file(path: Path) -> dict[str, Any]:
    """Read and parse a JSON or TOML config file, chosen by suffix."""
    try:
        if path.suffix == ".toml":
            with path.open("rb") as f:
                data: Any = tomllib.load(f)
        else:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        msg = f"Invalid config in {path}: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Cannot read config file {path}: {e}"
        raise ConfigError(msg) from e

    if not isinstance(data, dict):
        msg = f"Config file {path} must contain an object at the top level"
        raise ConfigError(msg)
    logger.info("Loaded bridge configuration from %s", path)
    return _normalize_keys(data)


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Rename known camelCase keys so files in either style merge cleanly."""
    normalized: dict[str, Any] = {}
    for key, value in data.items():
        name = _TOP_LEVEL_ALIASES.get(key, key)
        aliases = _SECTION_ALIASES.get(name)
        if aliases and isinstance(value, dict):
            value = {aliases.get(k, k): v for k, v in value.items()}
        normalized[name] = value
    return normalized


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base. Override wins on conflicts."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _resolve_env(config: BridgeConfig) -> None:
    """Resolve API key and server env from environment variables (in-place)."""
    if config.llm.api_key is None and config.llm.api_key_env:
        config.llm.api_key = os.environ.get(config.llm.api_key_env)

    for server in config.mcp_servers.values():
        for name in PASSTHROUGH_ENV:
            value = os.environ.get(name)
            if value is None:
                continue
            if server.env is None:
                server.env = {}
            server.env.setdefault(name, value)


def load_config(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> BridgeConfig:
    """Load and validate configuration.

    Args:
        path: Explicit config file path (highest file priority).
        overrides: Dict of overrides merged last (highest overall priority).

    Returns:
        Validated BridgeConfig instance.

    Raises:
        ConfigError: On invalid JSON/TOML, missing explicit files, or
            validation failure.
    """
    merged: dict[str, Any] = BridgeConfig().model_dump()

    files = _discover_config_files()

    # Explicit path overrides MCPBRIDGE_CONFIG
    if path is not None:
        p = Path(path)
        if not p.is_file():
            msg = f"Config file not found: {path}"
            raise ConfigError(msg)
        files.append(p)

    for config_file in files:
        data = _read_config_file(config_file)
        merged = _deep_merge(merged, data)

    if overrides:
        merged = _deep_merge(merged, _normalize_keys(overrides))

    try:
        config = BridgeConfig.model_validate(merged)
    except Exception as e:
        msg = f"Configuration validation failed: {e}"
        raise ConfigError(msg) from e

    _resolve_env(config)

    return config
