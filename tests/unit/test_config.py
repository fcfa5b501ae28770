"""Tests for configuration loading and validation."""

from __future__ import annotations

import json
import logging
import sys

import pytest
from pydantic import ValidationError

from mcpbridge.config.loader import _deep_merge, _normalize_keys, load_config
from mcpbridge.config.prompts import FHIR_SYSTEM_PROMPT
from mcpbridge.config.schema import (
    BridgeConfig,
    BridgeSettings,
    LLMConfig,
    LoggingConfig,
    ServerParameters,
)
from mcpbridge.core.errors import ConfigError


@pytest.fixture
def clean_env(tmp_path, monkeypatch):
    """Run in an empty directory with no config-related env vars."""
    monkeypatch.chdir(tmp_path)
    for name in ("MCPBRIDGE_CONFIG", "FHIR_API_BASE", "FHIR_AUTH_TOKEN", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


# ─── Schema Defaults ──────────────────────────────────────────


class TestSchemaDefaults:
    def test_bridge_config_all_defaults(self):
        cfg = BridgeConfig()
        assert list(cfg.mcp_servers) == ["fhir"]
        assert cfg.mcp_servers["fhir"].command == sys.executable
        assert cfg.mcp_servers["fhir"].args == ["-m", "mcpbridge.mcp.server"]
        assert cfg.llm.model == "llama3.2"
        assert cfg.llm.stream is False
        assert cfg.bridge.tool_server == "fhir"
        assert cfg.logging.level == "INFO"

    def test_bridge_settings_defaults(self):
        cfg = BridgeSettings()
        assert cfg.tool_timeout == 30.0
        assert cfg.max_tool_rounds == 10

    def test_llm_config_defaults(self):
        cfg = LLMConfig()
        assert cfg.base_url == "http://localhost:11434/v1"
        assert cfg.api_key is None
        assert cfg.api_key_env == "OPENAI_API_KEY"

    def test_default_fhir_hint(self):
        hint = BridgeConfig().tool_hints["query-fhir"]
        assert hint.instructions == FHIR_SYSTEM_PROMPT
        assert "medication" in hint.keywords

    def test_default_config_has_no_credentials(self):
        cfg = BridgeConfig()
        assert cfg.mcp_servers["fhir"].env is None
        assert cfg.llm.api_key is None

    def test_logging_config_defaults(self):
        cfg = LoggingConfig()
        assert cfg.level == "INFO"
        assert cfg.file == ""


# ─── Schema Validation ────────────────────────────────────────


class TestSchemaValidation:
    def test_camel_case_aliases(self):
        cfg = BridgeConfig.model_validate(
            {
                "mcpServers": {"other": {"command": "node", "args": ["x.js"]}},
                "llm": {"model": "gpt-4o", "baseUrl": "https://api.example.com/v1"},
                "systemPrompt": "Be brief.",
            }
        )
        assert cfg.mcp_servers["other"] == ServerParameters(command="node", args=["x.js"])
        assert cfg.llm.base_url == "https://api.example.com/v1"
        assert cfg.system_prompt == "Be brief."

    def test_snake_case_names(self):
        cfg = BridgeConfig.model_validate({"system_prompt": "hi", "llm": {"base_url": "u"}})
        assert cfg.system_prompt == "hi"
        assert cfg.llm.base_url == "u"

    def test_invalid_timeout_raises(self):
        with pytest.raises(ValidationError):
            BridgeConfig.model_validate({"bridge": {"tool_timeout": 0}})

    def test_invalid_round_limit_raises(self):
        with pytest.raises(ValidationError):
            BridgeConfig.model_validate({"bridge": {"max_tool_rounds": 0}})

    def test_server_requires_command(self):
        with pytest.raises(ValidationError):
            BridgeConfig.model_validate({"mcp_servers": {"fhir": {"args": []}}})

    def test_extra_fields_ignored(self):
        cfg = BridgeConfig.model_validate({"unknown_section": {"foo": "bar"}})
        assert cfg.bridge.max_tool_rounds == 10


# ─── Merge helpers ────────────────────────────────────────────


class TestDeepMerge:
    def test_nested_merge(self):
        base = {"llm": {"model": "a", "stream": False}}
        result = _deep_merge(base, {"llm": {"model": "b"}})
        assert result == {"llm": {"model": "b", "stream": False}}

    def test_base_unchanged(self):
        base = {"a": 1}
        _deep_merge(base, {"a": 2})
        assert base["a"] == 1


class TestNormalizeKeys:
    def test_top_level_and_section_aliases(self):
        data = {
            "mcpServers": {"fhir": {"command": "node"}},
            "llm": {"baseUrl": "u", "maxTokens": 10},
            "bridge": {"toolTimeout": 5},
        }
        assert _normalize_keys(data) == {
            "mcp_servers": {"fhir": {"command": "node"}},
            "llm": {"base_url": "u", "max_tokens": 10},
            "bridge": {"tool_timeout": 5},
        }

    def test_server_names_and_env_untouched(self):
        data = {"mcpServers": {"myServer": {"command": "x", "env": {"baseUrl": "1"}}}}
        result = _normalize_keys(data)
        assert result["mcp_servers"]["myServer"]["env"] == {"baseUrl": "1"}


# ─── Loading ──────────────────────────────────────────────────


class TestLoadConfig:
    def test_defaults_when_no_files(self, clean_env, caplog):
        with caplog.at_level(logging.WARNING, logger="mcpbridge.config.loader"):
            cfg = load_config()
        assert cfg.bridge.tool_server == "fhir"
        assert "using defaults" in caplog.text

    def test_project_json_overlays_defaults(self, clean_env):
        (clean_env / "bridge_config.json").write_text(
            json.dumps(
                {
                    "mcpServers": {"extra": {"command": "node", "args": ["a.js"]}},
                    "llm": {"model": "qwen2.5", "stream": True},
                }
            )
        )
        cfg = load_config()
        # Servers merge by name.
        assert set(cfg.mcp_servers) == {"fhir", "extra"}
        assert cfg.llm.model == "qwen2.5"
        assert cfg.llm.stream is True
        assert cfg.llm.base_url == "http://localhost:11434/v1"

    def test_project_toml(self, clean_env):
        (clean_env / "bridge_config.toml").write_text(
            "[bridge]\nmax_tool_rounds = 3\n\n[llm]\nmodel = 'mistral'\n"
        )
        cfg = load_config()
        assert cfg.bridge.max_tool_rounds == 3
        assert cfg.llm.model == "mistral"

    def test_explicit_path(self, clean_env):
        path = clean_env / "custom.json"
        path.write_text(json.dumps({"systemPrompt": "custom"}))
        cfg = load_config(path=path)
        assert cfg.system_prompt == "custom"

    def test_explicit_path_not_found_raises(self, clean_env):
        with pytest.raises(ConfigError, match="not found"):
            load_config(path=clean_env / "nope.json")

    def test_invalid_json_raises(self, clean_env):
        bad = clean_env / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path=bad)

    def test_invalid_toml_raises(self, clean_env):
        bad = clean_env / "bad.toml"
        bad.write_text("[invalid\n")
        with pytest.raises(ConfigError, match="Invalid config"):
            load_config(path=bad)

    def test_non_object_json_raises(self, clean_env):
        bad = clean_env / "list.json"
        bad.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="object"):
            load_config(path=bad)

    def test_validation_failure_raises(self, clean_env):
        bad = clean_env / "bad.json"
        bad.write_text(json.dumps({"bridge": {"max_tool_rounds": "many"}}))
        with pytest.raises(ConfigError, match="validation failed"):
            load_config(path=bad)

    def test_overrides_beat_file(self, clean_env):
        path = clean_env / "c.json"
        path.write_text(json.dumps({"bridge": {"toolTimeout": 5}}))
        cfg = load_config(path=path, overrides={"bridge": {"toolTimeout": 9}})
        assert cfg.bridge.tool_timeout == 9


# ─── Environment Variables ────────────────────────────────────


class TestEnvResolution:
    def test_config_env_path(self, clean_env, monkeypatch):
        path = clean_env / "env.json"
        path.write_text(json.dumps({"llm": {"model": "from-env"}}))
        monkeypatch.setenv("MCPBRIDGE_CONFIG", str(path))
        assert load_config().llm.model == "from-env"

    def test_config_env_missing_file_raises(self, clean_env, monkeypatch):
        monkeypatch.setenv("MCPBRIDGE_CONFIG", str(clean_env / "nope.json"))
        with pytest.raises(ConfigError, match="non-existent"):
            load_config()

    def test_api_key_resolved_from_env(self, clean_env, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert load_config().llm.api_key == "sk-test"

    def test_api_key_not_overwritten_if_set(self, clean_env, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        cfg = load_config(overrides={"llm": {"apiKey": "sk-explicit"}})
        assert cfg.llm.api_key == "sk-explicit"

    def test_fhir_env_passed_to_servers(self, clean_env, monkeypatch):
        monkeypatch.setenv("FHIR_API_BASE", "https://fhir.test")
        monkeypatch.setenv("FHIR_AUTH_TOKEN", "tok")
        cfg = load_config()
        assert cfg.mcp_servers["fhir"].env == {
            "FHIR_API_BASE": "https://fhir.test",
            "FHIR_AUTH_TOKEN": "tok",
        }

    def test_configured_server_env_wins(self, clean_env, monkeypatch):
        monkeypatch.setenv("FHIR_API_BASE", "https://from-env")
        cfg = load_config(
            overrides={
                "mcpServers": {
                    "fhir": {"env": {"FHIR_API_BASE": "https://configured"}}
                }
            }
        )
        assert cfg.mcp_servers["fhir"].env == {"FHIR_API_BASE": "https://configured"}

    def test_no_env_leaves_server_env_unset(self, clean_env):
        assert load_config().mcp_servers["fhir"].env is None
