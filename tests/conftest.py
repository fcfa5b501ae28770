"""Shared test fixtures for mcpbridge."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pytest

from mcpbridge.config.schema import BridgeConfig
from mcpbridge.tools.base import ToolDescriptor
from tests.fixtures.responses import QUERY_FHIR_SCHEMA

if TYPE_CHECKING:
    from tests.fixtures.providers import FakeToolProvider as FakeToolProviderType


@pytest.fixture(autouse=True)
def _reset_logging() -> Any:
    """Undo setup_logging() so caplog keeps seeing mcpbridge records."""
    yield
    logger = logging.getLogger("mcpbridge")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_config() -> Any:
    """Factory fixture for BridgeConfig with test-friendly defaults."""

    def _make(**overrides: Any) -> BridgeConfig:
        data: dict[str, Any] = {
            "mcp_servers": {"fhir": {"command": "fake-server"}},
            "bridge": {"tool_timeout": 1.0, "max_tool_rounds": 5},
        }
        data.update(overrides)
        return BridgeConfig.model_validate(data)

    return _make


@pytest.fixture
def fhir_descriptor() -> ToolDescriptor:
    return ToolDescriptor(
        name="query-fhir",
        description="Query FHIR resources",
        input_schema=QUERY_FHIR_SCHEMA,
    )


@pytest.fixture
def fake_provider(fhir_descriptor: ToolDescriptor) -> FakeToolProviderType:
    """Tool provider offering query-fhir and echo."""
    from tests.fixtures.providers import FakeToolProvider
    from tests.fixtures.responses import MEDICATION_BUNDLE

    return FakeToolProvider(
        [
            fhir_descriptor,
            ToolDescriptor(
                name="echo",
                description="Echoes input",
                input_schema={"properties": {"text": {"type": "string"}}},
            ),
        ],
        handlers={
            "query-fhir": lambda args: MEDICATION_BUNDLE,
            "echo": lambda args: f"Echo: {args.get('text', '')}",
        },
    )
