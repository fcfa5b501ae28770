"""Tool catalog adapter -- server tool descriptors to model function specs."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mcpbridge.tools.base import FunctionToolSpec, ToolDescriptor

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)


def convert_tools(descriptors: Sequence[ToolDescriptor]) -> list[FunctionToolSpec]:
    """Convert tool descriptors into function-call specs, preserving order.

    Missing descriptions become ``"Use the <name> tool"``; a missing or
    partial input schema yields empty ``properties`` / ``required``.
    """
    specs: list[FunctionToolSpec] = []
    for descriptor in descriptors:
        schema = descriptor.input_schema or {}
        spec = FunctionToolSpec(
            name=descriptor.name,
            description=descriptor.description or f"Use the {descriptor.name} tool",
            parameters={
                "type": "object",
                "properties": dict(schema.get("properties") or {}),
                "required": list(schema.get("required") or []),
            },
        )
        logger.debug("Converted tool %s: %s", descriptor.name, spec.to_dict())
        specs.append(spec)
    return specs


def descriptors_from_specs(
    specs: Iterable[FunctionToolSpec | dict[str, Any]],
) -> list[ToolDescriptor]:
    """Turn function specs (or their dict form) back into descriptors.

    Dict entries without a usable ``function`` are skipped.
    """
    descriptors: list[ToolDescriptor] = []
    for spec in specs:
        if isinstance(spec, dict):
            try:
                spec = FunctionToolSpec.from_dict(spec)
            except ValueError:
                logger.warning("Skipping tool spec without a function: %r", spec)
                continue
        descriptors.append(
            ToolDescriptor(
                name=spec.name,
                description=spec.description or None,
                input_schema=spec.parameters,
            )
        )
    return descriptors
