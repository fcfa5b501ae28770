"""Tool registry -- indexes server tools by name.

Besides lookup, the registry offers a best-effort guess at which tool a
free-text prompt is about, so the bridge can pick tool-specific system
instructions before the model is called.  The guess never decides
whether a tool runs; the model's tool calls do.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from mcpbridge.tools.base import RegisteredTool

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from mcpbridge.config.schema import ToolHint
    from mcpbridge.tools.base import ToolDescriptor

_MIN_TOKEN_LEN = 4
_TOKEN_SPLIT = re.compile(r"[-_\s.]+")


class ToolRegistry:
    """Registry of the tools currently offered to the model.

    Registration order is kept and decides ties during prompt detection.
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    @classmethod
    def from_descriptors(
        cls,
        descriptors: Iterable[ToolDescriptor],
        hints: Mapping[str, ToolHint] | None = None,
    ) -> ToolRegistry:
        """Build a fresh registry, attaching hints by tool name."""
        registry = cls()
        hints = hints or {}
        for descriptor in descriptors:
            hint = hints.get(descriptor.name)
            if hint is None:
                registry.register(descriptor)
            else:
                registry.register(
                    descriptor,
                    instructions=hint.instructions,
                    keywords=hint.keywords,
                )
        return registry

    def register(
        self,
        descriptor: ToolDescriptor,
        *,
        instructions: str | None = None,
        keywords: Iterable[str] = (),
    ) -> None:
        """Register a tool, replacing any tool with the same name."""
        self._tools[descriptor.name] = RegisteredTool(
            name=descriptor.name,
            description=descriptor.description,
            input_schema=dict(descriptor.input_schema or {}),
            instructions=instructions,
            keywords=tuple(k.lower() for k in keywords if k),
        )

    def get(self, name: str) -> RegisteredTool:
        """Get a tool by name.

        Raises:
            KeyError: If the tool is not found.
        """
        if name not in self._tools:
            msg = f"Tool not found: {name}"
            raise KeyError(msg)
        return self._tools[name]

    def get_tool_instructions(self, name: str) -> str | None:
        """Return the instructions attached to *name*, if any."""
        tool = self._tools.get(name)
        return tool.instructions if tool is not None else None

    def detect_tool_from_prompt(self, text: str) -> str | None:
        """Guess which registered tool *text* refers to.

        A tool matches if the prompt contains its full name, a significant
        token of its name, or one of its keywords.  The first registered
        match wins; ``None`` means no match.
        """
        prompt = text.lower()
        if not prompt.strip():
            return None
        for tool in self._tools.values():
            if _matches(tool, prompt):
                return tool.name
        return None

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def list_names(self) -> list[str]:
        """Return names of all registered tools."""
        return list(self._tools.keys())


def _matches(tool: RegisteredTool, prompt: str) -> bool:
    name = tool.name.lower()
    if name in prompt:
        return True
    for token in _TOKEN_SPLIT.split(name):
        if len(token) >= _MIN_TOKEN_LEN and re.search(
            rf"\b{re.escape(token)}\b", prompt
        ):
            return True
    return any(keyword in prompt for keyword in tool.keywords)
