"""Tool protocols and data types.

Defines the records that flow between the tool server, the registry,
the executor and the model client, plus two protocols:

* :class:`Tool` -- a locally implemented tool (served over MCP).
* :class:`ToolProvider` -- a remote source of tools (an MCP client).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """A tool as described by the tool server."""

    name: str
    description: str | None = None
    input_schema: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class RegisteredTool:
    """A tool held by the registry, with optional prompt-detection hints."""

    name: str
    description: str | None
    input_schema: dict[str, Any]
    instructions: str | None = None
    keywords: tuple[str, ...] = ()

    @property
    def required(self) -> list[str]:
        """Names of required parameters, per the input schema."""
        required = self.input_schema.get("required") or []
        return [str(r) for r in required]


@dataclass(frozen=True, slots=True)
class FunctionToolSpec:
    """Model-facing description of a tool as a callable function."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the OpenAI ``tools`` entry for this function."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FunctionToolSpec:
        """Parse an OpenAI ``tools`` entry.

        Raises:
            ValueError: If the entry has no ``function.name``.
        """
        function = data.get("function")
        if not isinstance(function, dict) or not function.get("name"):
            msg = "Tool spec has no function name"
            raise ValueError(msg)
        return cls(
            name=str(function["name"]),
            description=str(function.get("description") or ""),
            parameters=dict(function.get("parameters") or {}),
        )


@dataclass(frozen=True, slots=True)
class ToolCallRequest:
    """A tool invocation requested by the model."""

    id: str
    name: str
    arguments: str = ""  # JSON string of arguments


@dataclass(frozen=True, slots=True)
class ToolCallResult:
    """Outcome of a tool call, fed back to the model."""

    tool_call_id: str
    output: str
    is_error: bool = False


@runtime_checkable
class Tool(Protocol):
    """Protocol that all local tool implementations must satisfy."""

    @property
    def name(self) -> str:
        """Unique name for this tool."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        ...

    @property
    def parameters_schema(self) -> dict[str, Any]:
        """JSON Schema for the tool's parameters."""
        ...

    async def execute(self, **kwargs: Any) -> str:
        """Execute the tool with the given arguments.

        Returns:
            String result of the tool execution.

        Raises:
            Exception: On execution failure.
        """
        ...


@runtime_checkable
class ToolProvider(Protocol):
    """Protocol for a remote source of tools.

    One long-lived session: ``connect`` acquires it, ``close`` releases it.
    """

    async def connect(self) -> None:
        """Open the session. Raises ToolProviderError on failure."""
        ...

    async def list_tools(self) -> list[ToolDescriptor]:
        """Return the tools offered by the server."""
        ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> object:
        """Invoke a tool and return its result (text or JSON-like)."""
        ...

    async def close(self) -> None:
        """Release the session. Safe to call more than once."""
        ...
