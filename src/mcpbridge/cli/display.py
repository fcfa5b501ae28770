"""Rich display for bridge sessions.

Renders answers, errors and the tool catalog.  Accepts an optional
:class:`~rich.console.Console` for dependency injection in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.status import Status

    from mcpbridge.tools.base import FunctionToolSpec
    from mcpbridge.tools.registry import ToolRegistry

_ERROR_PREFIX = "Error processing message:"


class BridgeDisplay:
    """Console output for the ``chat``, ``ask`` and ``tools`` commands."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    def thinking(self) -> Status:
        """Spinner shown while a turn runs."""
        return self._console.status("[bold cyan]thinking...[/bold cyan]", spinner="dots")

    def show_banner(self, model: str, tool_count: int) -> None:
        self._console.rule(f"[bold]mcpbridge[/bold] ({model}, {tool_count} tools)")
        self._console.print(
            "Type a message, [bold]/tools[/bold] to list tools, "
            "[bold]/reset[/bold] to clear history, [bold]exit[/bold] to quit.",
            style="dim",
        )

    def show_answer(self, text: str) -> None:
        """Display the model's answer, or an error panel for failed turns."""
        if text.startswith(_ERROR_PREFIX):
            self.show_error(text)
            return
        self._console.print(
            Panel(
                Markdown(text or "_(empty response)_"),
                title="[bold green]Assistant[/bold green]",
                border_style="green",
            )
        )

    def show_error(self, message: str) -> None:
        self._console.print(
            Panel(message, title="[bold red]Error[/bold red]", border_style="red")
        )

    def show_warning(self, message: str) -> None:
        self._console.print(f"[bold yellow]Warning:[/bold yellow] {message}")

    def show_tools(
        self,
        tools: Sequence[FunctionToolSpec],
        registry: ToolRegistry | None = None,
    ) -> None:
        """Display the tool catalog as a table."""
        if not tools:
            self._console.print("No tools available.")
            return

        table = Table(title=f"Tools ({len(tools)})")
        table.add_column("Name", style="bold cyan")
        table.add_column("Description")
        table.add_column("Parameters")
        table.add_column("Instructions", justify="center")
        for spec in tools:
            params = spec.parameters.get("properties", {})
            required = set(spec.parameters.get("required", []))
            param_text = ", ".join(
                f"{name}*" if name in required else name for name in params
            )
            has_instructions = bool(
                registry is not None and registry.get_tool_instructions(spec.name)
            )
            table.add_row(
                spec.name,
                spec.description,
                param_text or "-",
                "yes" if has_instructions else "",
            )
        self._console.print(table)
