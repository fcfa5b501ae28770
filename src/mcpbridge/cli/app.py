"""Main CLI application.

Click commands for mcpbridge: chat, ask, tools, serve-fhir.
"""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from mcpbridge import __version__
from mcpbridge.config.loader import load_config
from mcpbridge.core.errors import BridgeError, ConfigError, ToolProviderError
from mcpbridge.core.log import setup_logging

if TYPE_CHECKING:
    from mcpbridge.bridge import MCPLLMBridge
    from mcpbridge.cli.display import BridgeDisplay
    from mcpbridge.config.schema import BridgeConfig

_EXIT_WORDS = frozenset({"exit", "quit"})


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(ctx: click.Context) -> BridgeConfig:
    """Load config with user-friendly error handling, then set up logging."""
    try:
        config = load_config(path=ctx.obj["config_path"])
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy
    setup_logging(config.logging, verbose=ctx.obj["verbose"])
    return config


def _create_bridge(config: BridgeConfig) -> MCPLLMBridge:
    from mcpbridge.bridge import MCPLLMBridge

    return MCPLLMBridge(config)


async def _start_bridge(bridge: MCPLLMBridge, display: BridgeDisplay) -> None:
    """Initialize the bridge, continuing without tools on failure."""
    if not await bridge.initialize():
        display.show_warning(
            "Could not connect to the MCP server; continuing without tools."
        )


# ── CLI group ────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="mcpbridge")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="Path to a bridge_config.json or .toml file.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """mcpbridge - chat with a model that can call MCP tools."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ── chat ─────────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def chat(ctx: click.Context) -> None:
    """Start an interactive chat session."""
    config = _load_config(ctx)
    try:
        asyncio.run(_chat_async(config))
    except BridgeError as e:
        _error(str(e))


async def _chat_async(config: BridgeConfig) -> None:
    """Async implementation for the chat command."""
    from mcpbridge.cli.display import BridgeDisplay

    display = BridgeDisplay()
    bridge = _create_bridge(config)
    try:
        await _start_bridge(bridge, display)
        display.show_banner(config.llm.model, len(bridge.tools))

        while True:
            try:
                line = await asyncio.to_thread(display.console.input, "[bold]> [/bold]")
            except (EOFError, KeyboardInterrupt):
                break
            message = line.strip()
            if not message:
                continue
            if message.lower() in _EXIT_WORDS:
                break
            if message == "/tools":
                display.show_tools(bridge.tools, bridge.registry)
                continue
            if message == "/reset":
                bridge.llm_client.reset()
                display.console.print("History cleared.", style="dim")
                continue

            with display.thinking():
                answer = await bridge.process_message(message)
            display.show_answer(answer)
    finally:
        await bridge.close()


# ── ask ──────────────────────────────────────────────────────────


@cli.command()
@click.argument("message")
@click.option("--raw", is_flag=True, default=False, help="Print plain text only.")
@click.pass_context
def ask(ctx: click.Context, message: str, raw: bool) -> None:
    """Send MESSAGE through the bridge and print the answer."""
    config = _load_config(ctx)
    try:
        answer = asyncio.run(_ask_async(config, message))
    except BridgeError as e:
        _error(str(e))
        return  # unreachable

    if raw:
        click.echo(answer)
        return

    from mcpbridge.cli.display import BridgeDisplay

    BridgeDisplay().show_answer(answer)


async def _ask_async(config: BridgeConfig, message: str) -> str:
    """Async implementation for the ask command."""
    from mcpbridge.cli.display import BridgeDisplay

    bridge = _create_bridge(config)
    try:
        await _start_bridge(bridge, BridgeDisplay())
        return await bridge.process_message(message)
    finally:
        await bridge.close()


# ── tools ────────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def tools(ctx: click.Context) -> None:
    """List the tools offered by the MCP server."""
    config = _load_config(ctx)
    try:
        asyncio.run(_tools_async(config))
    except BridgeError as e:
        _error(str(e))


async def _tools_async(config: BridgeConfig) -> None:
    """Async implementation for the tools command."""
    from mcpbridge.cli.display import BridgeDisplay

    display = BridgeDisplay()
    bridge = _create_bridge(config)
    try:
        if not await bridge.initialize():
            msg = "Could not connect to the MCP server."
            raise ToolProviderError(msg)
        display.show_tools(bridge.tools, bridge.registry)
    finally:
        await bridge.close()


# ── serve-fhir ───────────────────────────────────────────────────


@cli.command("serve-fhir")
@click.pass_context
def serve_fhir(ctx: click.Context) -> None:
    """Run the FHIR MCP server on stdio."""
    _load_config(ctx)
    from mcpbridge.mcp.server import run_server

    asyncio.run(run_server())
