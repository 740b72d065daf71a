"""Main CLI application.

``ledgerbridge [SERVER_PATH]`` starts the tool server, connects to it,
and runs the interactive chat session.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from ledgerbridge import __version__
from ledgerbridge.config.loader import load_config, require_api_key
from ledgerbridge.core.errors import ConfigError, TransportError
from ledgerbridge.core.log import setup_logging

if TYPE_CHECKING:
    from rich.console import Console

    from ledgerbridge.config.schema import LedgerBridgeConfig


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(config_path: str | None) -> LedgerBridgeConfig:
    """Load config with user-friendly error handling."""
    try:
        return load_config(path=config_path)
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy


def default_server_path() -> str:
    """Path of the bundled tool server module."""
    return str(Path(__file__).resolve().parent.parent / "mcp" / "server.py")


async def _chat_async(
    config: LedgerBridgeConfig,
    api_key: str,
    server_path: str,
    console: Console | None = None,
) -> None:
    """Connect to the tool server and run the session until quit."""
    from ledgerbridge.cli.display import ChatDisplay
    from ledgerbridge.cli.session import SessionShell
    from ledgerbridge.client.connection import ToolServerConnection
    from ledgerbridge.client.conversation import ConversationLoop
    from ledgerbridge.providers.anthropic import AnthropicProvider

    connection = ToolServerConnection()
    provider = AnthropicProvider(api_key=api_key)
    try:
        await connection.connect(server_path)
        loop = ConversationLoop.from_config(provider, connection, config.model)
        shell = SessionShell(loop, connection, ChatDisplay(console))
        await shell.run()
    finally:
        await connection.close()
        await provider.close()


# ── Command ──────────────────────────────────────────────────────


@click.command()
@click.version_option(version=__version__, prog_name="ledgerbridge")
@click.argument("server_path", required=False)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to config file.",
)
def cli(server_path: str | None, config_path: str | None) -> None:
    """Chat with a model that can query and transact on an Ethereum ledger.

    SERVER_PATH is the tool server entry point (.py, .js or .ts). It
    defaults to the bundled server.
    """
    config = _load_config(config_path)
    setup_logging(config.logging)
    try:
        api_key = require_api_key(config)
    except ConfigError as e:
        _error(str(e))
        return

    try:
        path = server_path or default_server_path()
        asyncio.run(_chat_async(config, api_key, path))
    except (ConfigError, TransportError) as e:
        _error(str(e))
    except KeyboardInterrupt:
        click.echo()
