"""MCP server exposing the ledger tools over stdio.

Run with ``ledgerbridge-server`` or by launching this file directly
(``python3 path/to/ledgerbridge/mcp/server.py``), which is what the chat
client does by default.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING, Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from ledgerbridge import __version__
from ledgerbridge.config.loader import load_config
from ledgerbridge.core.errors import ConfigError
from ledgerbridge.core.log import setup_logging
from ledgerbridge.tools import build_registry
from ledgerbridge.tools.ledger import create_ledger_context

if TYPE_CHECKING:
    from ledgerbridge.config.schema import LedgerBridgeConfig
    from ledgerbridge.tools.registry import ToolRegistry

SERVER_NAME = "web3-tools"

logger = logging.getLogger(__name__)


class ToolFailure(Exception):
    """Raised inside the MCP handler so the SDK flags the result ``isError``."""


def list_tools(registry: ToolRegistry) -> list[Tool]:
    """Render the registry catalogue as MCP tool definitions."""
    return [
        Tool(name=d.name, description=d.description, inputSchema=d.input_schema)
        for d in registry.list()
    ]


async def call_tool(
    registry: ToolRegistry, name: str, arguments: dict[str, Any] | None
) -> list[TextContent]:
    """Invoke a tool and wrap its text for MCP.

    Raises:
        ToolFailure: When the tool reports failure; the message is the
            failure text.
    """
    result = await registry.invoke(name, arguments)
    if not result.success:
        raise ToolFailure(result.text)
    return [TextContent(type="text", text=result.text)]


def create_server(registry: ToolRegistry) -> Server:
    """Build an MCP server bound to *registry*."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
    async def _list_tools() -> list[Tool]:
        return list_tools(registry)

    # FieldSpec constraints are the only argument validation.
    @server.call_tool(validate_input=False)  # type: ignore[untyped-decorator]
    async def _call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        return await call_tool(registry, name, arguments)

    return server


async def run_server(config: LedgerBridgeConfig) -> None:
    """Serve the ledger tools on stdio until the client disconnects."""
    ctx = create_ledger_context(config.chain)
    try:
        registry = build_registry(ctx)
        server = create_server(registry)
        logger.info(
            "Web3 MCP server running on stdio (%s, %d tools, signing %s)",
            ctx.chain.key,
            len(registry),
            "enabled" if ctx.can_sign else "disabled",
        )
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        await ctx.close()


def main() -> None:
    """Console entry point for the tool server."""
    try:
        config = load_config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    setup_logging(config.logging)
    try:
        asyncio.run(run_server(config))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
