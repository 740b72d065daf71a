"""Connection to the tool-serving process.

Spawns the server as a child process, speaks MCP over its stdio, and
exposes the remote catalogue with the same ``list`` / ``invoke`` shape
as :class:`~ledgerbridge.tools.registry.ToolRegistry`, so the
conversation loop does not care whether tools are local or remote.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import AsyncExitStack
from pathlib import Path
from typing import TYPE_CHECKING, Any

import anyio
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.shared.exceptions import McpError
from mcp.types import CONNECTION_CLOSED, TextContent

from ledgerbridge.core.errors import ConfigError, TransportError
from ledgerbridge.tools.base import ToolDescriptor, ToolResult

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    anyio.ClosedResourceError,
    anyio.BrokenResourceError,
    anyio.EndOfStream,
    OSError,
)


def server_command(server_path: str) -> tuple[str, list[str]]:
    """Pick the launch command for a server entry point by file extension.

    Raises:
        ConfigError: For extensions other than ``.py``, ``.js`` and ``.ts``.
    """
    suffix = Path(server_path).suffix
    if suffix == ".py":
        fallback = "python" if sys.platform == "win32" else "python3"
        command = sys.executable or fallback
    elif suffix == ".js":
        command = "node"
    elif suffix == ".ts":
        command = "ts-node"
    else:
        msg = f"Server script must be a .js, .ts or .py file: {server_path}"
        raise ConfigError(msg)
    return command, [server_path]


class ToolServerConnection:
    """Long-lived MCP session with the tool server.

    The catalogue is read once in :meth:`connect` and fixed for the
    rest of the session.
    """

    def __init__(self, session: ClientSession | None = None) -> None:
        self._stack = AsyncExitStack()
        self._session = session
        self._descriptors: dict[str, ToolDescriptor] = {}
        self._closed = False

    @property
    def connected(self) -> bool:
        return self._session is not None and not self._closed

    async def connect(self, server_path: str) -> None:
        """Launch the server at *server_path* and load its tool catalogue.

        Raises:
            ConfigError: If the path has an unsupported extension.
            TransportError: If the server cannot be started or initialized.
        """
        command, args = server_command(server_path)
        params = StdioServerParameters(
            command=command, args=args, env=dict(os.environ)
        )
        try:
            read, write = await self._stack.enter_async_context(stdio_client(params))
            self._session = await self._stack.enter_async_context(
                ClientSession(read, write)
            )
            await self._session.initialize()
            await self.load_tools()
        except Exception as e:
            await self.close()
            if isinstance(e, TransportError):
                raise
            msg = f"Failed to connect to tool server {server_path}: {e}"
            raise TransportError(msg) from e

    async def load_tools(self) -> list[ToolDescriptor]:
        """Fetch the catalogue from the server and fix it for this session."""
        session = self._require_session()
        try:
            listing = await session.list_tools()
        except McpError as e:
            msg = f"Tool server failed to list tools: {e}"
            raise TransportError(msg) from e
        except _TRANSPORT_ERRORS as e:
            msg = f"Lost connection to tool server: {e}"
            raise TransportError(msg) from e
        self._descriptors = {
            t.name: ToolDescriptor(
                name=t.name,
                description=t.description or "",
                input_schema=dict(t.inputSchema),
            )
            for t in listing.tools
        }
        logger.info("Connected to server with tools: %s", list(self._descriptors))
        return self.list()

    def list(self) -> list[ToolDescriptor]:
        """Return the catalogue in the order the server advertised it."""
        return list(self._descriptors.values())

    async def invoke(self, name: str, args: Mapping[str, Any] | None) -> ToolResult:
        """Call a remote tool.

        Unknown names fail locally without a round trip. Errors reported
        by the server for this call become failed results; a closed or
        broken channel raises.

        Raises:
            TransportError: If the connection to the server is lost.
        """
        if name not in self._descriptors:
            return ToolResult.fail(f"unknown tool: {name}")
        session = self._require_session()
        try:
            result = await session.call_tool(name, dict(args or {}))
        except McpError as e:
            if e.error.code == CONNECTION_CLOSED:
                msg = f"Lost connection to tool server: {e}"
                raise TransportError(msg) from e
            logger.warning("Tool server rejected %s: %s", name, e)
            return ToolResult.fail(str(e))
        except _TRANSPORT_ERRORS as e:
            msg = f"Lost connection to tool server: {e}"
            raise TransportError(msg) from e

        text = "\n".join(c.text for c in result.content if isinstance(c, TextContent))
        return ToolResult(success=not result.isError, text=text)

    async def close(self) -> None:
        """Shut down the session and the server process. Idempotent."""
        if self._closed:
            return
        self._closed = True
        await self._stack.aclose()

    def _require_session(self) -> ClientSession:
        if self._session is None or self._closed:
            msg = "Not connected to a tool server"
            raise TransportError(msg)
        return self._session
