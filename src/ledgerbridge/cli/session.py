"""Interactive session shell.

Reads one line at a time, hands it to the conversation loop, prints the
answer, and owns the tool-server connection for the life of the
session. ``quit`` (any case) or end of input ends the session; the
connection is closed on every exit path.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from ledgerbridge.core.errors import ProviderError

if TYPE_CHECKING:
    from ledgerbridge.cli.display import ChatDisplay
    from ledgerbridge.client.conversation import ConversationLoop

QUIT_COMMAND = "quit"

logger = logging.getLogger(__name__)


class Closeable(Protocol):
    async def close(self) -> None: ...


def is_quit(line: str) -> bool:
    return line.strip().lower() == QUIT_COMMAND


class SessionShell:
    """Prompt → conversation loop → print, until the user quits."""

    def __init__(
        self,
        loop: ConversationLoop,
        connection: Closeable,
        display: ChatDisplay,
    ) -> None:
        self._loop = loop
        self._connection = connection
        self._display = display

    async def _read_line(self) -> str | None:
        try:
            return await asyncio.to_thread(self._display.prompt)
        except EOFError:
            return None

    async def run(self) -> None:
        """Run until ``quit`` or end of input.

        Model errors abort only the current query. Transport errors
        propagate after the connection is closed.
        """
        try:
            self._display.banner([t.name for t in self._loop.catalogue])
            while True:
                line = await self._read_line()
                if line is None or is_quit(line):
                    break
                if not line.strip():
                    continue
                try:
                    with self._display.thinking():
                        answer = await self._loop.process_query(line)
                except ProviderError as e:
                    logger.warning("Query failed: %s", e)
                    self._display.error(str(e))
                    continue
                self._display.show_response(answer)
            self._display.goodbye()
        finally:
            await self._connection.close()
