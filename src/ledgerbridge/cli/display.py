"""Rich display for the chat session.

Renders the startup banner, the query prompt, a spinner while a query
is being resolved, and the assembled answer with tool-call markers
dimmed. Accepts an optional :class:`~rich.console.Console` for
dependency injection in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.status import Status

_MARKER_PREFIX = "[Calling tool "


class ChatDisplay:
    """Console rendering for :class:`~ledgerbridge.cli.session.SessionShell`."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    # ── Lifecycle ─────────────────────────────────────────────

    def banner(self, tool_names: Sequence[str]) -> None:
        """Print the startup panel listing the available tools."""
        body = Text()
        body.append("MCP Client Started!\n", style="bold green")
        body.append("Type your queries or 'quit' to exit.\n\n")
        body.append("Tools: ", style="bold")
        body.append(", ".join(tool_names) if tool_names else "(none)")
        self._console.print(Panel(body, title="ledgerbridge", border_style="cyan"))

    def goodbye(self) -> None:
        self._console.print("Bye.", style="dim")

    # ── Input ─────────────────────────────────────────────────

    def prompt(self, label: str = "Query: ") -> str:
        """Read one line from the user. Raises EOFError at end of input."""
        self._console.print()
        return self._console.input(f"[bold cyan]{label}[/bold cyan]")

    def thinking(self) -> Status:
        """Spinner shown while a query is being resolved."""
        label = "[bold cyan]Thinking...[/bold cyan]"
        return self._console.status(label, spinner="dots")

    # ── Output ────────────────────────────────────────────────

    def show_response(self, text: str) -> None:
        """Print an answer, dimming tool-call marker lines."""
        self._console.print()
        for line in text.splitlines():
            if line.startswith(_MARKER_PREFIX):
                self._console.print(Text(line, style="dim cyan"))
            else:
                self._console.print(Text(line))

    def error(self, message: str) -> None:
        self._console.print(Text(f"Error: {message}", style="bold red"))
