"""Ledger tools served over MCP.

Provides the tool protocol, declarative argument constraints, the
registry that validates and dispatches calls, and the Ethereum tool
catalogue built on a shared ledger context.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ledgerbridge.tools.base import Tool, ToolDescriptor, ToolResult, fallible
from ledgerbridge.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from ledgerbridge.tools.ledger import LedgerContext


def build_registry(ctx: LedgerContext) -> ToolRegistry:
    """Create the registry holding every ledger tool bound to *ctx*."""
    from ledgerbridge.tools.ethereum import build_ledger_tools

    return ToolRegistry(build_ledger_tools(ctx))


__all__ = [
    "Tool",
    "ToolDescriptor",
    "ToolRegistry",
    "ToolResult",
    "build_registry",
    "fallible",
]
