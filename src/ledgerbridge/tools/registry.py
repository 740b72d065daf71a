"""Tool registry: the fixed catalogue of tools served to the model.

Provides registration, listing of descriptors (in registration order),
and validated invocation. Invocation never raises: unknown tools,
argument violations and executor failures all come back as a failed
:class:`ToolResult`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ledgerbridge.tools.base import ToolDescriptor, ToolResult
from ledgerbridge.tools.schema import build_input_schema, validate_arguments

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from ledgerbridge.tools.base import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry for the tools of one session.

    Contents are populated once at startup and are read-only afterwards.
    """

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        self._descriptors: dict[str, ToolDescriptor] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """Register a tool.

        Raises:
            ValueError: If a tool with the same name is already registered.
        """
        if tool.name in self._tools:
            msg = f"Tool already registered: {tool.name}"
            raise ValueError(msg)
        self._tools[tool.name] = tool
        self._descriptors[tool.name] = ToolDescriptor(
            name=tool.name,
            description=tool.description,
            input_schema=build_input_schema(tool.fields),
        )

    def list(self) -> list[ToolDescriptor]:
        """Return descriptors for all registered tools, in registration order."""
        return list(self._descriptors.values())

    def list_names(self) -> list[str]:
        """Return names of all registered tools."""
        return list(self._tools.keys())

    async def invoke(self, name: str, args: Mapping[str, Any] | None) -> ToolResult:
        """Validate *args* against tool *name* and run it."""
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("Rejected call to unknown tool %r", name)
            return ToolResult.fail(f"unknown tool: {name}")

        arguments = dict(args or {})
        violation = validate_arguments(tool.fields, arguments)
        if violation is not None:
            logger.info("Invalid arguments for %s: %s", name, violation)
            return ToolResult.fail(f"invalid arguments for {name}: {violation}")

        declared = {f.name for f in tool.fields}
        kwargs = {k: v for k, v in arguments.items() if k in declared}
        logger.debug("Invoking %s with %s", name, kwargs)
        try:
            return await tool.execute(**kwargs)
        except Exception as exc:
            logger.exception("Tool %s raised", name)
            return ToolResult.fail(f"Tool execution error: {exc}")

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
