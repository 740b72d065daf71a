"""Tool protocol and data types.

Defines the ``Tool`` protocol every ledger tool satisfies, the
descriptor advertised to the model, the tagged ``ToolResult`` every
invocation produces, and the ``fallible`` decorator that turns an
executor's exceptions into failure results.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ledgerbridge.tools.schema import FieldSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """Name, description and JSON input schema of one tool."""

    name: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Outcome of one tool invocation.

    On failure ``text`` holds a human-readable error message. Results
    are always data: callers inject them into the conversation, never
    raise them.
    """

    success: bool
    text: str

    @classmethod
    def ok(cls, text: str) -> ToolResult:
        return cls(success=True, text=text)

    @classmethod
    def fail(cls, text: str) -> ToolResult:
        return cls(success=False, text=text)


@runtime_checkable
class Tool(Protocol):
    """Protocol that all tool implementations must satisfy."""

    @property
    def name(self) -> str:
        """Unique name for this tool."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        ...

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        """Declared input fields, validated before :meth:`execute`."""
        ...

    async def execute(self, **kwargs: Any) -> ToolResult:
        """Run the tool with already-validated arguments.

        Must not raise: failures are returned as ``ToolResult.fail``.
        """
        ...


def fallible(
    prefix: str,
) -> Callable[
    [Callable[..., Awaitable[str | ToolResult]]],
    Callable[..., Awaitable[ToolResult]],
]:
    """Wrap an async executor body so that it always returns a ToolResult.

    A ``str`` return becomes ``ToolResult.ok``; a returned ``ToolResult``
    passes through; any exception becomes
    ``ToolResult.fail(f"{prefix}: {exc}")``.
    """

    def decorate(
        fn: Callable[..., Awaitable[str | ToolResult]],
    ) -> Callable[..., Awaitable[ToolResult]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> ToolResult:
            try:
                value = await fn(*args, **kwargs)
            except Exception as exc:
                logger.warning("%s: %s", prefix, exc)
                return ToolResult.fail(f"{prefix}: {exc}")
            if isinstance(value, ToolResult):
                return value
            return ToolResult.ok(value)

        return wrapper

    return decorate
