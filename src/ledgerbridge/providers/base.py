"""Model oracle interface and conversation data classes.

The oracle adapter implements the ``ModelProvider`` protocol. Data
classes are immutable where possible (frozen dataclasses with slots).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ledgerbridge.tools.base import ToolDescriptor


class Role(enum.StrEnum):
    """Author of a conversation turn."""

    USER = "user"
    MODEL = "model"
    TOOL_RESULT = "tool-result"


@dataclass(frozen=True, slots=True)
class TextBlock:
    """Text emitted by the model."""

    text: str
    type: str = field(default="text", init=False)


@dataclass(frozen=True, slots=True)
class ToolUseBlock:
    """A tool invocation requested by the model. Untrusted input."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    type: str = field(default="tool_use", init=False)


ContentBlock = TextBlock | ToolUseBlock


@dataclass(frozen=True, slots=True)
class Turn:
    """One entry in the conversation.

    ``user`` turns carry ``text``. ``model`` turns carry ``blocks`` in
    generation order. ``tool-result`` turns carry ``text`` plus the id
    and name of the tool_use they answer.
    """

    role: Role
    text: str = ""
    blocks: tuple[ContentBlock, ...] = ()
    tool_use_id: str | None = None
    tool_name: str | None = None
    is_error: bool = False

    @classmethod
    def user(cls, text: str) -> Turn:
        return cls(role=Role.USER, text=text)

    @classmethod
    def model(cls, blocks: Sequence[ContentBlock]) -> Turn:
        return cls(role=Role.MODEL, blocks=tuple(blocks))

    @classmethod
    def tool_result(
        cls, tool_use: ToolUseBlock, text: str, *, is_error: bool = False
    ) -> Turn:
        return cls(
            role=Role.TOOL_RESULT,
            text=text,
            tool_use_id=tool_use.id,
            tool_name=tool_use.name,
            is_error=is_error,
        )


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token counts from a single model call."""

    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens consumed (input + output)."""
        return self.input_tokens + self.output_tokens


@dataclass(slots=True)
class ModelResponse:
    """Complete response from a model call."""

    blocks: tuple[ContentBlock, ...]
    usage: TokenUsage
    finish_reason: str  # "end_turn", "max_tokens", "tool_use"
    latency_ms: float
    raw_response: object = field(default=None, repr=False)

    @property
    def first_text(self) -> str:
        """The first text block, or an empty string."""
        for block in self.blocks:
            if isinstance(block, TextBlock):
                return block.text
        return ""


@runtime_checkable
class ModelProvider(Protocol):
    """Protocol the model oracle adapter must satisfy.

    Implementations are stateless: they hold connection config but no
    conversation state. The conversation loop owns the turns.
    """

    @property
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'anthropic')."""
        ...

    async def send(
        self,
        turns: Sequence[Turn],
        model_id: str,
        *,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        tools: Sequence[ToolDescriptor] | None = None,
    ) -> ModelResponse:
        """Send the conversation and wait for the complete response.

        Args:
            turns: Conversation so far, oldest first.
            model_id: Model to use.
            max_tokens: Max output tokens.
            temperature: Sampling temperature.
            tools: Tool catalogue to advertise. ``None`` means the model
                may not request tools on this call.

        Raises ProviderError on failure.
        """
        ...
