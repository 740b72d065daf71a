"""The tool-calling conversation loop.

Turns one user utterance into model queries and tool dispatches::

    AWAITING_USER_INPUT -> QUERYING_MODEL -> DONE
                                 |    ^
                                 v    |
                           DISPATCHING_TOOLS

Blocks of a model response are walked in generation order. A text
block goes straight to the output. A tool_use block is dispatched,
recorded as a marker line, answered with a tool-result turn, and
followed by exactly one follow-up model query. Tool calls are never
reordered or run concurrently.

Depth: a follow-up issued below ``max_tool_depth`` carries the tool
catalogue and its own tool calls are walked the same way; the
follow-up at the cap is sent without the catalogue and only its first
text block is used. With the default depth of 1 a query costs at most
``1 + k`` model calls, ``k`` being the tool calls in the first response.
"""

from __future__ import annotations

import enum
import json
import logging
from typing import TYPE_CHECKING, Any, Protocol

from ledgerbridge.core.retry import RetryConfig, retry_with_backoff
from ledgerbridge.providers.base import TextBlock, Turn

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ledgerbridge.config.schema import ModelConfig
    from ledgerbridge.providers.base import (
        ContentBlock,
        ModelProvider,
        ModelResponse,
        ToolUseBlock,
    )
    from ledgerbridge.tools.base import ToolDescriptor, ToolResult

logger = logging.getLogger(__name__)


class LoopState(enum.Enum):
    """Where the loop is in handling the current utterance."""

    AWAITING_USER_INPUT = "awaiting_user_input"
    QUERYING_MODEL = "querying_model"
    DISPATCHING_TOOLS = "dispatching_tools"
    DONE = "done"


class ToolInvoker(Protocol):
    """What the loop needs from a tool catalogue, local or remote."""

    def list(self) -> list[ToolDescriptor]: ...

    async def invoke(
        self, name: str, args: Mapping[str, Any] | None
    ) -> ToolResult: ...


def tool_marker(block: ToolUseBlock) -> str:
    """Output line recording which tool was called with which arguments."""
    return f"[Calling tool {block.name} with args {json.dumps(block.arguments)}]"


class ConversationLoop:
    """Resolves user utterances against a model and a tool catalogue.

    The catalogue is captured once at construction and advertised
    verbatim on every tool-enabled model query. History does not carry
    over between :meth:`process_query` calls.
    """

    def __init__(
        self,
        provider: ModelProvider,
        tools: ToolInvoker,
        *,
        model_id: str,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        max_tool_depth: int = 1,
        retry: RetryConfig | None = None,
    ) -> None:
        if max_tool_depth < 1:
            msg = f"max_tool_depth must be >= 1, got {max_tool_depth}"
            raise ValueError(msg)
        self._provider = provider
        self._tools = tools
        self._catalogue: tuple[ToolDescriptor, ...] = tuple(tools.list())
        self._model_id = model_id
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._max_tool_depth = max_tool_depth
        self._retry = retry or RetryConfig()
        self.state = LoopState.AWAITING_USER_INPUT
        self.model_calls = 0
        self.turns: list[Turn] = []

    @classmethod
    def from_config(
        cls, provider: ModelProvider, tools: ToolInvoker, config: ModelConfig
    ) -> ConversationLoop:
        return cls(
            provider,
            tools,
            model_id=config.model_id,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            max_tool_depth=config.max_tool_depth,
            retry=RetryConfig(max_retries=config.max_retries),
        )

    @property
    def catalogue(self) -> tuple[ToolDescriptor, ...]:
        return self._catalogue

    async def process_query(self, query: str) -> str:
        """Resolve one utterance and return the assembled output.

        Raises:
            ProviderError: If a model call fails after retries. Only this
                query is lost; the loop stays usable.
            TransportError: If the tool server connection is lost.
        """
        self.turns = [Turn.user(query)]
        self.model_calls = 0
        output: list[str] = []
        try:
            response = await self._query(with_tools=True)
            await self._walk(response, output, depth=1)
        except BaseException:
            self.state = LoopState.AWAITING_USER_INPUT
            raise
        self.state = LoopState.DONE
        logger.debug("Query resolved with %d model calls", self.model_calls)
        return "\n".join(output)

    async def _walk(
        self, response: ModelResponse, output: list[str], depth: int
    ) -> None:
        pending: list[ContentBlock] = []
        for block in response.blocks:
            pending.append(block)
            if isinstance(block, TextBlock):
                output.append(block.text)
                continue

            self.state = LoopState.DISPATCHING_TOOLS
            logger.info("Dispatching %s (depth %d)", block.name, depth)
            result = await self._tools.invoke(block.name, block.arguments)
            output.append(tool_marker(block))
            self.turns.append(Turn.model(pending))
            self.turns.append(
                Turn.tool_result(block, result.text, is_error=not result.success)
            )
            pending = []

            recurse = depth < self._max_tool_depth
            follow_up = await self._query(with_tools=recurse)
            if recurse:
                await self._walk(follow_up, output, depth + 1)
                continue
            first = follow_up.first_text
            if first:
                output.append(first)
                self.turns.append(Turn.model([TextBlock(first)]))

        if pending:
            self.turns.append(Turn.model(pending))

    async def _query(self, *, with_tools: bool) -> ModelResponse:
        self.state = LoopState.QUERYING_MODEL
        self.model_calls += 1
        tools = list(self._catalogue) if with_tools and self._catalogue else None
        turns = list(self.turns)

        async def _send() -> ModelResponse:
            return await self._provider.send(
                turns,
                self._model_id,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                tools=tools,
            )

        return await retry_with_backoff(_send, self._retry)
