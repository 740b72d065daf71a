"""Anthropic (Claude) model oracle adapter."""

from __future__ import annotations

import contextlib
import json
import time
from typing import TYPE_CHECKING, Any

import anthropic

from ledgerbridge.core.errors import (
    ModelNotFoundError,
    ProviderAuthError,
    ProviderError,
    ProviderOverloadedError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)
from ledgerbridge.providers.base import (
    ContentBlock,
    ModelResponse,
    Role,
    TextBlock,
    TokenUsage,
    ToolUseBlock,
    Turn,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ledgerbridge.tools.base import ToolDescriptor

PROVIDER_ID = "anthropic"

_EMPTY_RESULT = "(no output)"


def _map_error(e: anthropic.APIError) -> Exception:
    """Map Anthropic SDK errors to the ledgerbridge error hierarchy."""
    if isinstance(e, anthropic.AuthenticationError):
        return ProviderAuthError(PROVIDER_ID, str(e))
    if isinstance(e, anthropic.RateLimitError):
        retry_after = None
        if hasattr(e, "response") and e.response is not None:
            raw = e.response.headers.get("retry-after")
            if raw is not None:
                with contextlib.suppress(ValueError):
                    retry_after = float(raw)
        return ProviderRateLimitError(PROVIDER_ID, retry_after=retry_after)
    if isinstance(e, anthropic.APITimeoutError):
        return ProviderTimeoutError(PROVIDER_ID, str(e))
    if isinstance(e, anthropic.InternalServerError):
        return ProviderOverloadedError(PROVIDER_ID, str(e))
    if isinstance(e, anthropic.NotFoundError):
        return ModelNotFoundError(PROVIDER_ID, str(e))
    if isinstance(e, anthropic.APIStatusError) and e.status_code < 500:
        return ProviderError(PROVIDER_ID, str(e))
    return ProviderOverloadedError(PROVIDER_ID, str(e))


def _tool_marker(block: ToolUseBlock) -> str:
    return f"[Called tool {block.name} with args {json.dumps(block.arguments)}]"


def _render_turn(turn: Turn, *, structured: bool) -> dict[str, Any] | None:
    """Render one turn as an Anthropic message, or None if it has no content.

    With ``structured=False`` tool_use and tool_result blocks are flattened
    to plain text, since the API rejects them when no tools are declared.
    """
    if turn.role is Role.USER:
        return {"role": "user", "content": turn.text}

    if turn.role is Role.TOOL_RESULT:
        text = turn.text or _EMPTY_RESULT
        if not structured:
            flat = f"Tool '{turn.tool_name}' result: {text}"
            return {"role": "user", "content": flat}
        block: dict[str, Any] = {
            "type": "tool_result",
            "tool_use_id": turn.tool_use_id,
            "content": text,
        }
        if turn.is_error:
            block["is_error"] = True
        return {"role": "user", "content": [block]}

    content: list[dict[str, Any]] = []
    for b in turn.blocks:
        if isinstance(b, TextBlock):
            if b.text:
                content.append({"type": "text", "text": b.text})
        elif structured:
            content.append(
                {"type": "tool_use", "id": b.id, "name": b.name, "input": b.arguments}
            )
        else:
            content.append({"type": "text", "text": _tool_marker(b)})
    if not content:
        return None
    return {"role": "assistant", "content": content}


def _as_blocks(content: str | list[dict[str, Any]]) -> list[dict[str, Any]]:
    if isinstance(content, str):
        return [{"type": "text", "text": content}]
    return content


def _build_messages(
    turns: Sequence[Turn], *, structured: bool = True
) -> list[dict[str, Any]]:
    """Convert turns into Anthropic messages, merging same-role neighbours."""
    messages: list[dict[str, Any]] = []
    for turn in turns:
        msg = _render_turn(turn, structured=structured)
        if msg is None:
            continue
        if messages and messages[-1]["role"] == msg["role"]:
            prev = messages[-1]
            prev["content"] = _as_blocks(prev["content"]) + _as_blocks(msg["content"])
        else:
            messages.append(msg)
    return messages


def _build_tools(tools: Sequence[ToolDescriptor]) -> list[dict[str, Any]]:
    return [
        {
            "name": t.name,
            "description": t.description,
            "input_schema": t.input_schema,
        }
        for t in tools
    ]


def _parse_blocks(content: Sequence[Any]) -> tuple[ContentBlock, ...]:
    """Convert SDK content blocks into ordered ledgerbridge blocks."""
    blocks: list[ContentBlock] = []
    for block in content:
        kind = getattr(block, "type", None)
        if kind == "text":
            blocks.append(TextBlock(text=block.text))
        elif kind == "tool_use":
            arguments = block.input if isinstance(block.input, dict) else {}
            blocks.append(
                ToolUseBlock(id=block.id, name=block.name, arguments=dict(arguments))
            )
    return tuple(blocks)


class AnthropicProvider:
    """Model oracle adapter for Anthropic's Claude models."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self._client = client or anthropic.AsyncAnthropic(api_key=api_key)

    @property
    def provider_id(self) -> str:
        return PROVIDER_ID

    async def send(
        self,
        turns: Sequence[Turn],
        model_id: str,
        *,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        tools: Sequence[ToolDescriptor] | None = None,
    ) -> ModelResponse:
        kwargs: dict[str, Any] = {
            "model": model_id,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": _build_messages(turns, structured=bool(tools)),
        }
        if tools:
            kwargs["tools"] = _build_tools(tools)

        start = time.monotonic()
        try:
            response = await self._client.messages.create(**kwargs)
        except anthropic.APIError as e:
            raise _map_error(e) from e
        latency_ms = (time.monotonic() - start) * 1000

        usage = TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return ModelResponse(
            blocks=_parse_blocks(response.content),
            usage=usage,
            finish_reason=response.stop_reason or "end_turn",
            latency_ms=latency_ms,
            raw_response=response,
        )

    async def close(self) -> None:
        await self._client.close()
