"""Model oracle adapters."""

from ledgerbridge.providers.base import (
    ContentBlock,
    ModelProvider,
    ModelResponse,
    Role,
    TextBlock,
    TokenUsage,
    ToolUseBlock,
    Turn,
)

__all__ = [
    "ContentBlock",
    "ModelProvider",
    "ModelResponse",
    "Role",
    "TextBlock",
    "TokenUsage",
    "ToolUseBlock",
    "Turn",
]
