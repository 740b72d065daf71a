"""Chat client: tool server connection and the conversation loop."""

from ledgerbridge.client.connection import ToolServerConnection, server_command
from ledgerbridge.client.conversation import ConversationLoop, LoopState, tool_marker

__all__ = [
    "ConversationLoop",
    "LoopState",
    "ToolServerConnection",
    "server_command",
    "tool_marker",
]
