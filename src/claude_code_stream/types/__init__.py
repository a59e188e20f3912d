"""Type definitions for the Claude Code SDK."""

from claude_code_stream.types.config import ClaudeCodeOptions, DecodeErrorPolicy, PermissionMode
from claude_code_stream.types.messages import (
    AssistantMessage,
    ContentBlock,
    Message,
    ResultMessage,
    SystemMessage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    UnknownBlock,
    UserMessage,
)

__all__ = [
    "AssistantMessage",
    "ClaudeCodeOptions",
    "ContentBlock",
    "DecodeErrorPolicy",
    "Message",
    "PermissionMode",
    "ResultMessage",
    "SystemMessage",
    "TextBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "UnknownBlock",
    "UserMessage",
]
