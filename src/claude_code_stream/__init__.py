"""Claude Code SDK: typed, streaming access to the Claude Code CLI.

Usage:
    import claude_code_stream

    async with await claude_code_stream.query("What is 2 + 2?") as stream:
        async for msg in stream:
            match msg:
                case claude_code_stream.AssistantMessage(content=blocks):
                    for block in blocks:
                        if isinstance(block, claude_code_stream.TextBlock):
                            print(block.text)
                case claude_code_stream.ResultMessage(cost_usd=cost):
                    print(f"Done (${cost or 0:.4f})")
"""

from claude_code_stream.core.parser import encode_message, parse_message
from claude_code_stream.core.query import QueryStream, StreamState, query
from claude_code_stream.errors import (
    ClaudeSDKError,
    CLIConnectionError,
    CLIJSONDecodeError,
    CLINotFoundError,
    ProcessError,
    TransportIOError,
)
from claude_code_stream.transport.base import Transport
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

__version__ = "0.1.0"

__all__ = [
    # Core API
    "query",
    "QueryStream",
    "StreamState",
    "Transport",
    "encode_message",
    "parse_message",
    # Message types
    "AssistantMessage",
    "ContentBlock",
    "Message",
    "ResultMessage",
    "SystemMessage",
    "TextBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "UnknownBlock",
    "UserMessage",
    # Configuration
    "ClaudeCodeOptions",
    "DecodeErrorPolicy",
    "PermissionMode",
    # Errors
    "ClaudeSDKError",
    "CLIConnectionError",
    "CLIJSONDecodeError",
    "CLINotFoundError",
    "ProcessError",
    "TransportIOError",
]
