"""Basic text output for non-interactive mode."""

from __future__ import annotations

import sys
from typing import Any

from claude_code_stream.core.parser import encode_message
from claude_code_stream.core.query import StreamItem
from claude_code_stream.errors import CLIJSONDecodeError
from claude_code_stream.types.messages import (
    AssistantMessage,
    ResultMessage,
    SystemMessage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    UnknownBlock,
    UserMessage,
)


def tool_detail(name: str, args: dict[str, Any]) -> str:
    """One-line summary of a tool call's most telling argument."""
    if name == "Bash" and "command" in args:
        return f"$ {args['command']}"
    if name in ("Read", "Write", "Edit") and "file_path" in args:
        return str(args["file_path"])
    if name == "Glob" and "pattern" in args:
        return str(args["pattern"])
    if name == "Grep" and "pattern" in args:
        return f"/{args['pattern']}/"
    return ""


def result_text(content: str | list[Any] | None) -> str:
    """Flatten tool-result content (string or list of text blocks) to text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    parts = [c.get("text", "") for c in content if isinstance(c, dict)]
    return "\n".join(p for p in parts if p)


def print_message(item: StreamItem) -> None:
    """Print a stream item to stdout/stderr in basic text mode."""
    match item:
        case AssistantMessage(content=blocks) | UserMessage(content=blocks):
            for block in blocks:
                _print_block(block)
        case ResultMessage() as r:
            print(file=sys.stderr)
            parts = []
            if r.session_id:
                parts.append(f"Session: {r.session_id}")
            if r.exit_code is not None:
                parts.append(f"Exit: {r.exit_code}")
            tokens = (r.tokens_input or 0) + (r.tokens_output or 0)
            if tokens:
                parts.append(f"Tokens: {tokens:,}")
            if r.cost_usd:
                parts.append(f"Cost: ${r.cost_usd:.4f}")
            if r.error:
                parts.append(f"Error: {r.error}")
            if parts:
                print(" | ".join(parts), file=sys.stderr)
        case CLIJSONDecodeError(message=message):
            print(f"[Decode error] {message}", file=sys.stderr)
        case SystemMessage():
            pass  # Suppress system messages in basic output


def print_json(item: StreamItem) -> None:
    """Echo each message as one JSON line; decode errors go to stderr."""
    if isinstance(item, CLIJSONDecodeError):
        print(f"[Decode error] {item.message}", file=sys.stderr)
        return
    sys.stdout.write(encode_message(item) + "\n")
    sys.stdout.flush()


def _print_block(block: Any) -> None:
    match block:
        case TextBlock(text=t):
            sys.stdout.write(t + "\n")
            sys.stdout.flush()
        case ToolUseBlock(name=name, input=args):
            tool_display = f"[Tool: {name}]"
            if detail := tool_detail(name, args):
                tool_display += f" {detail}"
            print(tool_display, file=sys.stderr)
        case ToolResultBlock(content=content, is_error=is_error):
            text = result_text(content)
            if is_error:
                print(f"[Error] {text[:200]}", file=sys.stderr)
            elif len(text) > 200:
                print(f"[Result] {text[:200]}...", file=sys.stderr)
        case UnknownBlock():
            pass
