"""Parse CLI output lines into typed messages, and encode them back."""

from __future__ import annotations

import json
from typing import Any

from claude_code_stream.errors import CLIJSONDecodeError
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

# Optional ResultMessage fields and the JSON types they accept.
_RESULT_FIELDS: dict[str, tuple[type, ...]] = {
    "id": (str,),
    "exit_code": (int,),
    "content": (str,),
    "error": (str,),
    "cost_usd": (int, float),
    "tokens_input": (int,),
    "tokens_output": (int,),
    "reasoning_tokens": (int,),
    "canceled": (bool,),
    "session_id": (str,),
}


class _FieldError(Exception):
    """Internal: a required field is missing or has the wrong type."""


def parse_message(line: str) -> Message:
    """Decode one stdout line into a :data:`Message`.

    Raises:
        CLIJSONDecodeError: The line is not JSON, or not a known message shape.
    """
    try:
        data = json.loads(line)
    except (ValueError, RecursionError) as exc:
        # ValueError covers JSONDecodeError and the int digit limit.
        raise CLIJSONDecodeError(f"Failed to parse JSON: {exc}", line=line) from exc

    try:
        return parse_data(data)
    except CLIJSONDecodeError as exc:
        raise CLIJSONDecodeError(exc.message, line=line) from None


def parse_data(data: Any) -> Message:
    """Build a :data:`Message` from an already-decoded JSON value."""
    if not isinstance(data, dict):
        raise CLIJSONDecodeError(f"expected a JSON object, got {_json_type(data)}")

    msg_type = data.get("type")
    if msg_type is None:
        raise CLIJSONDecodeError("message is missing the 'type' field")
    if not isinstance(msg_type, str):
        raise CLIJSONDecodeError("message field 'type' must be a string")

    try:
        match msg_type:
            case "user":
                return UserMessage(content=_parse_content(data, "user"))
            case "assistant":
                return AssistantMessage(content=_parse_content(data, "assistant"))
            case "system":
                return SystemMessage(data={k: v for k, v in data.items() if k != "type"})
            case "result":
                return _parse_result(data)
            case _:
                raise CLIJSONDecodeError(f"unknown message type: {msg_type}")
    except _FieldError as exc:
        raise CLIJSONDecodeError(str(exc)) from None


def parse_content_block(data: Any) -> ContentBlock:
    """Build a :data:`ContentBlock`; unknown block types become :class:`UnknownBlock`."""
    try:
        return _parse_block(data)
    except _FieldError as exc:
        raise CLIJSONDecodeError(str(exc)) from None


def _parse_content(data: dict[str, Any], msg_type: str) -> list[ContentBlock]:
    # Newer CLIs nest the payload under "message".
    if "content" not in data and isinstance(data.get("message"), dict):
        data = data["message"]
    if "content" not in data:
        raise _FieldError(f"{msg_type} message is missing the 'content' field")

    content = data["content"]
    if isinstance(content, str) and msg_type == "user":
        return [TextBlock(text=content)]
    if not isinstance(content, list):
        raise _FieldError(f"{msg_type} message field 'content' must be a list")
    return [_parse_block(block) for block in content]


def _parse_block(block: Any) -> ContentBlock:
    if not isinstance(block, dict):
        raise _FieldError(f"content block must be an object, got {_json_type(block)}")
    block_type = block.get("type")
    if not isinstance(block_type, str):
        raise _FieldError("content block is missing a string 'type' field")

    match block_type:
        case "text":
            return TextBlock(text=_require(block, "text", str, "text block"))
        case "tool_use":
            tool_input = block.get("input", {})
            if not isinstance(tool_input, dict):
                raise _FieldError("tool_use block field 'input' must be an object")
            return ToolUseBlock(
                id=_require(block, "id", str, "tool_use block"),
                name=_require(block, "name", str, "tool_use block"),
                input=tool_input,
            )
        case "tool_result":
            content = block.get("content")
            if content is not None and not isinstance(content, (str, list)):
                raise _FieldError("tool_result block field 'content' must be a string or list")
            is_error = block.get("is_error")
            if is_error is not None and not isinstance(is_error, bool):
                raise _FieldError("tool_result block field 'is_error' must be a boolean")
            return ToolResultBlock(
                tool_use_id=_require(block, "tool_use_id", str, "tool_result block"),
                content=content,
                is_error=is_error,
            )
        case _:
            return UnknownBlock(
                type=block_type,
                data={k: v for k, v in block.items() if k != "type"},
            )


def _parse_result(data: dict[str, Any]) -> ResultMessage:
    fields: dict[str, Any] = {}
    for name, types in _RESULT_FIELDS.items():
        value = data.get(name)
        if value is None:
            continue
        # bool is an int subclass; only accept it where bool is the declared type.
        if (isinstance(value, bool) and bool not in types) or not isinstance(value, types):
            raise _FieldError(
                f"result message field '{name}' must be {_type_names(types)}, "
                f"got {_json_type(value)}"
            )
        fields[name] = float(value) if name == "cost_usd" else value
    return ResultMessage(**fields)


def _require(block: dict[str, Any], key: str, typ: type, what: str) -> Any:
    if key not in block:
        raise _FieldError(f"{what} is missing the '{key}' field")
    value = block[key]
    if not isinstance(value, typ):
        raise _FieldError(f"{what} field '{key}' must be {_type_names((typ,))}")
    return value


def _json_type(value: Any) -> str:
    match value:
        case None:
            return "null"
        case bool():
            return "boolean"
        case int() | float():
            return "number"
        case str():
            return "string"
        case list():
            return "array"
        case dict():
            return "object"
    return type(value).__name__


def _type_names(types: tuple[type, ...]) -> str:
    names = {str: "a string", int: "an integer", float: "a number", bool: "a boolean"}
    if float in types:
        return "a number"
    return " or ".join(names.get(t, t.__name__) for t in types)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def content_block_to_dict(block: ContentBlock) -> dict[str, Any]:
    match block:
        case TextBlock(text=text):
            return {"type": "text", "text": text}
        case ToolUseBlock(id=id_, name=name, input=tool_input):
            return {"type": "tool_use", "id": id_, "name": name, "input": tool_input}
        case ToolResultBlock(tool_use_id=tool_use_id, content=content, is_error=is_error):
            out: dict[str, Any] = {"type": "tool_result", "tool_use_id": tool_use_id}
            if content is not None:
                out["content"] = content
            if is_error is not None:
                out["is_error"] = is_error
            return out
        case UnknownBlock(type=block_type, data=data):
            return {**data, "type": block_type}
    raise TypeError(f"Not a content block: {block!r}")


def message_to_dict(msg: Message) -> dict[str, Any]:
    """Inverse of :func:`parse_data`."""
    match msg:
        case UserMessage(content=content):
            return {"type": "user", "content": [content_block_to_dict(b) for b in content]}
        case AssistantMessage(content=content):
            return {"type": "assistant", "content": [content_block_to_dict(b) for b in content]}
        case SystemMessage(data=data):
            return {**data, "type": "system"}
        case ResultMessage():
            out: dict[str, Any] = {"type": "result"}
            for name in _RESULT_FIELDS:
                value = getattr(msg, name)
                if value is not None:
                    out[name] = value
            return out
    raise TypeError(f"Not a message: {msg!r}")


def encode_message(msg: Message) -> str:
    """Serialize *msg* as a single compact JSON line (no trailing newline)."""
    return json.dumps(message_to_dict(msg), separators=(",", ":"), ensure_ascii=False)
