"""Message and content-block types produced by the Claude Code CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TextBlock:
    """Plain text output from the model."""

    text: str


@dataclass(frozen=True, slots=True)
class ToolUseBlock:
    """Model requests a tool call."""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ToolResultBlock:
    """Output of a tool call, keyed by the originating tool_use id."""

    tool_use_id: str
    content: str | list[Any] | None = None
    is_error: bool | None = None


@dataclass(frozen=True, slots=True)
class UnknownBlock:
    """A block type this version of the SDK does not know about.

    The raw fields (minus ``type``) are kept in *data* so nothing is lost.
    """

    type: str
    data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_no_discriminator(self.data, "UnknownBlock")


ContentBlock = TextBlock | ToolUseBlock | ToolResultBlock | UnknownBlock


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UserMessage:
    """Content sent on behalf of the caller (prompts, tool results)."""

    content: list[ContentBlock] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class AssistantMessage:
    """One model turn."""

    content: list[ContentBlock] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class SystemMessage:
    """Side-channel metadata (session init, notices)."""

    data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_no_discriminator(self.data, "SystemMessage")

    @property
    def subtype(self) -> str | None:
        value = self.data.get("subtype")
        return value if isinstance(value, str) else None


@dataclass(frozen=True, slots=True)
class ResultMessage:
    """Final status for the whole query."""

    id: str | None = None
    exit_code: int | None = None
    content: str | None = None
    error: str | None = None
    cost_usd: float | None = None
    tokens_input: int | None = None
    tokens_output: int | None = None
    reasoning_tokens: int | None = None
    canceled: bool | None = None
    session_id: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None or (self.exit_code or 0) != 0


Message = UserMessage | AssistantMessage | SystemMessage | ResultMessage


def _check_no_discriminator(data: dict[str, Any], owner: str) -> None:
    # "type" is the wire discriminator; it lives on the object, not in data.
    if "type" in data:
        raise ValueError(f"{owner}.data must not contain a 'type' key")
