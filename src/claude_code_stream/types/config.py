"""Configuration types for the SDK."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType


class PermissionMode(Enum):
    """Permission modes controlling what the CLI may do without asking."""

    DEFAULT = "default"  # CLI prompts for dangerous tools
    ACCEPT_EDITS = "accept_edits"  # Auto-accept file edits
    BYPASS_PERMISSIONS = "bypass_permissions"  # Allow all tools

    @classmethod
    def parse(cls, value: str | PermissionMode) -> PermissionMode:
        """Accept enum members and both ``accept_edits`` / ``accept-edits`` spellings."""
        if isinstance(value, PermissionMode):
            return value
        try:
            return cls(value.strip().lower().replace("-", "_"))
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown permission mode {value!r} (expected one of: {valid})") from None


class DecodeErrorPolicy(Enum):
    """What a query stream does with a line that fails to decode."""

    YIELD = "yield"  # Hand the error to the consumer, keep streaming
    SKIP = "skip"  # Log it and keep streaming
    RAISE = "raise"  # End the stream with the error


@dataclass(frozen=True, slots=True)
class ClaudeCodeOptions:
    """Immutable settings for a single query().

    Build once and pass in; use the ``with_*`` helpers (or
    :func:`dataclasses.replace`) to derive a variant.
    """

    cwd: str | None = None
    allowed_tools: tuple[str, ...] = ()
    permission_mode: PermissionMode = PermissionMode.DEFAULT
    system_prompt: str | None = None
    max_turns: int | None = None
    model: str | None = None
    api_key: str | None = None
    env: Mapping[str, str] = field(default_factory=dict, hash=False)
    cli_path: str | None = None
    disable_safety_suggestions: bool = False
    disable_telemetry: bool = False
    disable_stream: bool = False
    disable_vision: bool = False
    disable_search: bool = False
    decode_error_policy: DecodeErrorPolicy = DecodeErrorPolicy.YIELD

    def __post_init__(self) -> None:
        # Normalise loosely-typed input; frozen, so go through object.__setattr__.
        if isinstance(self.cwd, Path):
            object.__setattr__(self, "cwd", str(self.cwd))
        if not isinstance(self.allowed_tools, tuple):
            object.__setattr__(self, "allowed_tools", tuple(self.allowed_tools))
        object.__setattr__(self, "permission_mode", PermissionMode.parse(self.permission_mode))
        if isinstance(self.decode_error_policy, str):
            object.__setattr__(
                self, "decode_error_policy", DecodeErrorPolicy(self.decode_error_policy),
            )
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))
        if self.max_turns is not None:
            if isinstance(self.max_turns, bool) or not isinstance(self.max_turns, int):
                raise ValueError(f"max_turns must be an integer, got {self.max_turns!r}")
            if self.max_turns <= 0:
                raise ValueError(f"max_turns must be positive, got {self.max_turns}")

    def with_cwd(self, cwd: str | Path) -> ClaudeCodeOptions:
        return replace(self, cwd=str(cwd))

    def with_allowed_tools(self, tools: list[str] | tuple[str, ...]) -> ClaudeCodeOptions:
        return replace(self, allowed_tools=tuple(tools))

    def with_permission_mode(self, mode: str | PermissionMode) -> ClaudeCodeOptions:
        return replace(self, permission_mode=PermissionMode.parse(mode))

    def with_system_prompt(self, prompt: str) -> ClaudeCodeOptions:
        return replace(self, system_prompt=prompt)

    def with_max_turns(self, turns: int) -> ClaudeCodeOptions:
        return replace(self, max_turns=turns)
