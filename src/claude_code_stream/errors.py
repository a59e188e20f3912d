"""Error types raised or yielded by the SDK."""

from __future__ import annotations

_MAX_LINE_PREVIEW = 200


class ClaudeSDKError(Exception):
    """Base class for every error the SDK raises."""


class CLIConnectionError(ClaudeSDKError):
    """The CLI process could not be started."""

    def __init__(self, message: str) -> None:
        super().__init__(f"CLI connection error: {message}")
        self.message = message


class CLINotFoundError(CLIConnectionError):
    """The Claude Code CLI executable could not be located."""

    def __init__(self, message: str | None = None) -> None:
        ClaudeSDKError.__init__(
            self,
            "Claude Code CLI not found. "
            "Please install it with: npm install -g @anthropic-ai/claude-code",
        )
        self.message = message or "Claude Code CLI not found"


class ProcessError(ClaudeSDKError):
    """The CLI exited with a non-zero status."""

    def __init__(self, exit_code: int, stderr: str = "") -> None:
        super().__init__(f"Process failed with exit code {exit_code}: {stderr}")
        self.exit_code = exit_code
        self.stderr = stderr


class CLIJSONDecodeError(ClaudeSDKError):
    """A stdout line was not a valid message.

    Not fatal: the stream keeps going after one of these unless the
    decode-error policy says otherwise.
    """

    def __init__(self, message: str, line: str | None = None) -> None:
        super().__init__(f"Failed to decode JSON response: {message}")
        self.message = message
        self.line = _preview(line) if line is not None else None


class TransportIOError(ClaudeSDKError):
    """Reading from the CLI's pipes failed."""

    def __init__(self, error: OSError | str) -> None:
        super().__init__(f"I/O error: {error}")
        self.error = error


def _preview(line: str) -> str:
    """Truncate *line* for inclusion in an error."""
    if len(line) > _MAX_LINE_PREVIEW:
        return line[:_MAX_LINE_PREVIEW] + "..."
    return line
