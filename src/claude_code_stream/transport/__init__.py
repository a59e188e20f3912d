"""Transports that run the Claude Code CLI and read its output."""

from claude_code_stream.transport.base import Transport
from claude_code_stream.transport.launcher import (
    ProcessHandle,
    build_command,
    build_env,
    find_cli_binary,
    launch,
)
from claude_code_stream.transport.lines import LineDecoder, iter_lines
from claude_code_stream.transport.subprocess_cli import SubprocessCLITransport

__all__ = [
    "LineDecoder",
    "ProcessHandle",
    "SubprocessCLITransport",
    "Transport",
    "build_command",
    "build_env",
    "find_cli_binary",
    "iter_lines",
    "launch",
]
