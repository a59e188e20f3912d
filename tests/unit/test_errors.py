"""Tests for claude_code_stream.errors."""

from __future__ import annotations

import pytest

from claude_code_stream.errors import (
    ClaudeSDKError,
    CLIConnectionError,
    CLIJSONDecodeError,
    CLINotFoundError,
    ProcessError,
    TransportIOError,
)


class TestErrorMessages:
    def test_cli_connection_error(self):
        err = CLIConnectionError("Connection failed")
        assert err.message == "Connection failed"
        assert str(err) == "CLI connection error: Connection failed"

    def test_cli_not_found_error(self):
        err = CLINotFoundError()
        assert str(err) == (
            "Claude Code CLI not found. "
            "Please install it with: npm install -g @anthropic-ai/claude-code"
        )

    def test_cli_not_found_keeps_detail(self):
        err = CLINotFoundError("Executable not found: /nope")
        assert err.message == "Executable not found: /nope"
        assert "npm install" in str(err)

    def test_process_error(self):
        err = ProcessError(1, "Command failed")
        assert err.exit_code == 1
        assert err.stderr == "Command failed"
        assert str(err) == "Process failed with exit code 1: Command failed"

    def test_json_decode_error(self):
        err = CLIJSONDecodeError("Invalid JSON", line="{oops")
        assert err.message == "Invalid JSON"
        assert err.line == "{oops"
        assert str(err) == "Failed to decode JSON response: Invalid JSON"

    def test_json_decode_error_truncates_long_line(self):
        err = CLIJSONDecodeError("bad", line="x" * 1000)
        assert err.line is not None
        assert len(err.line) == 203
        assert err.line.endswith("...")

    def test_io_error_wraps_os_error(self):
        os_err = OSError("Broken pipe")
        err = TransportIOError(os_err)
        assert err.error is os_err
        assert str(err) == "I/O error: Broken pipe"


class TestHierarchy:
    @pytest.mark.parametrize("err", [
        CLINotFoundError(),
        CLIConnectionError("x"),
        ProcessError(2, ""),
        CLIJSONDecodeError("x"),
        TransportIOError("x"),
    ])
    def test_all_errors_share_base(self, err):
        assert isinstance(err, ClaudeSDKError)

    def test_not_found_is_a_launch_failure(self):
        with pytest.raises(CLIConnectionError):
            raise CLINotFoundError()
