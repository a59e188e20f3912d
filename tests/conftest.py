"""Test fixtures: scripted transports and fake CLI executables."""

from __future__ import annotations

import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from claude_code_stream.errors import CLIConnectionError, TransportIOError
from claude_code_stream.transport.base import Transport


class FakeTransport(Transport):
    """A deterministic transport that replays scripted stdout chunks.

    Usage:
        transport = FakeTransport(
            chunks=[b'{"type":"system"}\\n', b'{"type":"result"}\\n'],
            exit_code=0,
        )
    """

    def __init__(
        self,
        chunks: list[bytes] | None = None,
        *,
        exit_code: int = 0,
        stderr: str = "",
        connect_error: Exception | None = None,
        fail_after_reads: int | None = None,
    ) -> None:
        self._chunks = list(chunks or [])
        self._exit_code = exit_code
        self._stderr = stderr
        self._connect_error = connect_error
        self._fail_after_reads = fail_after_reads
        self._connected = False
        self.reads = 0
        self.waited = False
        self.disconnect_calls = 0
        self.killed = False

    async def connect(self) -> None:
        if self._connect_error is not None:
            raise self._connect_error
        self._connected = True

    async def read_chunk(self) -> bytes:
        if not self._connected:
            raise CLIConnectionError("Not connected")
        if self._fail_after_reads is not None and self.reads >= self._fail_after_reads:
            raise TransportIOError(OSError("Broken pipe"))
        self.reads += 1
        return self._chunks.pop(0) if self._chunks else b""

    async def wait(self) -> int:
        self.waited = True
        return self._exit_code

    @property
    def stderr_text(self) -> str:
        return self._stderr

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def disconnect(self) -> None:
        self.disconnect_calls += 1
        self._connected = False

    def kill_nowait(self) -> None:
        self.killed = True


def lines(*objs: str) -> bytes:
    """Join raw JSON strings into one newline-terminated chunk."""
    return "".join(o + "\n" for o in objs).encode()


@pytest.fixture
def make_cli(tmp_path: Path) -> Callable[..., str]:
    """Factory writing an executable Python script that stands in for the CLI.

    The body runs with ``sys``, ``os``, ``json`` and ``time`` imported.
    """

    def _make(body: str, name: str = "fake-claude") -> str:
        path = tmp_path / name
        header = f"#!{sys.executable}\nimport json, os, sys, time\n"
        path.write_text(header + textwrap.dedent(body))
        path.chmod(0o755)
        return str(path)

    return _make
