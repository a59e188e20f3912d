"""SubprocessCLITransport: runs the Claude Code CLI as a child process."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from claude_code_stream.errors import CLIConnectionError, TransportIOError
from claude_code_stream.transport.base import Transport
from claude_code_stream.transport.launcher import (
    ProcessHandle,
    build_command,
    build_env,
    find_cli_binary,
    launch,
)
from claude_code_stream.types.config import ClaudeCodeOptions

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024
# Bound on reading stderr after exit; a grandchild may still hold the pipe.
_STDERR_GRACE_SECONDS = 2.0
_EXIT_POLL_SECONDS = 0.1


class SubprocessCLITransport(Transport):
    """Owns one CLI process for the lifetime of one query.

    stdout is only read when the consumer asks for more; stderr is drained
    continuously by a background task so the child never stalls on a full
    pipe.
    """

    def __init__(
        self,
        prompt: str,
        options: ClaudeCodeOptions,
        *,
        cli_path: str | None = None,
    ) -> None:
        self._prompt = prompt
        self._options = options
        self._cli_path = cli_path or options.cli_path
        self._handle: ProcessHandle | None = None
        self._stderr_chunks: list[bytes] = []
        self._stderr_task: asyncio.Task[None] | None = None

    @property
    def handle(self) -> ProcessHandle | None:
        return self._handle

    @property
    def pid(self) -> int | None:
        return self._handle.pid if self._handle is not None else None

    @property
    def is_connected(self) -> bool:
        return self._handle is not None and self._handle.is_running

    @property
    def stderr_text(self) -> str:
        return b"".join(self._stderr_chunks).decode("utf-8", errors="replace")

    async def connect(self) -> None:
        if self._handle is not None:
            return

        cli = find_cli_binary(self._cli_path)
        args = build_command(self._prompt, self._options)
        self._handle = await launch(
            cli, args, cwd=self._options.cwd, env=build_env(self._options),
        )
        self._stderr_task = asyncio.create_task(self._drain_stderr(self._handle))

    async def read_chunk(self) -> bytes:
        if self._handle is None:
            raise CLIConnectionError("Not connected")
        try:
            return await self._handle.stdout.read(_CHUNK_SIZE)
        except OSError as exc:
            raise TransportIOError(exc) from exc

    async def wait(self) -> int:
        if self._handle is None:
            raise CLIConnectionError("Not connected")
        handle = self._handle
        task = self._stderr_task
        if task is not None:
            # stderr hits EOF when the CLI exits, unless a grandchild inherited it.
            while not task.done() and handle.returncode is None:
                await asyncio.wait({task}, timeout=_EXIT_POLL_SECONDS)
            if not task.done():
                try:
                    # wait_for cancels the drain task on timeout.
                    await asyncio.wait_for(task, _STDERR_GRACE_SECONDS)
                except TimeoutError:
                    logger.warning(
                        "stderr of pid=%d still open %.1fs after exit; stopped reading it",
                        handle.pid, _STDERR_GRACE_SECONDS,
                    )

        code = handle.returncode
        if code is None or task is None or not task.cancelled():
            code = await handle.wait()
        logger.debug("CLI pid=%d exited with code %d", handle.pid, code)
        return code

    async def disconnect(self) -> None:
        handle = self._handle
        if handle is None:
            return
        if handle.is_running:
            handle.terminate()
            await handle.wait()
        task = self._stderr_task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def kill_nowait(self) -> None:
        if self._handle is not None:
            self._handle.terminate()

    async def _drain_stderr(self, handle: ProcessHandle) -> None:
        try:
            while chunk := await handle.stderr.read(_CHUNK_SIZE):
                self._stderr_chunks.append(chunk)
        except OSError as exc:
            logger.debug("stderr read failed for pid=%d: %s", handle.pid, exc)
