"""QueryStream: drives one CLI run and yields its messages in order."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from enum import Enum
from typing import Any

from claude_code_stream.core.parser import parse_message
from claude_code_stream.errors import CLIConnectionError, CLIJSONDecodeError, ProcessError
from claude_code_stream.observability.tracing import end_span, start_span
from claude_code_stream.transport.base import Transport
from claude_code_stream.transport.lines import LineDecoder
from claude_code_stream.transport.subprocess_cli import SubprocessCLITransport
from claude_code_stream.types.config import ClaudeCodeOptions, DecodeErrorPolicy
from claude_code_stream.types.messages import Message, ResultMessage

logger = logging.getLogger(__name__)

StreamItem = Message | CLIJSONDecodeError


class StreamState(Enum):
    """Lifecycle of a query stream."""

    STARTING = "starting"  # Launch requested
    STREAMING = "streaming"  # Reading stdout
    DRAINING = "draining"  # stdout closed, waiting for exit status
    CLOSED = "closed"  # Finished: clean exit, process failure, or closed by the consumer
    FAILED = "failed"  # Launch or I/O failure


class QueryStream:
    """Async iterator over the messages of one query.

    Each item is a :data:`Message`, or a :class:`CLIJSONDecodeError` for a
    line that could not be decoded (when the policy is ``YIELD``).
    Terminal failures are raised: :class:`ProcessError` after the last
    message when the CLI exits non-zero, :class:`TransportIOError` as soon as
    a pipe read fails.

    The process is terminated if the stream is closed, cancelled, or
    garbage-collected before it finishes::

        async with await query("Hello") as stream:
            async for msg in stream:
                ...
    """

    def __init__(
        self,
        transport: Transport,
        *,
        decode_error_policy: DecodeErrorPolicy = DecodeErrorPolicy.YIELD,
        span_attributes: dict[str, Any] | None = None,
    ) -> None:
        self._transport = transport
        self._policy = decode_error_policy
        self._decoder = LineDecoder()
        self._pending: deque[str] = deque()
        self._eof = False
        self._state = StreamState.STARTING
        self._finished = False
        self._exit_code: int | None = None
        self._seen_result = False
        self._message_count = 0
        self._decode_error_count = 0
        self._span = start_span("claude_code.query", attributes=span_attributes)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def exit_code(self) -> int | None:
        """The CLI's exit code once the stream has drained, else None."""
        return self._exit_code

    @property
    def stderr(self) -> str:
        return self._transport.stderr_text

    @property
    def message_count(self) -> int:
        return self._message_count

    async def start(self) -> None:
        """Launch the CLI. Launch errors are raised here, not from iteration."""
        if self._state is not StreamState.STARTING:
            return
        try:
            await self._transport.connect()
        except BaseException as exc:
            await self._close(StreamState.FAILED, exc)
            raise
        self._state = StreamState.STREAMING
        if (pid := self._transport.pid) is not None:
            self._span.set_attribute("claude_code.pid", pid)

    async def aclose(self) -> None:
        """Stop early: kill the CLI if it is still running and release it."""
        if not self._finished:
            logger.debug("Query stream closed by consumer in state %s", self._state.value)
            await self._close(StreamState.CLOSED, cancelled=True)

    def __aiter__(self) -> QueryStream:
        return self

    async def __anext__(self) -> StreamItem:
        if self._finished:
            raise StopAsyncIteration
        if self._state is StreamState.STARTING:
            raise CLIConnectionError("Query stream has not been started")

        try:
            return await self._next_item()
        except StopAsyncIteration:
            raise
        except ProcessError as exc:
            await self._close(StreamState.CLOSED, exc)
            raise
        except asyncio.CancelledError:
            await self._close(StreamState.CLOSED, cancelled=True)
            raise
        except Exception as exc:
            await self._close(StreamState.FAILED, exc)
            raise

    async def __aenter__(self) -> QueryStream:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def __del__(self) -> None:
        # Last-resort cleanup for streams dropped without aclose().
        if not getattr(self, "_finished", True) and self._state is not StreamState.STARTING:
            self._transport.kill_nowait()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _next_item(self) -> StreamItem:
        while True:
            line = await self._next_line()
            if line is None:
                await self._drain()
                raise StopAsyncIteration
            if not line.strip():
                continue

            try:
                msg = parse_message(line)
            except CLIJSONDecodeError as exc:
                self._decode_error_count += 1
                if self._policy is DecodeErrorPolicy.YIELD:
                    return exc
                if self._policy is DecodeErrorPolicy.RAISE:
                    raise
                logger.warning("Skipping undecodable line: %s", exc.message)
                continue

            if self._seen_result:
                logger.warning("Received %s after the result message", type(msg).__name__)
            if isinstance(msg, ResultMessage):
                self._seen_result = True
            self._message_count += 1
            return msg

    async def _next_line(self) -> str | None:
        """Next decoded line, reading from the transport only when none is buffered."""
        while not self._pending:
            if self._eof:
                return None
            chunk = await self._transport.read_chunk()
            if chunk:
                self._pending.extend(self._decoder.feed(chunk))
            else:
                self._eof = True
                self._pending.extend(self._decoder.flush())
        return self._pending.popleft()

    async def _drain(self) -> None:
        self._state = StreamState.DRAINING
        code = await self._transport.wait()
        self._exit_code = code
        if code != 0:
            raise ProcessError(code, self._transport.stderr_text)
        await self._close(StreamState.CLOSED)

    async def _close(
        self,
        state: StreamState,
        error: BaseException | None = None,
        *,
        cancelled: bool = False,
    ) -> None:
        if self._finished:
            return
        self._finished = True
        self._state = state
        try:
            await self._transport.disconnect()
        finally:
            self._span.set_attribute("claude_code.messages", self._message_count)
            self._span.set_attribute("claude_code.decode_errors", self._decode_error_count)
            if self._exit_code is not None:
                self._span.set_attribute("claude_code.exit_code", self._exit_code)
            if cancelled:
                self._span.set_attribute("claude_code.cancelled", True)
            end_span(self._span, error)


async def query(
    prompt: str,
    options: ClaudeCodeOptions | None = None,
    *,
    _transport: Transport | None = None,
) -> QueryStream:
    """Run *prompt* through the Claude Code CLI.

    This is the primary SDK entry point. It returns as soon as the CLI has
    been launched; iterate the returned stream to receive messages.

    Args:
        prompt: The prompt to send.
        options: Query settings. Defaults to ``ClaudeCodeOptions()``.
        _transport: Injected transport for testing (private).

    Raises:
        CLINotFoundError: The CLI executable could not be found.
        CLIConnectionError: The CLI could not be started.
    """
    options = options or ClaudeCodeOptions()
    transport = _transport or SubprocessCLITransport(prompt, options)
    stream = QueryStream(
        transport,
        decode_error_policy=options.decode_error_policy,
        span_attributes={
            "claude_code.permission_mode": options.permission_mode.value,
            "claude_code.prompt_length": len(prompt),
        },
    )
    await stream.start()
    return stream
