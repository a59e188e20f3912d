"""Tests for QueryStream driven by a scripted transport."""

from __future__ import annotations

import gc

import pytest

from claude_code_stream.core.query import QueryStream, StreamState, query
from claude_code_stream.errors import (
    CLIConnectionError,
    CLIJSONDecodeError,
    CLINotFoundError,
    ProcessError,
    TransportIOError,
)
from claude_code_stream.types.config import ClaudeCodeOptions, DecodeErrorPolicy
from claude_code_stream.types.messages import (
    AssistantMessage,
    ResultMessage,
    SystemMessage,
    TextBlock,
)
from tests.conftest import FakeTransport, lines

SYSTEM = '{"type":"system","subtype":"init","session_id":"s1"}'
ASSISTANT = '{"type":"assistant","content":[{"type":"text","text":"hi"}]}'
RESULT = '{"type":"result","exit_code":0,"content":"done"}'


async def collect(stream: QueryStream) -> list:
    return [item async for item in stream]


def _opts(policy: DecodeErrorPolicy = DecodeErrorPolicy.YIELD) -> ClaudeCodeOptions:
    return ClaudeCodeOptions(decode_error_policy=policy)


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_messages_in_order(self):
        transport = FakeTransport([lines(SYSTEM, ASSISTANT, RESULT)])
        stream = await query("hi", _transport=transport)
        assert stream.state is StreamState.STREAMING

        items = await collect(stream)

        assert [type(i) for i in items] == [SystemMessage, AssistantMessage, ResultMessage]
        assert items[1] == AssistantMessage(content=[TextBlock(text="hi")])
        assert stream.state is StreamState.CLOSED
        assert stream.exit_code == 0
        assert stream.message_count == 3
        assert transport.waited
        assert transport.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_lines_split_across_chunks(self):
        data = lines(SYSTEM, RESULT)
        chunks = [data[i:i + 7] for i in range(0, len(data), 7)]
        items = await collect(await query("hi", _transport=FakeTransport(chunks)))
        assert [type(i) for i in items] == [SystemMessage, ResultMessage]

    @pytest.mark.asyncio
    async def test_blank_lines_skipped(self):
        transport = FakeTransport([b"\n", lines(SYSTEM), b"  \r\n", lines(RESULT)])
        items = await collect(await query("hi", _transport=transport))
        assert len(items) == 2

    @pytest.mark.asyncio
    async def test_empty_output(self):
        stream = await query("hi", _transport=FakeTransport([]))
        assert await collect(stream) == []
        assert stream.state is StreamState.CLOSED

    @pytest.mark.asyncio
    async def test_iteration_after_end_stops(self):
        stream = await query("hi", _transport=FakeTransport([lines(RESULT)]))
        await collect(stream)
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_message_after_result_is_still_delivered(self):
        transport = FakeTransport([lines(RESULT, SYSTEM)])
        items = await collect(await query("hi", _transport=transport))
        assert [type(i) for i in items] == [ResultMessage, SystemMessage]


class TestBackpressure:
    @pytest.mark.asyncio
    async def test_reads_only_on_demand(self):
        transport = FakeTransport([lines(SYSTEM, ASSISTANT), lines(RESULT)])
        stream = await query("hi", _transport=transport)
        assert transport.reads == 0

        await stream.__anext__()
        assert transport.reads == 1
        # Second message was already buffered by the first read.
        await stream.__anext__()
        assert transport.reads == 1

        await stream.__anext__()
        assert transport.reads == 2
        await stream.aclose()


class TestDecodeErrors:
    @pytest.mark.asyncio
    async def test_yield_policy_continues(self):
        transport = FakeTransport([lines(SYSTEM, "not json", RESULT)])
        stream = await query("hi", _opts(DecodeErrorPolicy.YIELD), _transport=transport)
        items = await collect(stream)

        assert isinstance(items[0], SystemMessage)
        assert isinstance(items[1], CLIJSONDecodeError)
        assert items[1].line == "not json"
        assert isinstance(items[2], ResultMessage)
        assert stream.message_count == 2
        assert stream.state is StreamState.CLOSED

    @pytest.mark.asyncio
    async def test_skip_policy(self):
        transport = FakeTransport([lines(SYSTEM, '{"type":"bogus"}', RESULT)])
        items = await collect(
            await query("hi", _opts(DecodeErrorPolicy.SKIP), _transport=transport)
        )
        assert [type(i) for i in items] == [SystemMessage, ResultMessage]

    @pytest.mark.asyncio
    async def test_raise_policy_fails_stream(self):
        transport = FakeTransport([lines(SYSTEM, "{oops", RESULT)])
        stream = await query("hi", _opts(DecodeErrorPolicy.RAISE), _transport=transport)

        assert isinstance(await stream.__anext__(), SystemMessage)
        with pytest.raises(CLIJSONDecodeError):
            await stream.__anext__()
        assert stream.state is StreamState.FAILED
        assert transport.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_unterminated_final_line(self):
        fragment = b'{"type":"result","exit_code":0'
        transport = FakeTransport([lines(SYSTEM), fragment])
        items = await collect(await query("hi", _transport=transport))

        assert isinstance(items[0], SystemMessage)
        assert isinstance(items[1], CLIJSONDecodeError)
        assert items[1].line == fragment.decode()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_line", [
        '{"type":"result","tokens_input":' + "9" * 5000 + "}",
        "[" * 100_000 + "]" * 100_000,
    ], ids=["huge-int", "deep-nesting"])
    async def test_unparseable_json_does_not_end_stream(self, bad_line):
        transport = FakeTransport([lines(SYSTEM, bad_line, RESULT)])
        stream = await query("hi", _transport=transport)
        items = await collect(stream)

        assert isinstance(items[0], SystemMessage)
        assert isinstance(items[1], CLIJSONDecodeError)
        assert isinstance(items[2], ResultMessage)
        assert stream.state is StreamState.CLOSED

    @pytest.mark.asyncio
    async def test_unterminated_valid_final_line(self):
        transport = FakeTransport([lines(SYSTEM), RESULT.encode()])
        items = await collect(await query("hi", _transport=transport))
        assert [type(i) for i in items] == [SystemMessage, ResultMessage]


class TestTerminalErrors:
    @pytest.mark.asyncio
    async def test_nonzero_exit_after_messages(self):
        transport = FakeTransport(
            [lines(SYSTEM, ASSISTANT)], exit_code=1, stderr="Error: Invalid API key\n",
        )
        stream = await query("hi", _transport=transport)

        received = []
        with pytest.raises(ProcessError) as exc_info:
            async for item in stream:
                received.append(item)

        assert len(received) == 2
        assert exc_info.value.exit_code == 1
        assert "Invalid API key" in exc_info.value.stderr
        assert stream.exit_code == 1
        assert stream.state is StreamState.CLOSED
        assert transport.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_io_error(self):
        transport = FakeTransport([lines(SYSTEM), lines(RESULT)], fail_after_reads=1)
        stream = await query("hi", _transport=transport)

        assert isinstance(await stream.__anext__(), SystemMessage)
        with pytest.raises(TransportIOError, match="Broken pipe"):
            await stream.__anext__()
        assert stream.state is StreamState.FAILED
        assert transport.disconnect_calls == 1
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_launch_error_raised_from_query(self):
        transport = FakeTransport(connect_error=CLINotFoundError())
        with pytest.raises(CLINotFoundError):
            await query("hi", _transport=transport)
        assert transport.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_iterating_unstarted_stream(self):
        stream = QueryStream(FakeTransport([lines(RESULT)]))
        assert stream.state is StreamState.STARTING
        with pytest.raises(CLIConnectionError, match="not been started"):
            await stream.__anext__()


class TestEarlyClose:
    @pytest.mark.asyncio
    async def test_aclose_releases_transport(self):
        transport = FakeTransport([lines(SYSTEM, ASSISTANT, RESULT)])
        stream = await query("hi", _transport=transport)
        await stream.__anext__()

        await stream.aclose()

        assert stream.state is StreamState.CLOSED
        assert transport.disconnect_calls == 1
        assert not transport.waited
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_aclose_is_idempotent(self):
        transport = FakeTransport([lines(RESULT)])
        stream = await query("hi", _transport=transport)
        await stream.aclose()
        await stream.aclose()
        assert transport.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_async_with_closes_on_break(self):
        transport = FakeTransport([lines(SYSTEM, ASSISTANT, RESULT)])
        async with await query("hi", _transport=transport) as stream:
            async for _ in stream:
                break
        assert stream.state is StreamState.CLOSED
        assert transport.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_async_with_after_full_read(self):
        transport = FakeTransport([lines(RESULT)])
        async with await query("hi", _transport=transport) as stream:
            await collect(stream)
        assert transport.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_async_with_starts_stream(self):
        transport = FakeTransport([lines(RESULT)])
        async with QueryStream(transport) as stream:
            assert stream.state is StreamState.STREAMING
            assert transport.is_connected

    @pytest.mark.asyncio
    async def test_dropped_stream_kills_process(self):
        transport = FakeTransport([lines(SYSTEM, ASSISTANT, RESULT)])
        stream = await query("hi", _transport=transport)
        async for _ in stream:
            break

        del stream
        gc.collect()

        assert transport.killed

    @pytest.mark.asyncio
    async def test_finished_stream_not_killed_on_drop(self):
        transport = FakeTransport([lines(RESULT)])
        stream = await query("hi", _transport=transport)
        await collect(stream)

        del stream
        gc.collect()

        assert not transport.killed
