import asyncio
import io
import json

import pytest

from fsgate.protocol.base import PARSE_ERROR
from fsgate.transport.stdio.server import (
    StdioServerTransport,
    decode_line,
    encode_line,
)


def make_reader(*lines: str, eof: bool = True) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data(line.encode("utf-8"))
    if eof:
        reader.feed_eof()
    return reader


async def collect(transport: StdioServerTransport) -> list:
    return [message async for message in transport.client_messages()]


class TestReply:
    async def test_reply_writes_one_json_line(self):
        # Arrange
        output = io.StringIO()
        transport = StdioServerTransport(reader=make_reader(), output=output)
        message = {"jsonrpc": "2.0", "id": 1, "result": {"content": "é"}}

        # Act
        await transport.reply("any-client-id", message)

        # Assert
        assert output.getvalue() == (
            '{"jsonrpc":"2.0","id":1,"result":{"content":"é"}}\n'
        )

    async def test_reply_raises_value_error_for_invalid_message(self):
        # Arrange
        transport = StdioServerTransport(reader=make_reader(), output=io.StringIO())
        bad_message = {"method": lambda: None}

        # Act & Assert
        with pytest.raises(ValueError):
            await transport.reply("client-id", bad_message)

    async def test_reply_after_close_fails(self):
        # Arrange
        transport = StdioServerTransport(reader=make_reader(), output=io.StringIO())
        await transport.close()

        # Act & Assert
        with pytest.raises(ConnectionError):
            await transport.reply("client-id", {"jsonrpc": "2.0", "id": 1})


class TestClientMessages:
    async def test_yields_each_line_until_eof(self):
        # Arrange
        reader = make_reader(
            '{"jsonrpc":"2.0","id":1,"method":"FileSystem.getIDEWorkspaceRoots"}\n',
            '{"jsonrpc":"2.0","id":2,"method":"FileSystem.getIDEWorkspaceRoots"}\n',
        )
        transport = StdioServerTransport(reader=reader, output=io.StringIO())

        # Act
        messages = await collect(transport)

        # Assert
        assert [m.payload["id"] for m in messages] == [1, 2]
        assert {m.client_id for m in messages} == {"stdio-client"}

    async def test_blank_lines_are_skipped(self):
        # Arrange
        reader = make_reader("\n", "   \n", '{"jsonrpc":"2.0","method":"x"}\n')
        output = io.StringIO()
        transport = StdioServerTransport(reader=reader, output=output)

        # Act
        messages = await collect(transport)

        # Assert
        assert len(messages) == 1
        assert output.getvalue() == ""

    async def test_invalid_json_gets_parse_error(self):
        # Arrange
        reader = make_reader("{not json\n", '{"jsonrpc":"2.0","method":"x"}\n')
        output = io.StringIO()
        transport = StdioServerTransport(reader=reader, output=output)

        # Act
        messages = await collect(transport)

        # Assert
        assert len(messages) == 1
        reply = json.loads(output.getvalue())
        assert reply["id"] is None
        assert reply["error"]["code"] == PARSE_ERROR

    async def test_close_stops_reading(self):
        # Arrange
        reader = make_reader('{"jsonrpc":"2.0","method":"x"}\n', eof=False)
        transport = StdioServerTransport(reader=reader, output=io.StringIO())
        iterator = transport.client_messages()
        first = await iterator.__anext__()

        # Act
        await transport.close()
        reader.feed_data(b'{"jsonrpc":"2.0","method":"y"}\n')

        # Assert
        assert first.payload["method"] == "x"
        assert not transport.is_open
        with pytest.raises(StopAsyncIteration):
            await iterator.__anext__()


class TestLineFraming:
    def test_decode_line_reads_object(self):
        # Act
        message = decode_line('  {"jsonrpc": "2.0", "id": 1}\n')

        # Assert
        assert message == {"jsonrpc": "2.0", "id": 1}

    @pytest.mark.parametrize("line", ["", "   \n", "{broken", "[1, 2]", '"text"'])
    def test_decode_line_returns_none_for_unusable_lines(self, line):
        # Act & Assert
        assert decode_line(line) is None

    def test_encode_line_keeps_unicode_and_escapes_newlines(self):
        # Act
        line = encode_line({"content": "héllo\r\nwörld"})

        # Assert
        assert line == '{"content":"héllo\\r\\nwörld"}'

    def test_encode_line_rejects_unserializable(self):
        # Act & Assert
        with pytest.raises(ValueError):
            encode_line({"bad": object()})
