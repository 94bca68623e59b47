import asyncio
import json
import logging
import sys
import time
from typing import Any, AsyncIterator, TextIO

from fsgate.protocol.base import PARSE_ERROR, Error
from fsgate.protocol.jsonrpc import JSONRPCError
from fsgate.transport.server import ClientMessage, ServerTransport

logger = logging.getLogger(__name__)

STDIO_CLIENT_ID = "stdio-client"


def decode_line(line: str) -> dict[str, Any] | None:
    """Decode one input line into a JSON object.

    Returns None for blank lines, invalid JSON and JSON that is not an
    object; the caller decides which of those deserve a parse error.
    """
    line = line.strip()
    if not line:
        return None
    try:
        message = json.loads(line)
    except json.JSONDecodeError:
        return None
    return message if isinstance(message, dict) else None


def encode_line(message: dict[str, Any]) -> str:
    """Encode a message as compact single-line JSON, newline not included.

    File contents travel inside these messages, so non-ASCII text is written
    as-is and newlines stay escaped.

    Raises:
        ValueError: If the message is not JSON serializable.
    """
    try:
        return json.dumps(message, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Failed to serialize message to JSON: {e}") from e


class StdioServerTransport(ServerTransport):
    """Newline-delimited JSON-RPC over stdin/stdout with a single client.

    The IDE launches us as a subprocess; end of input ends the message
    stream so pending requests can drain before exit.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader | None = None,
        output: TextIO | None = None,
    ) -> None:
        """
        Args:
            reader: Stream to read from. Defaults to an async reader on stdin,
                created lazily.
            output: Text stream to write to. Defaults to stdout.
        """
        self._stdin_reader = reader
        self._output = output
        self._closed = False

    async def _setup_stdin_reader(self) -> asyncio.StreamReader:
        if self._stdin_reader is None:
            self._stdin_reader = asyncio.StreamReader()
            protocol = asyncio.StreamReaderProtocol(self._stdin_reader)
            await asyncio.get_running_loop().connect_read_pipe(
                lambda: protocol, sys.stdin
            )
        return self._stdin_reader

    async def reply(self, client_id: str, message: dict[str, Any]) -> None:
        """Write one line to stdout. `client_id` is ignored; there is one peer."""
        if self._closed:
            raise ConnectionError("Cannot reply: transport is closed")
        line = encode_line(message)
        output = self._output or sys.stdout
        try:
            output.write(line + "\n")
            output.flush()
        except OSError as e:
            raise ConnectionError(f"Failed to write to stdout: {e}") from e

    def client_messages(self) -> AsyncIterator[ClientMessage]:
        return self._read_lines()

    async def _read_lines(self) -> AsyncIterator[ClientMessage]:
        reader = await self._setup_stdin_reader()

        while not self._closed:
            try:
                line_bytes = await reader.readline()
            except Exception as e:
                raise ConnectionError(f"Failed to read from stdin: {e}") from e

            if not line_bytes:
                logger.info("Input closed, ending stdio message stream")
                return

            line = line_bytes.decode("utf-8", errors="replace")
            message = decode_line(line)
            if message is None:
                if line.strip():
                    logger.warning("Invalid JSON received: %s", line.strip())
                    await self._reply_parse_error()
                continue

            yield ClientMessage(
                client_id=STDIO_CLIENT_ID,
                payload=message,
                received_at=time.time(),
            )

    async def _reply_parse_error(self) -> None:
        error = Error(code=PARSE_ERROR, message="Parse error")
        message = JSONRPCError.from_error(error, None).to_wire()
        await self.reply(STDIO_CLIENT_ID, message)

    @property
    def is_open(self) -> bool:
        return not self._closed

    async def close(self) -> None:
        """Stop reading; stdout itself is left to the process."""
        self._closed = True
