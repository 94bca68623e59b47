import asyncio
from collections.abc import AsyncIterator
from typing import Any

import pytest

from fsgate.transport.server import ClientMessage, ServerTransport


class MockServerTransport(ServerTransport):
    """In-memory transport for testing the coordinator and session."""

    def __init__(self):
        self.sent_messages: dict[str, list[dict[str, Any]]] = {}
        self.client_message_queue: asyncio.Queue[ClientMessage | None] = (
            asyncio.Queue()
        )
        self._closed = False
        self._should_raise_error = False

    async def reply(self, client_id: str, message: dict[str, Any]) -> None:
        if self._should_raise_error:
            raise ConnectionError("Transport error")
        self.sent_messages.setdefault(client_id, []).append(message)

    def simulate_error(self) -> None:
        """Make every following reply fail."""
        self._should_raise_error = True

    def client_messages(self) -> AsyncIterator[ClientMessage]:
        return self._client_message_iterator()

    async def _client_message_iterator(self) -> AsyncIterator[ClientMessage]:
        while True:
            message = await self.client_message_queue.get()
            if message is None:
                return
            yield message

    @property
    def is_open(self) -> bool:
        return not self._closed

    async def close(self) -> None:
        self._closed = True
        self.end_input()

    # Test helpers
    def add_client_message(self, client_id: str, payload: dict[str, Any]) -> None:
        """Queue a message as if `client_id` had sent it."""
        message = ClientMessage(
            client_id=client_id,
            payload=payload,
            received_at=asyncio.get_running_loop().time(),
        )
        self.client_message_queue.put_nowait(message)

    def end_input(self) -> None:
        """End the client message stream, like EOF on stdin."""
        self.client_message_queue.put_nowait(None)


@pytest.fixture
def mock_transport():
    return MockServerTransport()


async def yield_to_event_loop(seconds: float = 0.01) -> None:
    """Let the event loop process pending tasks and callbacks.

    Args:
        seconds: Small delay to ensure async operations settle.
    """
    await asyncio.sleep(seconds)


@pytest.fixture
def yield_loop():
    """Helper to yield to event loop in tests."""
    return yield_to_event_loop
