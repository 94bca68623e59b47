import asyncio

import pytest

from fsgate.protocol.errors import PermissionDeniedError
from fsgate.server.coordinator import MessageCoordinator
from fsgate.server.dispatcher import Dispatcher
from fsgate.server.registry import MethodRegistry


class FakeHandlers:
    """Handlers registered under the `Test` service."""

    def __init__(self):
        self.release = asyncio.Event()
        self.started = asyncio.Event()

    def echo(self, params):
        return {"echo": dict(params)}

    async def slow(self, params):
        self.started.set()
        await self.release.wait()
        return {"done": True}

    def deny(self, params):
        raise PermissionDeniedError()

    def crash(self, params):
        raise RuntimeError("boom")


@pytest.fixture
def handlers():
    return FakeHandlers()


@pytest.fixture
def dispatcher(handlers):
    registry = MethodRegistry()
    registry.register("Test", "echo", handlers.echo)
    registry.register("Test", "slow", handlers.slow)
    registry.register("Test", "deny", handlers.deny)
    registry.register("Test", "crash", handlers.crash)
    registry.seal()
    return Dispatcher(registry)


@pytest.fixture
async def coordinator(mock_transport, dispatcher):
    """MessageCoordinator with mock dependencies and automatic cleanup."""
    coord = MessageCoordinator(mock_transport, dispatcher)
    yield coord
    if coord.running:
        await coord.stop()
