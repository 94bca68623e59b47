"""Server session wiring the FileSystem service onto a transport."""

import logging

from fsgate.config import ServerConfig
from fsgate.server.access import AccessGuard
from fsgate.server.coordinator import MessageCoordinator
from fsgate.server.dispatcher import Dispatcher
from fsgate.server.filesystem import FileSystemService
from fsgate.server.registry import MethodRegistry
from fsgate.transport.server import ServerTransport

logger = logging.getLogger(__name__)


class ServerSession:
    """Owns the access policy, the method table and the message loop.

    All methods are registered and the registry sealed during construction,
    before a single message is read.
    """

    def __init__(self, transport: ServerTransport, config: ServerConfig):
        self.transport = transport
        self.config = config

        self.guard = AccessGuard(
            secret=config.secret,
            unrestricted_mode=config.unrestricted,
            containment=config.containment,
        )
        self.registry = MethodRegistry()
        self.filesystem = FileSystemService(self.guard)
        self.filesystem.register(self.registry)
        self.registry.seal()

        self.dispatcher = Dispatcher(self.registry)
        self._coordinator = MessageCoordinator(transport, self.dispatcher)

    @property
    def running(self) -> bool:
        return self._coordinator.running

    async def start(self) -> None:
        """Start message processing."""
        if self.config.unrestricted:
            logger.warning("Running in unrestricted mode: access checks disabled")
        await self._coordinator.start()

    async def wait_closed(self) -> None:
        """Wait for the transport's input to end and pending requests to finish."""
        await self._coordinator.wait_closed()

    async def stop(self) -> None:
        """Stop message processing and close the transport."""
        await self._coordinator.stop()
        await self.transport.close()
