"""Message processing mechanics for the server.

Handles the message loop, classification and parsing, and hands typed
requests to the Dispatcher, keeping handlers free of wire concerns.
"""

import asyncio
import logging
from typing import Any

from fsgate.protocol.base import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    Error,
    RequestId,
    ServiceRequest,
)
from fsgate.protocol.jsonrpc import JSONRPCError, JSONRPCResponse
from fsgate.server.dispatcher import Dispatcher
from fsgate.shared.message_parser import MessageParser
from fsgate.transport.server import ClientMessage, ServerTransport

logger = logging.getLogger(__name__)


class MessageCoordinator:
    """Coordinates inbound message flow for the server.

    Reads client messages from the transport, runs every request as its own
    task so slow I/O never stalls the loop, and sends each outcome back to
    the client that asked.
    """

    def __init__(self, transport: ServerTransport, dispatcher: Dispatcher):
        self.transport = transport
        self.dispatcher = dispatcher
        self.parser = MessageParser()
        self._in_flight: dict[tuple[str, RequestId], asyncio.Task[None]] = {}
        self._message_loop_task: asyncio.Task[None] | None = None

    # ================================
    # Lifecycle
    # ================================

    @property
    def running(self) -> bool:
        """True if the message loop is actively processing messages."""
        return (
            self._message_loop_task is not None and not self._message_loop_task.done()
        )

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def start(self) -> None:
        """Start the message processing loop.

        Safe to call multiple times - subsequent calls are ignored if already
        running.

        Raises:
            ConnectionError: If the transport is closed.
        """
        if self.running:
            return
        if not self.transport.is_open:
            raise ConnectionError("Cannot start coordinator: transport is closed")

        self._message_loop_task = asyncio.create_task(self._message_loop())

    async def stop(self) -> None:
        """Stop message processing and cancel in-flight requests.

        Safe to call multiple times.
        """
        if self._message_loop_task is not None:
            self._message_loop_task.cancel()
            try:
                await self._message_loop_task
            except asyncio.CancelledError:
                pass
            self._message_loop_task = None

        tasks = list(self._in_flight.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()

    async def wait_closed(self) -> None:
        """Wait until the transport runs out of input and pending requests finish."""
        if self._message_loop_task is not None:
            await asyncio.shield(self._message_loop_task)
        await asyncio.gather(*self._in_flight.values(), return_exceptions=True)

    # ================================
    # Message loop
    # ================================

    async def _message_loop(self) -> None:
        """Process incoming client messages until cancelled or input ends.

        Individual message handling errors are logged and don't interrupt the
        loop; transport failures stop message processing entirely.
        """
        try:
            async for client_message in self.transport.client_messages():
                try:
                    await self._handle_client_message(client_message)
                except Exception:
                    logger.exception(
                        "Error handling message from %s", client_message.client_id
                    )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Transport error, message loop stopped")

    # ================================
    # Route messages
    # ================================

    async def _handle_client_message(self, client_message: ClientMessage) -> None:
        payload = client_message.payload
        client_id = client_message.client_id

        if self.parser.is_valid_request(payload):
            await self._handle_request(client_id, payload)
        elif self.parser.is_valid_notification(payload):
            logger.debug(
                "Ignoring notification '%s' from %s", payload["method"], client_id
            )
        elif self.parser.is_valid_response(payload):
            logger.warning("Unexpected response from %s: %s", client_id, payload)
        elif self.parser.expects_response(payload):
            request_id = payload.get("id")
            if not isinstance(request_id, (str, int)) or isinstance(request_id, bool):
                request_id = None
            error = Error(code=INVALID_REQUEST, message="Invalid JSON-RPC request")
            await self._reply_error(client_id, error, request_id)
        else:
            logger.warning("Unknown message type from %s: %s", client_id, payload)

    # ================================
    # Handle requests
    # ================================

    async def _handle_request(self, client_id: str, payload: dict[str, Any]) -> None:
        """Parse a request and run it as a background task.

        Parse failures, unknown methods and ids that are still in flight for
        the same client are answered immediately with an error.
        """
        request_id = payload["id"]

        request_or_error = self.parser.parse_request(payload)
        if isinstance(request_or_error, Error):
            await self._reply_error(client_id, request_or_error, request_id)
            return

        method = request_or_error.method
        if not self.dispatcher.has_method(method):
            error = Error(code=METHOD_NOT_FOUND, message=f"Unknown method: {method}")
            await self._reply_error(client_id, error, request_id)
            return

        key = (client_id, request_id)
        if key in self._in_flight:
            error = Error(
                code=INVALID_REQUEST,
                message=f"Request id {request_id!r} is already in flight",
            )
            await self._reply_error(client_id, error, request_id)
            return

        task = asyncio.create_task(
            self._execute_request(client_id, request_or_error, request_id),
            name=f"handle_{method}_{client_id}_{request_id}",
        )
        self._in_flight[key] = task
        task.add_done_callback(lambda t: self._forget(key, t))

    def _forget(self, key: tuple[str, RequestId], task: asyncio.Task[None]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]

    async def _execute_request(
        self, client_id: str, request: ServiceRequest, request_id: RequestId
    ) -> None:
        """Dispatch a request and send the response."""
        try:
            result_or_error = await self.dispatcher.dispatch(request)
        except Exception as e:
            logger.exception("Dispatch of %s failed", request.method)
            result_or_error = Error(code=INTERNAL_ERROR, message=f"Handler error: {e}")

        if isinstance(result_or_error, Error):
            await self._reply_error(client_id, result_or_error, request_id)
        else:
            response = JSONRPCResponse.from_result(result_or_error, request_id)
            await self._reply(client_id, response.to_wire())

    async def _reply_error(
        self, client_id: str, error: Error, request_id: RequestId | None
    ) -> None:
        response = JSONRPCError.from_error(error, request_id)
        await self._reply(client_id, response.to_wire())

    async def _reply(self, client_id: str, message: dict[str, Any]) -> None:
        try:
            await self.transport.reply(client_id, message)
        except Exception:
            logger.exception("Failed to send response to %s", client_id)
