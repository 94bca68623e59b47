import asyncio
import logging
import time
import uuid
from typing import Any, AsyncIterator

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from fsgate.protocol.base import INVALID_REQUEST, PARSE_ERROR, Error
from fsgate.protocol.jsonrpc import JSONRPCError
from fsgate.shared.message_parser import MessageParser
from fsgate.transport.server import ClientMessage, ServerTransport

logger = logging.getLogger(__name__)


class HttpServerTransport(ServerTransport):
    """HTTP server transport: one JSON-RPC message per POST.

    Each POST becomes a client message with its own client ID. Requests are
    held open until the coordinator sends the response, which is returned as
    the HTTP body; notifications are accepted with 202 and get no body.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 8000, path: str = "/rpc"):
        self._host = host
        self._port = port
        self._path = path
        self._parser = MessageParser()

        self._message_queue: asyncio.Queue[ClientMessage] = asyncio.Queue()
        self._pending: dict[str, asyncio.Future[dict[str, Any]]] = {}
        self._closed = False

        self.app = self._create_app()
        self._server: uvicorn.Server | None = None

    def _create_app(self) -> Starlette:
        routes = [Route(self._path, self._handle_post, methods=["POST"])]
        return Starlette(routes=routes)

    # ================================
    # HTTP handling
    # ================================

    async def _handle_post(self, request: Request) -> Response:
        """Handle POST requests - client sending one message to the server."""
        if self._closed:
            return JSONResponse({"error": "Server is shutting down"}, status_code=503)

        try:
            payload = await request.json()
        except ValueError:
            error = Error(code=PARSE_ERROR, message="Parse error")
            return JSONResponse(
                JSONRPCError.from_error(error, None).to_wire(), status_code=400
            )

        if not isinstance(payload, dict):
            error = Error(code=INVALID_REQUEST, message="Expected a JSON object")
            return JSONResponse(
                JSONRPCError.from_error(error, None).to_wire(), status_code=400
            )

        client_id = f"http-{uuid.uuid4()}"
        message = ClientMessage(
            client_id=client_id, payload=payload, received_at=time.time()
        )

        if not self._parser.expects_response(payload):
            await self._message_queue.put(message)
            return Response(status_code=202)

        future: asyncio.Future[dict[str, Any]] = (
            asyncio.get_running_loop().create_future()
        )
        self._pending[client_id] = future
        try:
            await self._message_queue.put(message)
            reply = await future
        except ConnectionError:
            return JSONResponse({"error": "Server is shutting down"}, status_code=503)
        finally:
            self._pending.pop(client_id, None)

        return JSONResponse(reply)

    # ================================
    # Transport interface
    # ================================

    async def reply(self, client_id: str, message: dict[str, Any]) -> None:
        """Complete the HTTP request waiting on `client_id`.

        Raises:
            ValueError: If no request is waiting for this client ID.
        """
        future = self._pending.get(client_id)
        if future is None or future.done():
            raise ValueError(f"No pending HTTP request for client {client_id}")
        future.set_result(message)

    def client_messages(self) -> AsyncIterator[ClientMessage]:
        """Unified stream of messages from all HTTP requests."""
        return self._message_queue_iterator()

    async def _message_queue_iterator(self) -> AsyncIterator[ClientMessage]:
        while not self._closed:
            try:
                message = await asyncio.wait_for(self._message_queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            yield message

    @property
    def is_open(self) -> bool:
        return not self._closed

    async def close(self) -> None:
        """Fail waiting requests and ask the HTTP server to exit."""
        self._closed = True
        for future in self._pending.values():
            if not future.done():
                future.set_exception(ConnectionError("Transport closed"))
        if self._server is not None:
            self._server.should_exit = True

    # ================================
    # Serving
    # ================================

    async def serve(self, log_level: str = "info") -> None:
        """Run the HTTP server until it is told to exit."""
        config = uvicorn.Config(
            self.app,
            host=self._host,
            port=self._port,
            log_level=log_level.lower(),
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        logger.info(
            "Serving JSON-RPC on http://%s:%d%s", self._host, self._port, self._path
        )
        await self._server.serve()
