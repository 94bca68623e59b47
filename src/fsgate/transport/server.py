"""Transport contract between fsgate and the clients it serves."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator


@dataclass(frozen=True)
class ClientMessage:
    """One decoded JSON object received from a client.

    `client_id` names the channel any reply must go back on: the single
    stdio peer, or the HTTP request that carried the message.
    """

    client_id: str
    payload: dict[str, Any]
    received_at: float


class ServerTransport(ABC):
    """Moves JSON-RPC objects in and out; knows nothing about methods.

    Every message that expects an answer is answered exactly once through
    `reply`. Notifications are never answered, and on HTTP that is what lets
    the request complete with 202 straight away.
    """

    @abstractmethod
    async def reply(self, client_id: str, message: dict[str, Any]) -> None:
        """Deliver the answer to a message received from `client_id`.

        Raises:
            ValueError: If nothing from `client_id` is waiting for an answer,
                or `message` cannot be encoded.
            ConnectionError: If the channel is closed or the write fails.
        """
        ...

    @abstractmethod
    def client_messages(self) -> AsyncIterator[ClientMessage]:
        """Messages from every client, in arrival order.

        The iterator ends when no more input can arrive, e.g. EOF on stdin.
        """
        ...

    @property
    @abstractmethod
    def is_open(self) -> bool: ...

    @abstractmethod
    async def close(self) -> None:
        """Stop accepting input and fail any reply still owed."""
        ...
