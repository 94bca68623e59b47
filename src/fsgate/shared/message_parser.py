"""JSON-RPC message parsing utilities.

Classifies raw payloads and parses requests into typed `ServiceRequest`
objects. Used by the coordinator and by transports that need to know whether
a payload will be answered.
"""

from typing import Any

from pydantic import ValidationError

from fsgate.protocol.base import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    Error,
    ServiceRequest,
)
from fsgate.protocol.jsonrpc import JSONRPCRequest


class MessageParser:
    """Parses JSON-RPC payloads into typed protocol objects."""

    def parse_request(self, payload: dict[str, Any]) -> ServiceRequest | Error:
        """Parse a JSON-RPC request payload into a ServiceRequest or Error.

        Only by-name parameters are supported; positional (array) params are
        rejected with INVALID_PARAMS.

        Args:
            payload: Raw JSON-RPC request payload

        Returns:
            Typed ServiceRequest on success, or Error for parsing failures
        """
        params = payload.get("params")
        if params is not None and not isinstance(params, dict):
            return Error(
                code=INVALID_PARAMS,
                message="Params must be an object of named parameters",
            )

        try:
            envelope = JSONRPCRequest.model_validate(payload)
        except ValidationError as e:
            return Error(
                code=INVALID_REQUEST,
                message=f"Invalid request: {e.error_count()} validation error(s)",
                data=str(e),
            )
        return envelope.to_request()

    def is_valid_request(self, payload: dict[str, Any]) -> bool:
        """Check if payload is a valid JSON-RPC request."""
        return (
            payload.get("jsonrpc") == JSONRPC_VERSION
            and isinstance(payload.get("method"), str)
            and self._has_valid_id(payload)
            and "result" not in payload
            and "error" not in payload
        )

    def is_valid_notification(self, payload: dict[str, Any]) -> bool:
        """Check if payload is a valid JSON-RPC notification."""
        return (
            payload.get("jsonrpc") == JSONRPC_VERSION
            and isinstance(payload.get("method"), str)
            and "id" not in payload
        )

    def is_valid_response(self, payload: dict[str, Any]) -> bool:
        """Check if payload is a valid JSON-RPC response."""
        return (
            payload.get("jsonrpc") == JSONRPC_VERSION
            and "id" in payload
            and "method" not in payload
            and (("result" in payload) != ("error" in payload))
        )

    def expects_response(self, payload: dict[str, Any]) -> bool:
        """True if the sender is waiting for an answer to this payload.

        Anything carrying an id that is not itself a response gets one, even
        when it is malformed and the answer is an error.
        """
        return "id" in payload and "result" not in payload and "error" not in payload

    def _has_valid_id(self, payload: dict[str, Any]) -> bool:
        request_id = payload.get("id")
        return isinstance(request_id, (str, int)) and not isinstance(request_id, bool)
