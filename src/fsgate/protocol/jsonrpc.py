"""JSON-RPC 2.0 envelopes around fsgate requests, results and errors."""

from typing import Any, Literal

from pydantic import Field

from fsgate.protocol.base import (
    JSONRPC_VERSION,
    Error,
    ProtocolModel,
    RequestId,
    Result,
    ServiceRequest,
)


class JSONRPCRequest(ProtocolModel):
    """A request envelope as it appears on the wire."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId
    method: str
    params: dict[str, Any] | None = None

    @classmethod
    def from_request(
        cls, request: ServiceRequest, request_id: RequestId
    ) -> "JSONRPCRequest":
        return cls(id=request_id, method=request.method, params=request.params)

    def to_request(self) -> ServiceRequest:
        return ServiceRequest(method=self.method, params=self.params or {})

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class JSONRPCResponse(ProtocolModel):
    """A success envelope."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId
    result: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_result(cls, result: Result, request_id: RequestId) -> "JSONRPCResponse":
        return cls(id=request_id, result=result.to_protocol())

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class JSONRPCError(ProtocolModel):
    """An error envelope.

    `id` is None when the request id could not be determined, e.g. after a
    parse failure, and is serialized as `null` as JSON-RPC requires.
    """

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: RequestId | None = None
    error: dict[str, Any]

    @classmethod
    def from_error(cls, error: Error, request_id: RequestId | None) -> "JSONRPCError":
        return cls(id=request_id, error=error.to_protocol())

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
