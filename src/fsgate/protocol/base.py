"""
Base protocol types shared by every fsgate message.

Requests name a method and carry named parameters. Handlers answer with a
Result on success or an Error on failure; the JSON-RPC envelope around both
lives in `fsgate.protocol.jsonrpc`.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

RequestId = str | int


class ProtocolModel(BaseModel):
    """Base for all protocol models.

    Accepts both field names and wire aliases on input, ignores unknown
    fields, and serializes by alias with unset optionals dropped.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_protocol(self) -> dict[str, Any]:
        """Serialize to a wire-ready dict."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ServiceRequest(ProtocolModel):
    """
    A named operation invoked with named parameters.
    """

    method: str
    """
    Fully qualified method name, e.g. `FileSystem.readFileAsString`.
    """

    params: dict[str, Any] = Field(default_factory=dict)
    """
    Parameters passed to the handler as-is.
    """


class Result(ProtocolModel):
    """
    Success payload returned by a handler.

    Extra keys are kept so handlers returning plain mappings round-trip
    without a dedicated model.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @classmethod
    def from_protocol(cls, data: dict[str, Any]) -> "Result":
        """Build a result from a JSON-RPC response envelope."""
        return cls.model_validate(data["result"])


class Error(ProtocolModel):
    """
    Structured failure returned in place of a Result.
    """

    code: int
    """
    Stable numeric error code.
    """

    message: str
    """
    Human-readable description of the failure.
    """

    data: Any | None = None
    """
    Optional structured details, e.g. the offending path.
    """

    @classmethod
    def from_protocol(cls, data: dict[str, Any]) -> "Error":
        """Build an error from a JSON-RPC error envelope."""
        return cls.model_validate(data["error"])
