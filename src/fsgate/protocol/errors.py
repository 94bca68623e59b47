"""Domain errors raised by fsgate handlers.

Handlers raise these; the dispatcher turns them into protocol `Error`
responses with a stable code, message and optional data.
"""

from enum import IntEnum
from typing import Any

from fsgate.protocol.base import INTERNAL_ERROR, INVALID_PARAMS, Error


class ErrorCode(IntEnum):
    PERMISSION_DENIED = 120
    EXPECTS_URI_PARAM_WITH_FILE_SCHEME = 130
    FILE_DOES_NOT_EXIST = 131
    DIRECTORY_DOES_NOT_EXIST = 132


class RpcError(Exception):
    """Base for errors that surface to the caller as structured responses."""

    code: int = INTERNAL_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None, data: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    def to_error(self) -> Error:
        return Error(code=int(self.code), message=self.message, data=self.data)


class PermissionDeniedError(RpcError):
    """Access outside the workspace roots, or a bad secret for root changes."""

    code = ErrorCode.PERMISSION_DENIED
    default_message = "Permission denied"


class InvalidUriSchemeError(RpcError):
    """A URI parameter does not use the `file` scheme."""

    code = ErrorCode.EXPECTS_URI_PARAM_WITH_FILE_SCHEME
    default_message = "File scheme expected on uri"


class FileDoesNotExistError(RpcError):
    code = ErrorCode.FILE_DOES_NOT_EXIST
    default_message = "File does not exist"


class DirectoryDoesNotExistError(RpcError):
    """The requested directory is missing. Carries `{"directory": path}`."""

    code = ErrorCode.DIRECTORY_DOES_NOT_EXIST
    default_message = "Directory does not exist"

    def __init__(self, directory: str):
        super().__init__(data={"directory": directory})


class InvalidParamsError(RpcError):
    """A required parameter is missing or has the wrong type."""

    code = INVALID_PARAMS
    default_message = "Invalid params"


class FileNotTextError(RpcError):
    """The file is not valid UTF-8. Carries `{"file": path}`."""

    default_message = "File is not valid UTF-8 text"

    def __init__(self, file: str):
        super().__init__(data={"file": file})
