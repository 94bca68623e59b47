"""
Result payloads of the `FileSystem` service.

Every payload carries a `type` discriminator so clients can tell results
apart without knowing which method produced them.
"""

from typing import Literal

from fsgate.protocol.base import Result


class Success(Result):
    """
    Marker returned by operations that produce no data.
    """

    type: Literal["Success"] = "Success"
    success: bool = True


class FileContent(Result):
    """
    Full text contents of a file.
    """

    type: Literal["FileContent"] = "FileContent"
    content: str


class UriList(Result):
    """
    Immediate entries of a directory as `file` URIs.

    Directory entries end with a trailing `/`.
    """

    type: Literal["UriList"] = "UriList"
    uris: list[str]


class IDEWorkspaceRoots(Result):
    """
    The workspace roots currently in force.
    """

    type: Literal["IDEWorkspaceRoots"] = "IDEWorkspaceRoots"
    roots: list[str]
