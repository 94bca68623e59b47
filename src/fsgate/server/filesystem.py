"""The `FileSystem` service: file access confined to workspace roots.

Every path-touching handler validates the `file` scheme, then asks the
AccessGuard, and only then touches the disk. File I/O goes through aiofiles
so a slow disk never blocks the message loop.
"""

import logging
from pathlib import Path
from typing import Any, Mapping

import aiofiles
import aiofiles.os

from fsgate.protocol.errors import (
    DirectoryDoesNotExistError,
    FileDoesNotExistError,
    FileNotTextError,
    InvalidParamsError,
)
from fsgate.protocol.filesystem import FileContent, IDEWorkspaceRoots, Success, UriList
from fsgate.server.access import AccessGuard
from fsgate.server.registry import MethodRegistry
from fsgate.server.uris import (
    encoding_param,
    extract_file_uri,
    string_list_param,
    string_param,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "FileSystem"


class FileSystemService:
    def __init__(self, guard: AccessGuard):
        self.guard = guard

    def register(self, registry: MethodRegistry) -> None:
        """Register all FileSystem methods with the registry."""
        registry.register(SERVICE_NAME, "readFileAsString", self.read_file_as_string)
        registry.register(
            SERVICE_NAME, "writeFileAsString", self.write_file_as_string
        )
        registry.register(
            SERVICE_NAME, "listDirectoryContents", self.list_directory_contents
        )
        registry.register(
            SERVICE_NAME, "setIDEWorkspaceRoots", self.set_ide_workspace_roots
        )
        registry.register(
            SERVICE_NAME, "getIDEWorkspaceRoots", self.get_ide_workspace_roots
        )

    # ================================
    # Files
    # ================================

    async def read_file_as_string(self, params: Mapping[str, Any]) -> FileContent:
        """Read a whole file as UTF-8 text, line endings untouched.

        Raises:
            InvalidUriSchemeError: If `uri` is not a `file` URI.
            PermissionDeniedError: If the file is outside the workspace roots.
            FileDoesNotExistError: If there is no regular file at `uri`.
            FileNotTextError: If the file is not valid UTF-8.
        """
        uri = extract_file_uri(params, "uri")
        self.guard.ensure_allowed(uri)
        path = uri.to_path()

        if not await aiofiles.os.path.isfile(path):
            raise FileDoesNotExistError()

        # Binary read keeps \r\n and lone \r exactly as stored.
        async with aiofiles.open(path, mode="rb") as f:
            data = await f.read()
        try:
            content = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FileNotTextError(str(path)) from e
        return FileContent(content=content)

    async def write_file_as_string(self, params: Mapping[str, Any]) -> Success:
        """Write `contents` to `uri` using the named encoding.

        Missing parent directories are created. The text is encoded before the
        file is opened, so an unencodable string leaves the disk untouched.

        Raises:
            InvalidUriSchemeError: If `uri` is not a `file` URI.
            InvalidParamsError: If `contents` is missing, the encoding is
                unknown, or `contents` cannot be encoded with it.
            PermissionDeniedError: If the file is outside the workspace roots.
        """
        uri = extract_file_uri(params, "uri")
        contents = string_param(params, "contents")
        encoding = encoding_param(params, "encoding")
        self.guard.ensure_allowed(uri)
        path = uri.to_path()

        try:
            data = contents.encode(encoding)
        except UnicodeEncodeError as e:
            raise InvalidParamsError(
                f"Contents cannot be encoded as {encoding}: {e.reason}"
            ) from e

        if not await aiofiles.os.path.exists(path):
            await aiofiles.os.makedirs(path.parent, exist_ok=True)

        async with aiofiles.open(path, mode="wb") as f:
            await f.write(data)
        logger.debug("Wrote %d bytes to %s", len(data), path)
        return Success()

    # ================================
    # Directories
    # ================================

    async def list_directory_contents(self, params: Mapping[str, Any]) -> UriList:
        """List the immediate entries of a directory, sorted by name.

        Raises:
            InvalidUriSchemeError: If `uri` is not a `file` URI.
            PermissionDeniedError: If the directory is outside the roots.
            DirectoryDoesNotExistError: If there is no directory at `uri`;
                the error data holds the requested path.
        """
        uri = extract_file_uri(params, "uri")
        self.guard.ensure_allowed(uri)
        path = uri.to_path()

        if not await aiofiles.os.path.isdir(path):
            raise DirectoryDoesNotExistError(str(path))

        uris = []
        for name in sorted(await aiofiles.os.listdir(path)):
            entry = path / name
            uris.append(await self._entry_uri(entry))
        return UriList(uris=uris)

    async def _entry_uri(self, entry: Path) -> str:
        uri = entry.absolute().as_uri()
        if await aiofiles.os.path.isdir(entry):
            uri += "/"
        return uri

    # ================================
    # Workspace roots
    # ================================

    def set_ide_workspace_roots(self, params: Mapping[str, Any]) -> Success:
        """Replace the workspace roots. Requires the service secret.

        Raises:
            PermissionDeniedError: If the secret is wrong (and not unrestricted).
            InvalidUriSchemeError: If any root is not a `file` URI.
        """
        secret = string_param(params, "secret")
        roots = string_list_param(params, "roots")
        self.guard.set_roots(secret, roots)
        return Success()

    def get_ide_workspace_roots(self, params: Mapping[str, Any]) -> IDEWorkspaceRoots:
        return IDEWorkspaceRoots(roots=self.guard.get_roots())
