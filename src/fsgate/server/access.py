"""Workspace-root sandbox.

`AccessGuard` owns the list of workspace roots and decides whether a `file`
URI is reachable. The list can only be replaced wholesale, by a caller holding
the secret or by anyone when the service runs unrestricted.
"""

import logging
import posixpath
import secrets
from enum import Enum
from typing import Iterable
from urllib.parse import unquote

from fsgate.protocol.errors import PermissionDeniedError
from fsgate.server.uris import FileUri, parse_file_uri

logger = logging.getLogger(__name__)


class ContainmentMode(str, Enum):
    """How a URI is matched against a workspace root.

    SEGMENTS compares normalized path segments, so `/home/devroot` is not
    inside `/home/dev` and `..` cannot climb out of a root. PREFIX is the
    legacy raw string-prefix test on the URI paths.
    """

    SEGMENTS = "segments"
    PREFIX = "prefix"


def _segments(path: str) -> tuple[str, ...] | None:
    """Normalized segments of an absolute URI path, or None if relative."""
    decoded = unquote(path)
    if not decoded.startswith("/"):
        return None
    normalized = posixpath.normpath(decoded)
    return tuple(part for part in normalized.split("/") if part)


def is_within(root: FileUri, candidate: FileUri, mode: ContainmentMode) -> bool:
    if mode is ContainmentMode.PREFIX:
        return candidate.path.startswith(root.path)

    root_parts = _segments(root.path)
    candidate_parts = _segments(candidate.path)
    if root_parts is None or candidate_parts is None:
        return False
    return candidate_parts[: len(root_parts)] == root_parts


class AccessGuard:
    """Holds the access policy: secret, unrestricted flag and workspace roots.

    The secret and the unrestricted flag are fixed for the guard's lifetime.
    Roots start empty and are held in a tuple that is rebound in a single
    assignment, so a concurrent check sees either the old or the new list in
    full.
    """

    def __init__(
        self,
        secret: str,
        unrestricted_mode: bool = False,
        containment: ContainmentMode | str = ContainmentMode.SEGMENTS,
    ):
        self._secret = secret
        self._unrestricted_mode = unrestricted_mode
        self._containment = ContainmentMode(containment)
        self._roots: tuple[FileUri, ...] = ()

    @property
    def unrestricted_mode(self) -> bool:
        return self._unrestricted_mode

    @property
    def containment(self) -> ContainmentMode:
        return self._containment

    def is_allowed(self, uri: FileUri) -> bool:
        if self._unrestricted_mode:
            return True
        roots = self._roots
        return any(is_within(root, uri, self._containment) for root in roots)

    def ensure_allowed(self, uri: FileUri) -> None:
        """Raise unless `uri` lies inside one of the workspace roots.

        Raises:
            PermissionDeniedError: If no root contains the URI.
        """
        if not self.is_allowed(uri):
            logger.warning("Denied access outside workspace roots: %s", uri)
            raise PermissionDeniedError()

    def set_roots(self, secret: str, candidate_roots: Iterable[str]) -> None:
        """Replace the workspace roots.

        The whole batch is validated before anything changes; on any failure
        the current roots are left untouched.

        Raises:
            PermissionDeniedError: If not unrestricted and `secret` is wrong.
            InvalidUriSchemeError: On the first root that is not a `file` URI.
        """
        if not self._unrestricted_mode and not self._secret_matches(secret):
            logger.warning("Rejected workspace roots update: bad secret")
            raise PermissionDeniedError()

        new_roots = tuple(parse_file_uri(root) for root in candidate_roots)
        self._roots = new_roots
        logger.info("Workspace roots set to %s", [root.raw for root in new_roots])

    def get_roots(self) -> list[str]:
        return [root.raw for root in self._roots]

    def _secret_matches(self, secret: str) -> bool:
        return secrets.compare_digest(
            secret.encode("utf-8"), self._secret.encode("utf-8")
        )
