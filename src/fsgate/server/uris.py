"""Parameter extraction and `file` URI validation.

Validation is syntactic only: the scheme must be exactly `file`, nothing is
lowercased and no symlinks are resolved.
"""

import codecs
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import SplitResult, urlsplit
from urllib.request import url2pathname

from fsgate.protocol.errors import InvalidParamsError, InvalidUriSchemeError

FILE_SCHEME = "file"


@dataclass(frozen=True)
class FileUri:
    """A parsed `file` URI, keeping the caller's original text."""

    raw: str
    parts: SplitResult

    @property
    def path(self) -> str:
        """Path component as written in the URI (still percent-encoded)."""
        return self.parts.path

    def to_path(self) -> Path:
        """Local filesystem path the URI points at."""
        return Path(url2pathname(self.parts.path))

    def __str__(self) -> str:
        return self.raw


def parse_file_uri(value: str) -> FileUri:
    """Parse `value` as a URI whose scheme is exactly `file`.

    Raises:
        InvalidUriSchemeError: If the scheme is missing or not `file`.
    """
    # urlsplit lowercases the scheme, so check the raw text first.
    scheme, sep, _ = value.partition(":")
    if not sep or scheme != FILE_SCHEME:
        raise InvalidUriSchemeError()
    try:
        parts = urlsplit(value)
    except ValueError as e:
        raise InvalidUriSchemeError(f"Malformed uri: {value}") from e
    return FileUri(raw=value, parts=parts)


def extract_file_uri(params: Mapping[str, Any], key: str = "uri") -> FileUri:
    """Read the string parameter `key` and parse it as a `file` URI."""
    return parse_file_uri(string_param(params, key))


def string_param(params: Mapping[str, Any], key: str) -> str:
    value = params.get(key)
    if not isinstance(value, str):
        raise InvalidParamsError(f"Parameter '{key}' must be a string")
    return value


def string_list_param(params: Mapping[str, Any], key: str) -> list[str]:
    value = params.get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidParamsError(f"Parameter '{key}' must be a list of strings")
    return list(value)


def encoding_param(
    params: Mapping[str, Any], key: str = "encoding", default: str = "utf-8"
) -> str:
    """Read a text encoding name, falling back to `default` when absent.

    Returns the codec's canonical name. Bytes-to-bytes and str-to-str codecs
    are rejected.
    """
    name = params.get(key, default)
    if not isinstance(name, str):
        raise InvalidParamsError(f"Parameter '{key}' must be a string")
    try:
        codec = codecs.lookup(name)
    except LookupError as e:
        raise InvalidParamsError(f"Unknown encoding: {name}") from e
    # rot13, base64 and friends are codecs but cannot encode str to bytes
    if not codec._is_text_encoding:
        raise InvalidParamsError(f"Not a text encoding: {name}")
    return codec.name
