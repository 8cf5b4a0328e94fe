"""Decoding of meta information packages received on the stream."""

from __future__ import annotations

import logging
import struct
from typing import Any

import msgpack

from daqstream.defines import METAINFORMATION_MSGPACK, METHOD, PARAMS
from daqstream.log import LogCallback

_TYPE_FIELD = struct.Struct("<I")

_logger = logging.getLogger(__name__)


class MetaInformationError(ValueError):
    """Raised when a meta information package cannot be decoded."""


def _default_log(level: int, message: str) -> None:
    _logger.log(level, message)


class MetaInformation:
    """Holds the decoded content of one meta information package."""

    def __init__(self, log_cb: LogCallback | None = None) -> None:
        self._type = 0
        self._content: Any = None
        self._log = log_cb or _default_log

    def interpret(self, data: bytes) -> None:
        """Decode a package: a 32-bit type followed by the encoded content.

        Only msgpack encoded content is understood; other types are ignored.
        """
        data = bytes(data)
        if len(data) < _TYPE_FIELD.size:
            raise MetaInformationError(
                f"meta information too short: {len(data)} byte(s)"
            )
        (self._type,) = _TYPE_FIELD.unpack_from(data)
        if self._type != METAINFORMATION_MSGPACK:
            return
        try:
            self._content = msgpack.unpackb(data[_TYPE_FIELD.size:], raw=False)
        except (ValueError, TypeError, msgpack.exceptions.UnpackException) as exc:
            self._log(logging.ERROR, f"parsing meta information failed : {exc}")
            raise MetaInformationError(f"parsing meta information failed: {exc}") from exc

    def method(self) -> str:
        """The method of the content, or an empty string if there is none."""
        if not isinstance(self._content, dict) or METHOD not in self._content:
            return ""
        method = self._content[METHOD]
        if not isinstance(method, str):
            raise MetaInformationError(f"method is not a string: {method!r}")
        return method

    def params(self) -> Any:
        """The parameters of the content, or None if there are none."""
        if not isinstance(self._content, dict):
            return None
        return self._content.get(PARAMS)

    def json_content(self) -> Any:
        """The complete decoded content."""
        return self._content

    def type(self) -> int:
        """The meta information type of the last interpreted package."""
        return self._type