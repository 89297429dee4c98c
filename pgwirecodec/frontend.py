"""Encoders for messages sent from the client to the server.

Each function returns the complete wire bytes of one message.
"""

from __future__ import annotations

import struct
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from .common import (
    I32_MAX,
    ProtocolError,
    ValueTooLargeError,
    checked_i16,
    checked_i32,
    write_nullable,
)

_CANCEL_REQUEST_CODE = 80_877_102
_SSL_REQUEST_CODE = 80_877_103
_PROTOCOL_VERSION = 196_608


class BindError(ProtocolError):
    """Raised when a parameter value cannot be converted for a Bind message."""


def _pack(fmt: str, *values: Any) -> bytes:
    try:
        return struct.pack(fmt, *values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _body(payload: bytes) -> bytes:
    return _pack(">i", checked_i32(len(payload) + 4)) + payload


def _tagged(tag: bytes, payload: bytes) -> bytes:
    return tag + _body(payload)


def _cstr(value: str | bytes | bytearray) -> bytes:
    data = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    if b"\x00" in data:
        raise ValueError("string contains embedded null")
    return data + b"\x00"


def _counted(items: Iterable[Any], encode: Callable[[Any], bytes]) -> bytes:
    parts = [encode(item) for item in items]
    return _pack(">h", checked_i16(len(parts))) + b"".join(parts)


def _variant(variant: int | str | bytes) -> bytes:
    if isinstance(variant, int):
        if not 0 <= variant <= 0xFF:
            raise ValueError(f"variant out of range: {variant}")
        return bytes([variant])
    data = variant.encode("ascii") if isinstance(variant, str) else bytes(variant)
    if len(data) != 1:
        raise ValueError(f"variant must be a single byte: {variant!r}")
    return data


def bind(
    portal: str,
    statement: str,
    formats: Iterable[int],
    values: Iterable[Any],
    serializer: Callable[[Any], bytes | None] | None,
    result_formats: Iterable[int],
) -> bytes:
    """Encode a Bind message.

    ``serializer`` turns each value into its encoded bytes, or ``None`` for
    NULL. When ``serializer`` is ``None`` the values are taken as already
    encoded. A failure inside the serializer is raised as ``BindError``.
    """

    def encode_value(value: Any) -> bytes:
        if serializer is None:
            encoded = value
        else:
            try:
                encoded = serializer(value)
            except Exception as exc:
                raise BindError(f"failed to convert parameter: {exc}") from exc
        return write_nullable(encoded)

    payload = b"".join(
        (
            _cstr(portal),
            _cstr(statement),
            _counted(formats, lambda f: _pack(">h", f)),
            _counted(values, encode_value),
            _counted(result_formats, lambda f: _pack(">h", f)),
        )
    )
    return _tagged(b"B", payload)


def cancel_request(process_id: int, secret_key: int) -> bytes:
    """Encode a CancelRequest message."""
    return _body(_pack(">iii", _CANCEL_REQUEST_CODE, process_id, secret_key))


def close(variant: int | str | bytes, name: str) -> bytes:
    """Encode a Close message for a statement (``S``) or portal (``P``)."""
    return _tagged(b"C", _variant(variant) + _cstr(name))


def copy_data(data: bytes) -> bytes:
    """Encode a CopyData message."""
    return _tagged(b"d", bytes(data))


class CopyData:
    """A CopyData message whose length is checked when it is created."""

    __slots__ = ("data", "length")

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        length = len(self.data) + 4
        if length > I32_MAX:
            raise ValueTooLargeError("message length overflow")
        self.length = length

    def write(self) -> bytes:
        """Return the wire bytes of the message."""
        return b"d" + struct.pack(">i", self.length) + self.data


def copy_done() -> bytes:
    """Encode a CopyDone message."""
    return _tagged(b"c", b"")


def copy_fail(message: str) -> bytes:
    """Encode a CopyFail message."""
    return _tagged(b"f", _cstr(message))


def describe(variant: int | str | bytes, name: str) -> bytes:
    """Encode a Describe message for a statement (``S``) or portal (``P``)."""
    return _tagged(b"D", _variant(variant) + _cstr(name))


def execute(portal: str, max_rows: int) -> bytes:
    """Encode an Execute message."""
    return _tagged(b"E", _cstr(portal) + _pack(">i", max_rows))


def parse(name: str, query: str, param_types: Iterable[int]) -> bytes:
    """Encode a Parse message with the given parameter type OIDs."""
    payload = (
        _cstr(name)
        + _cstr(query)
        + _counted(param_types, lambda oid: _pack(">I", oid))
    )
    return _tagged(b"P", payload)


def password_message(password: str | bytes) -> bytes:
    """Encode a PasswordMessage."""
    return _tagged(b"p", _cstr(password))


def query(query: str) -> bytes:
    """Encode a simple Query message."""
    return _tagged(b"Q", _cstr(query))


def sasl_initial_response(mechanism: str, data: bytes) -> bytes:
    """Encode a SASLInitialResponse message."""
    data = bytes(data)
    payload = _cstr(mechanism) + _pack(">i", checked_i32(len(data))) + data
    return _tagged(b"p", payload)


def sasl_response(data: bytes) -> bytes:
    """Encode a SASLResponse message."""
    return _tagged(b"p", bytes(data))


def ssl_request() -> bytes:
    """Encode an SSLRequest message."""
    return _body(_pack(">i", _SSL_REQUEST_CODE))


def startup_message(
    parameters: Mapping[str, str] | Iterable[tuple[str, str]],
) -> bytes:
    """Encode a StartupMessage from a mapping or sequence of key/value pairs."""
    pairs = parameters.items() if isinstance(parameters, Mapping) else parameters
    payload = (
        _pack(">i", _PROTOCOL_VERSION)
        + b"".join(_cstr(key) + _cstr(value) for key, value in pairs)
        + b"\x00"
    )
    return _body(payload)


def sync() -> bytes:
    """Encode a Sync message."""
    return _tagged(b"S", b"")


def terminate() -> bytes:
    """Encode a Terminate message."""
    return _tagged(b"X", b"")