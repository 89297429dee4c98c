"""Binary encoders and decoders for scalar column types.

Every ``*_to_sql`` function returns the encoded bytes of one value, without
the length prefix. Every ``*_from_sql`` function takes the bytes of one
value and raises ``DecodeError`` when they are not a valid encoding.
"""

from __future__ import annotations

import struct
import uuid
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Union

from .common import DecodeError, checked_i32

BytesLike = Union[bytes, bytearray, memoryview]

_I8 = struct.Struct(">b")
_I16 = struct.Struct(">h")
_I32 = struct.Struct(">i")
_U32 = struct.Struct(">I")
_I64 = struct.Struct(">q")
_F32 = struct.Struct(">f")
_F64 = struct.Struct(">d")

_INVALID_BUFFER_SIZE = "invalid buffer size"
_INVALID_MESSAGE_LENGTH = "invalid message length"


def _pack(fmt: struct.Struct, value: object) -> bytes:
    try:
        return fmt.pack(value)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _unpack_exact(fmt: struct.Struct, buf: BytesLike, trailing_message: str):
    data = bytes(buf)
    if len(data) < fmt.size:
        raise DecodeError("unexpected end of buffer")
    if len(data) > fmt.size:
        raise DecodeError(trailing_message)
    return fmt.unpack(data)[0]


def _read_i32(data: bytes, pos: int) -> tuple[int, int]:
    if len(data) - pos < 4:
        raise DecodeError("unexpected end of buffer")
    return _I32.unpack_from(data, pos)[0], pos + 4


def _decode_utf8(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"invalid UTF-8: {exc}") from exc


def bool_to_sql(value: bool) -> bytes:
    """Encode a ``BOOL`` value."""
    return b"\x01" if value else b"\x00"


def bool_from_sql(buf: BytesLike) -> bool:
    """Decode a ``BOOL`` value."""
    data = bytes(buf)
    if len(data) != 1:
        raise DecodeError(_INVALID_BUFFER_SIZE)
    return data[0] != 0


def bytea_to_sql(value: BytesLike) -> bytes:
    """Encode a ``BYTEA`` value."""
    return bytes(value)


def bytea_from_sql(buf: BytesLike) -> bytes:
    """Decode a ``BYTEA`` value."""
    return bytes(buf)


def text_to_sql(value: str) -> bytes:
    """Encode a ``TEXT``, ``VARCHAR``, ``CHAR(n)``, ``NAME`` or ``CITEXT`` value."""
    return value.encode("utf-8")


def text_from_sql(buf: BytesLike) -> str:
    """Decode a ``TEXT``, ``VARCHAR``, ``CHAR(n)``, ``NAME`` or ``CITEXT`` value."""
    return _decode_utf8(bytes(buf))


def char_to_sql(value: int) -> bytes:
    """Encode a ``"char"`` value (a signed byte)."""
    return _pack(_I8, value)


def char_from_sql(buf: BytesLike) -> int:
    """Decode a ``"char"`` value (a signed byte)."""
    return _unpack_exact(_I8, buf, _INVALID_BUFFER_SIZE)


def int2_to_sql(value: int) -> bytes:
    """Encode an ``INT2`` value."""
    return _pack(_I16, value)


def int2_from_sql(buf: BytesLike) -> int:
    """Decode an ``INT2`` value."""
    return _unpack_exact(_I16, buf, _INVALID_BUFFER_SIZE)


def int4_to_sql(value: int) -> bytes:
    """Encode an ``INT4`` value."""
    return _pack(_I32, value)


def int4_from_sql(buf: BytesLike) -> int:
    """Decode an ``INT4`` value."""
    return _unpack_exact(_I32, buf, _INVALID_BUFFER_SIZE)


def oid_to_sql(value: int) -> bytes:
    """Encode an ``OID`` value."""
    return _pack(_U32, value)


def oid_from_sql(buf: BytesLike) -> int:
    """Decode an ``OID`` value."""
    return _unpack_exact(_U32, buf, _INVALID_BUFFER_SIZE)


def int8_to_sql(value: int) -> bytes:
    """Encode an ``INT8`` value."""
    return _pack(_I64, value)


def int8_from_sql(buf: BytesLike) -> int:
    """Decode an ``INT8`` value."""
    return _unpack_exact(_I64, buf, _INVALID_BUFFER_SIZE)


def float4_to_sql(value: float) -> bytes:
    """Encode a ``FLOAT4`` value."""
    return _pack(_F32, value)


def float4_from_sql(buf: BytesLike) -> float:
    """Decode a ``FLOAT4`` value."""
    return _unpack_exact(_F32, buf, _INVALID_BUFFER_SIZE)


def float8_to_sql(value: float) -> bytes:
    """Encode a ``FLOAT8`` value."""
    return _pack(_F64, value)


def float8_from_sql(buf: BytesLike) -> float:
    """Decode a ``FLOAT8`` value."""
    return _unpack_exact(_F64, buf, _INVALID_BUFFER_SIZE)


def _pascal_string(value: str) -> bytes:
    data = value.encode("utf-8")
    return _I32.pack(checked_i32(len(data))) + data


def hstore_to_sql(
    values: Mapping[str, str | None] | Iterable[tuple[str, str | None]],
) -> bytes:
    """Encode an ``HSTORE`` value from a mapping or key/value pairs.

    A value of ``None`` is encoded as NULL.
    """
    pairs = values.items() if isinstance(values, Mapping) else values
    parts = []
    for key, value in pairs:
        parts.append(_pascal_string(key))
        parts.append(_I32.pack(-1) if value is None else _pascal_string(value))
    count = checked_i32(len(parts) // 2)
    return _I32.pack(count) + b"".join(parts)


class HstoreEntries:
    """Iterator over the ``(key, value)`` entries of an encoded ``HSTORE``.

    Entries are decoded as they are reached; ``len()`` gives the number of
    entries not yet produced.
    """

    def __init__(self, remaining: int, buf: BytesLike) -> None:
        self._remaining = remaining
        self._data = bytes(buf)
        self._pos = 0

    def __iter__(self) -> Iterator[tuple[str, str | None]]:
        return self

    def __len__(self) -> int:
        return self._remaining

    def _take(self, length: int) -> bytes:
        end = self._pos + length
        if end > len(self._data):
            raise DecodeError("unexpected end of buffer")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def __next__(self) -> tuple[str, str | None]:
        if self._remaining == 0:
            if self._pos != len(self._data):
                raise DecodeError(_INVALID_BUFFER_SIZE)
            raise StopIteration
        self._remaining -= 1

        key_len, self._pos = _read_i32(self._data, self._pos)
        if key_len < 0:
            raise DecodeError("invalid key length")
        key = _decode_utf8(self._take(key_len))

        value_len, self._pos = _read_i32(self._data, self._pos)
        value = None if value_len < 0 else _decode_utf8(self._take(value_len))
        return key, value


def hstore_from_sql(buf: BytesLike) -> HstoreEntries:
    """Decode an ``HSTORE`` value into an iterator over its entries."""
    data = bytes(buf)
    count, pos = _read_i32(data, 0)
    if count < 0:
        raise DecodeError("invalid entry count")
    return HstoreEntries(count, data[pos:])


@dataclass(frozen=True)
class Varbit:
    """A ``VARBIT`` or ``BIT`` value: a bit count and the bytes holding the bits."""

    length: int
    data: bytes

    def __len__(self) -> int:
        return self.length


def varbit_to_sql(length: int, data: Iterable[int] | BytesLike) -> bytes:
    """Encode a ``VARBIT`` or ``BIT`` value of ``length`` bits."""
    return _I32.pack(checked_i32(length)) + bytes(data)


def varbit_from_sql(buf: BytesLike) -> Varbit:
    """Decode a ``VARBIT`` or ``BIT`` value."""
    data = bytes(buf)
    length, pos = _read_i32(data, 0)
    if length < 0:
        raise DecodeError("invalid varbit length")
    rest = data[pos:]
    if len(rest) != (length + 7) // 8:
        raise DecodeError(_INVALID_MESSAGE_LENGTH)
    return Varbit(length, rest)


def timestamp_to_sql(value: int) -> bytes:
    """Encode a ``TIMESTAMP``/``TIMESTAMPTZ`` as microseconds since 2000-01-01."""
    return _pack(_I64, value)


def timestamp_from_sql(buf: BytesLike) -> int:
    """Decode a ``TIMESTAMP``/``TIMESTAMPTZ`` to microseconds since 2000-01-01."""
    return _unpack_exact(_I64, buf, _INVALID_MESSAGE_LENGTH)


def date_to_sql(value: int) -> bytes:
    """Encode a ``DATE`` as days since 2000-01-01."""
    return _pack(_I32, value)


def date_from_sql(buf: BytesLike) -> int:
    """Decode a ``DATE`` to days since 2000-01-01."""
    return _unpack_exact(_I32, buf, _INVALID_MESSAGE_LENGTH)


def time_to_sql(value: int) -> bytes:
    """Encode a ``TIME``/``TIMETZ`` as microseconds since midnight."""
    return _pack(_I64, value)


def time_from_sql(buf: BytesLike) -> int:
    """Decode a ``TIME``/``TIMETZ`` to microseconds since midnight."""
    return _unpack_exact(_I64, buf, _INVALID_MESSAGE_LENGTH)


def _fixed_bytes(value: BytesLike, size: int, what: str) -> bytes:
    data = bytes(value)
    if len(data) != size:
        raise ValueError(f"{what} must be exactly {size} bytes")
    return data


def macaddr_to_sql(value: BytesLike) -> bytes:
    """Encode a ``MACADDR`` value from its six bytes."""
    return _fixed_bytes(value, 6, "MAC address")


def macaddr_from_sql(buf: BytesLike) -> bytes:
    """Decode a ``MACADDR`` value to its six bytes."""
    data = bytes(buf)
    if len(data) != 6:
        raise DecodeError(_INVALID_MESSAGE_LENGTH)
    return data


def uuid_to_sql(value: BytesLike | uuid.UUID) -> bytes:
    """Encode a ``UUID`` value from a ``uuid.UUID`` or its sixteen bytes."""
    if isinstance(value, uuid.UUID):
        return value.bytes
    return _fixed_bytes(value, 16, "UUID")


def uuid_from_sql(buf: BytesLike) -> bytes:
    """Decode a ``UUID`` value to its sixteen bytes."""
    data = bytes(buf)
    if len(data) != 16:
        raise DecodeError(_INVALID_MESSAGE_LENGTH)
    return data