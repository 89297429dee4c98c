"""Errors and small helpers shared by the encoders and decoders."""

from __future__ import annotations

import struct

I16_MAX = 2**15 - 1
I32_MAX = 2**31 - 1

_I32 = struct.Struct(">i")


class ProtocolError(Exception):
    """Base class for errors raised by this package."""


class DecodeError(ProtocolError, ValueError):
    """Raised when a buffer does not hold a valid encoded value."""


class ValueTooLargeError(ProtocolError, ValueError):
    """Raised when a length or count does not fit in its wire field."""


def _checked(value: int, limit: int) -> int:
    if value < 0:
        raise ValueError(f"negative size: {value}")
    if value > limit:
        raise ValueTooLargeError("value too large to transmit")
    return value


def checked_i16(value: int) -> int:
    """Return ``value`` if it fits in a signed 16-bit field."""
    return _checked(value, I16_MAX)


def checked_i32(value: int) -> int:
    """Return ``value`` if it fits in a signed 32-bit field."""
    return _checked(value, I32_MAX)


def write_nullable(value: bytes | bytearray | memoryview | None) -> bytes:
    """Encode a value with its 32-bit length prefix; ``None`` encodes as NULL (-1)."""
    if value is None:
        return _I32.pack(-1)
    data = bytes(value)
    return _I32.pack(checked_i32(len(data))) + data