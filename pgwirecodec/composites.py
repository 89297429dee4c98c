"""Binary encoders and decoders for arrays, ranges, geometric and network types.

Encoders return the bytes of one value without its length prefix. Decoders
take the bytes of one value and raise ``DecodeError`` when they are not a
valid encoding.
"""

from __future__ import annotations

import enum
import ipaddress
import struct
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Union

from .common import I32_MAX, DecodeError, checked_i32, write_nullable

BytesLike = Union[bytes, bytearray, memoryview]
IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_U8 = struct.Struct(">B")
_I32 = struct.Struct(">i")
_U32 = struct.Struct(">I")
_F64 = struct.Struct(">d")
_ARRAY_HEADER = struct.Struct(">iiI")
_DIMENSION = struct.Struct(">ii")
_POINT = struct.Struct(">dd")
_BOX = struct.Struct(">dddd")

_RANGE_UPPER_UNBOUNDED = 0b0001_0000
_RANGE_LOWER_UNBOUNDED = 0b0000_1000
_RANGE_UPPER_INCLUSIVE = 0b0000_0100
_RANGE_LOWER_INCLUSIVE = 0b0000_0010
_RANGE_EMPTY = 0b0000_0001

_PGSQL_AF_INET = 2
_PGSQL_AF_INET6 = 3


class _Reader:
    """Sequential big-endian reads from a byte string."""

    def __init__(self, data: BytesLike) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def take(self, size: int) -> bytes:
        if size > self.remaining:
            raise DecodeError("unexpected end of buffer")
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def unpack(self, fmt: struct.Struct) -> tuple[Any, ...]:
        return fmt.unpack(self.take(fmt.size))

    def one(self, fmt: struct.Struct) -> Any:
        return self.unpack(fmt)[0]

    def rest(self) -> bytes:
        return self._data[self._pos:]


def _pack(fmt: struct.Struct, *values: Any) -> bytes:
    try:
        return fmt.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


# Arrays


@dataclass(frozen=True)
class ArrayDimension:
    """One dimension of an array: its length and the index of its first element."""

    length: int
    lower_bound: int


def array_to_sql(
    dimensions: Iterable[ArrayDimension],
    element_type: int,
    elements: Iterable[Any],
    serializer: Callable[[Any], BytesLike | None] | None,
) -> bytes:
    """Encode an array value.

    ``serializer`` turns each element into its encoded bytes, or ``None`` for
    NULL. When ``serializer`` is ``None`` the elements are taken as already
    encoded (``None`` standing for NULL).
    """
    dims = b"".join(_pack(_DIMENSION, d.length, d.lower_bound) for d in dimensions)
    ndim = checked_i32(len(dims) // _DIMENSION.size)

    has_nulls = False
    parts = []
    for element in elements:
        encoded = element if serializer is None else serializer(element)
        if encoded is None:
            has_nulls = True
        parts.append(write_nullable(encoded))

    header = _pack(_ARRAY_HEADER, ndim, int(has_nulls), element_type)
    return header + dims + b"".join(parts)


@dataclass(frozen=True)
class Array:
    """A decoded array header; dimensions and values are read on demand."""

    has_nulls: bool
    element_type: int
    _ndim: int = field(repr=False)
    _count: int = field(repr=False)
    _data: bytes = field(repr=False)

    def dimensions(self) -> Iterator[ArrayDimension]:
        """Yield the dimensions of the array."""
        reader = _Reader(self._data[: self._ndim * _DIMENSION.size])
        while reader.remaining:
            length, lower_bound = reader.unpack(_DIMENSION)
            yield ArrayDimension(length, lower_bound)

    def values(self) -> Iterator[bytes | None]:
        """Yield the encoded elements in row-major order; NULL is ``None``."""
        reader = _Reader(self._data[self._ndim * _DIMENSION.size:])
        remaining = self._count
        while remaining:
            remaining -= 1
            length = reader.one(_I32)
            if length < 0:
                yield None
                continue
            if reader.remaining < length:
                raise DecodeError("invalid value length")
            yield reader.take(length)
        if reader.remaining:
            raise DecodeError("invalid message length")


def array_from_sql(buf: BytesLike) -> Array:
    """Decode an array value."""
    reader = _Reader(buf)
    ndim = reader.one(_I32)
    if ndim < 0:
        raise DecodeError("invalid dimension count")
    has_nulls = reader.one(_I32) != 0
    element_type = reader.one(_U32)
    body = reader.rest()

    dims = _Reader(body)
    count = 1
    for _ in range(ndim):
        length, _lower_bound = dims.unpack(_DIMENSION)
        if length < 0:
            raise DecodeError("invalid dimension size")
        count *= length
        if count > I32_MAX:
            raise DecodeError("too many array elements")
    if ndim == 0:
        count = 0

    return Array(has_nulls, element_type, ndim, count, body)


# Ranges


class BoundKind(enum.Enum):
    """How one side of a range is bounded."""

    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"
    UNBOUNDED = "unbounded"


@dataclass(frozen=True)
class RangeBound:
    """One side of a range; ``value`` holds the encoded bound, ``None`` for NULL."""

    kind: BoundKind
    value: bytes | None = None


@dataclass(frozen=True)
class Range:
    """A range value. A range without bounds is the empty range."""

    lower: RangeBound | None = None
    upper: RangeBound | None = None

    @property
    def is_empty(self) -> bool:
        return self.lower is None and self.upper is None


def empty_range_to_sql() -> bytes:
    """Encode the empty range."""
    return bytes([_RANGE_EMPTY])


def _bound_to_sql(bound: RangeBound, unbounded: int, inclusive: int) -> tuple[int, bytes]:
    if bound.kind is BoundKind.UNBOUNDED:
        return unbounded, b""
    flag = inclusive if bound.kind is BoundKind.INCLUSIVE else 0
    return flag, write_nullable(bound.value)


def range_to_sql(lower: RangeBound, upper: RangeBound) -> bytes:
    """Encode a nonempty range from its two bounds."""
    lower_flag, lower_data = _bound_to_sql(
        lower, _RANGE_LOWER_UNBOUNDED, _RANGE_LOWER_INCLUSIVE
    )
    upper_flag, upper_data = _bound_to_sql(
        upper, _RANGE_UPPER_UNBOUNDED, _RANGE_UPPER_INCLUSIVE
    )
    return bytes([lower_flag | upper_flag]) + lower_data + upper_data


def _read_bound(reader: _Reader, tag: int, unbounded: int, inclusive: int) -> RangeBound:
    if tag & unbounded:
        return RangeBound(BoundKind.UNBOUNDED)
    length = reader.one(_I32)
    value = None
    if length >= 0:
        if reader.remaining < length:
            raise DecodeError("invalid message size")
        value = reader.take(length)
    kind = BoundKind.INCLUSIVE if tag & inclusive else BoundKind.EXCLUSIVE
    return RangeBound(kind, value)


def range_from_sql(buf: BytesLike) -> Range:
    """Decode a range value."""
    reader = _Reader(buf)
    tag = reader.one(_U8)
    if tag == _RANGE_EMPTY:
        if reader.remaining:
            raise DecodeError("invalid message size")
        return Range()

    lower = _read_bound(reader, tag, _RANGE_LOWER_UNBOUNDED, _RANGE_LOWER_INCLUSIVE)
    upper = _read_bound(reader, tag, _RANGE_UPPER_UNBOUNDED, _RANGE_UPPER_INCLUSIVE)
    if reader.remaining:
        raise DecodeError("invalid message size")
    return Range(lower, upper)


# Geometry


@dataclass(frozen=True)
class Point:
    """A ``POINT`` value."""

    x: float
    y: float


@dataclass(frozen=True)
class Box:
    """A ``BOX`` value given by two opposite corners."""

    upper_right: Point
    lower_left: Point


def point_to_sql(x: float, y: float) -> bytes:
    """Encode a ``POINT`` value."""
    return _pack(_POINT, x, y)


def point_from_sql(buf: BytesLike) -> Point:
    """Decode a ``POINT`` value."""
    reader = _Reader(buf)
    x, y = reader.unpack(_POINT)
    if reader.remaining:
        raise DecodeError("invalid buffer size")
    return Point(x, y)


def box_to_sql(x1: float, y1: float, x2: float, y2: float) -> bytes:
    """Encode a ``BOX`` value from its upper right and lower left corners."""
    return _pack(_BOX, x1, y1, x2, y2)


def box_from_sql(buf: BytesLike) -> Box:
    """Decode a ``BOX`` value."""
    reader = _Reader(buf)
    x1, y1, x2, y2 = reader.unpack(_BOX)
    if reader.remaining:
        raise DecodeError("invalid buffer size")
    return Box(Point(x1, y1), Point(x2, y2))


def path_to_sql(closed: bool, points: Iterable[tuple[float, float]]) -> bytes:
    """Encode a ``PATH`` value from ``(x, y)`` pairs."""
    encoded = b"".join(_pack(_POINT, x, y) for x, y in points)
    count = checked_i32(len(encoded) // _POINT.size)
    return bytes([int(bool(closed))]) + _I32.pack(count) + encoded


class Path:
    """A decoded ``PATH`` value; its points are read on demand."""

    __slots__ = ("closed", "_count", "_data")

    def __init__(self, closed: bool, count: int, data: bytes) -> None:
        self.closed = closed
        self._count = count
        self._data = data

    def __repr__(self) -> str:
        return f"Path(closed={self.closed!r}, points={self._count})"

    def points(self) -> Iterator[Point]:
        """Yield the points of the path."""
        reader = _Reader(self._data)
        remaining = self._count
        while remaining:
            remaining -= 1
            x, y = reader.unpack(_POINT)
            yield Point(x, y)
        if reader.remaining:
            raise DecodeError("invalid message length")


def path_from_sql(buf: BytesLike) -> Path:
    """Decode a ``PATH`` value."""
    reader = _Reader(buf)
    closed = reader.one(_U8) != 0
    count = reader.one(_I32)
    return Path(closed, count, reader.rest())


# Network addresses


@dataclass(frozen=True)
class Inet:
    """An ``INET`` value: an address and its netmask length."""

    addr: IPAddress
    netmask: int


def inet_to_sql(addr: IPAddress | str, netmask: int) -> bytes:
    """Encode an ``INET`` value."""
    if not isinstance(addr, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        addr = ipaddress.ip_address(addr)
    if not 0 <= netmask <= 0xFF:
        raise ValueError(f"netmask out of range: {netmask}")
    family = _PGSQL_AF_INET if addr.version == 4 else _PGSQL_AF_INET6
    packed = addr.packed
    return bytes([family, netmask, 0, len(packed)]) + packed


def inet_from_sql(buf: BytesLike) -> Inet:
    """Decode an ``INET`` value."""
    reader = _Reader(buf)
    family, netmask, _is_cidr, length = reader.take(4)

    addr: IPAddress
    if family == _PGSQL_AF_INET:
        if netmask > 32:
            raise DecodeError("invalid IPv4 netmask")
        if length != 4:
            raise DecodeError("invalid IPv4 address length")
        addr = ipaddress.IPv4Address(reader.take(4))
    elif family == _PGSQL_AF_INET6:
        if netmask > 128:
            raise DecodeError("invalid IPv6 netmask")
        if length != 16:
            raise DecodeError("invalid IPv6 address length")
        addr = ipaddress.IPv6Address(reader.take(16))
    else:
        raise DecodeError("invalid IP family")

    if reader.remaining:
        raise DecodeError("invalid buffer size")
    return Inet(addr, netmask)