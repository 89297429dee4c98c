# pgwirecodec

Building blocks for talking to a PostgreSQL server: encoders for the messages
a client sends, the MD5 password hash, and conversion of column values to and
from PostgreSQL's binary format.

It is meant as a foundation for higher-level clients rather than for direct
use in applications. Text values are encoded and decoded as UTF-8, so the
server's `client_encoding` should be set to `UTF8`.

The package has no dependencies outside the standard library.

## Installation

```
pip install pgwirecodec
```

## Modules

- `pgwirecodec.common`: the error types and length helpers.
  - `ProtocolError` is the base of the package's own errors.
  - `DecodeError` (also a `ValueError`) is raised by decoders when a buffer is
    not a valid encoding.
  - `ValueTooLargeError` (also a `ValueError`) is raised when a length or
    count does not fit in its wire field.
  - `checked_i16(value)` and `checked_i32(value)` return `value` when it fits
    in a signed 16- or 32-bit field, raising `ValueTooLargeError` when it is too
    large and `ValueError` when it is negative.
  - `write_nullable(value)` prefixes bytes with their 32-bit length; `None`
    becomes the NULL length `-1`.
- `pgwirecodec.auth`: `md5_hash(username, password, salt)` returns the
  `"md5..."` string to send in reply to an MD5 password request. `username`
  and `password` may be `str` or bytes; `salt` must be exactly 4 bytes.
- `pgwirecodec.frontend`: one function per client message, each returning the
  complete wire bytes: `startup_message`, `ssl_request`, `cancel_request`,
  `password_message`, `sasl_initial_response`, `sasl_response`, `query`,
  `parse`, `bind`, `describe`, `execute`, `close`, `sync`, `terminate`,
  `copy_data`, `copy_done` and `copy_fail`.
  - `startup_message` takes a mapping or a sequence of key/value pairs.
  - `describe` and `close` take the variant as an int, a one-character string
    or a single byte (`"S"` for a statement, `"P"` for a portal).
  - `bind` takes a `serializer` that turns each value into bytes, or `None` for
    NULL; pass `serializer=None` when the values are already encoded. An
    exception raised by the serializer is re-raised as `BindError`.
  - Strings sent as C strings may not contain a NUL character; doing so raises
    `ValueError`.
  - `CopyData(data)` checks the message length when it is created and
    `CopyData.write()` returns the message bytes.
- `pgwirecodec.scalars`: `*_to_sql` / `*_from_sql` pairs for `BOOL`, `BYTEA`,
  text types, `"char"`, `INT2`, `INT4`, `INT8`, `OID`, `FLOAT4`, `FLOAT8`,
  `HSTORE`, `BIT`/`VARBIT`, `TIMESTAMP`, `DATE`, `TIME`, `MACADDR` and `UUID`.
  - Timestamps and times are plain integers of microseconds (since
    2000-01-01 and since midnight); dates are days since 2000-01-01.
  - `hstore_from_sql` returns an `HstoreEntries` iterator of `(key, value)`
    pairs, decoded as they are reached; `len()` gives the entries still to come.
  - `varbit_from_sql` returns a `Varbit` with `length` (bits) and `data`.
  - `uuid_to_sql` accepts a `uuid.UUID` or 16 bytes; `uuid_from_sql` returns
    the 16 bytes.
- `pgwirecodec.composites`: arrays, ranges, `POINT`, `BOX`, `PATH` and `INET`.
  - `array_to_sql(dimensions, element_type, elements, serializer)` and
    `array_from_sql(buf)`, which returns an `Array` with `has_nulls`,
    `element_type` and the generators `dimensions()` (of `ArrayDimension`) and
    `values()` (encoded elements, `None` for NULL).
  - `range_to_sql(lower, upper)` with `RangeBound(kind, value)` bounds, where
    `kind` is a `BoundKind`; `empty_range_to_sql()`; `range_from_sql(buf)`
    returns a `Range` whose `is_empty` is true for the empty range.
  - `point_to_sql` / `point_from_sql` (`Point`), `box_to_sql` / `box_from_sql`
    (`Box` with `upper_right` and `lower_left`), `path_to_sql` /
    `path_from_sql` (`Path` with `closed` and a `points()` generator).
  - `inet_to_sql(addr, netmask)` takes an `ipaddress` address or a string;
    `inet_from_sql` returns an `Inet` with `addr` and `netmask`.

## Examples

Building messages:

```python
from pgwirecodec import frontend

assert frontend.query("SELECT 1") == b"Q\x00\x00\x00\rSELECT 1\x00"
startup = frontend.startup_message({"user": "postgres", "database": "postgres"})
```

Hashing credentials for MD5 authentication:

```python
from pgwirecodec.auth import md5_hash

password = "password"
response = md5_hash("md5_user", password, bytes([0x2A, 0x3D, 0x8F, 0xE0]))
```

Round-tripping scalar values:

```python
from pgwirecodec.scalars import hstore_from_sql, hstore_to_sql, int4_from_sql, int4_to_sql

assert int4_from_sql(int4_to_sql(0x01020304)) == 0x01020304

encoded = hstore_to_sql({"hello": "world", "hola": None})
assert dict(hstore_from_sql(encoded)) == {"hello": "world", "hola": None}
```

Encoding and reading an array:

```python
from pgwirecodec.composites import ArrayDimension, array_from_sql, array_to_sql
from pgwirecodec.scalars import int4_to_sql

encoded = array_to_sql(
    [ArrayDimension(length=2, lower_bound=1)],
    23,
    [1, None],
    lambda v: None if v is None else int4_to_sql(v),
)
array = array_from_sql(encoded)
assert array.has_nulls
assert list(array.values()) == [b"\x00\x00\x00\x01", None]
```

## What it does not do

The package only builds and reads bytes. It opens no connections, handles no
TLS, and does not parse the messages a server sends back. Of authentication it
offers only the MD5 hash; the SCRAM exchange that goes inside the SASL
messages is not included.

## Running the tests

```
pip install -e ".[test]"
pytest
```