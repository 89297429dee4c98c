import uuid

import pytest

from pgwirecodec.common import DecodeError
from pgwirecodec.scalars import (
    HstoreEntries,
    Varbit,
    bool_from_sql,
    bool_to_sql,
    bytea_from_sql,
    bytea_to_sql,
    char_from_sql,
    char_to_sql,
    date_from_sql,
    date_to_sql,
    float4_from_sql,
    float4_to_sql,
    float8_from_sql,
    float8_to_sql,
    hstore_from_sql,
    hstore_to_sql,
    int2_from_sql,
    int2_to_sql,
    int4_from_sql,
    int4_to_sql,
    int8_from_sql,
    int8_to_sql,
    macaddr_from_sql,
    macaddr_to_sql,
    oid_from_sql,
    oid_to_sql,
    text_from_sql,
    text_to_sql,
    time_from_sql,
    time_to_sql,
    timestamp_from_sql,
    timestamp_to_sql,
    uuid_from_sql,
    uuid_to_sql,
    varbit_from_sql,
    varbit_to_sql,
)


def test_bool():
    assert bool_from_sql(bool_to_sql(True)) is True
    assert bool_from_sql(bool_to_sql(False)) is False


def test_bool_encoding_and_size_check():
    assert bool_to_sql(True) == b"\x01"
    with pytest.raises(DecodeError):
        bool_from_sql(b"\x01\x00")
    with pytest.raises(DecodeError):
        bool_from_sql(b"")


def test_int2():
    buf = int2_to_sql(0x0102)
    assert buf == b"\x01\x02"
    assert int2_from_sql(buf) == 0x0102


def test_int4():
    buf = int4_to_sql(0x0102_0304)
    assert buf == b"\x01\x02\x03\x04"
    assert int4_from_sql(buf) == 0x0102_0304


def test_int8():
    buf = int8_to_sql(0x0102_0304_0506_0708)
    assert buf == bytes(range(1, 9))
    assert int8_from_sql(buf) == 0x0102_0304_0506_0708


def test_float4():
    assert float4_from_sql(float4_to_sql(10343.95)) == pytest.approx(10343.95, rel=1e-6)


def test_float8():
    assert float8_from_sql(float8_to_sql(10343.95)) == 10343.95


def test_int_trailing_bytes_rejected():
    with pytest.raises(DecodeError, match="invalid buffer size"):
        int4_from_sql(b"\x00\x00\x00\x01\x00")


def test_int_short_buffer_rejected():
    with pytest.raises(DecodeError):
        int8_from_sql(b"\x00\x00")


def test_int_out_of_range_rejected():
    with pytest.raises(ValueError):
        int2_to_sql(0x8000)


def test_oid_unsigned():
    buf = oid_to_sql(0xFFFF_FFFF)
    assert buf == b"\xff\xff\xff\xff"
    assert oid_from_sql(buf) == 0xFFFF_FFFF


def test_char_signed():
    buf = char_to_sql(-1)
    assert buf == b"\xff"
    assert char_from_sql(buf) == -1


def test_bytea_and_text():
    assert bytea_from_sql(bytea_to_sql(b"\x00\x01")) == b"\x00\x01"
    assert text_to_sql("héllo") == "héllo".encode("utf-8")
    assert text_from_sql(text_to_sql("héllo")) == "héllo"


def test_text_invalid_utf8():
    with pytest.raises(DecodeError):
        text_from_sql(b"\xff\xfe")


def test_hstore():
    entries = {"hello": "world", "hola": None}
    buf = hstore_to_sql(entries)
    assert dict(hstore_from_sql(buf)) == entries


def test_hstore_len_counts_remaining():
    entries = hstore_from_sql(hstore_to_sql([("a", "1"), ("b", None)]))
    assert isinstance(entries, HstoreEntries)
    assert len(entries) == 2
    assert next(entries) == ("a", "1")
    assert len(entries) == 1
    assert next(entries) == ("b", None)
    assert len(entries) == 0


def test_hstore_encoding():
    assert hstore_to_sql([("k", None)]) == (
        b"\x00\x00\x00\x01" b"\x00\x00\x00\x01k" b"\xff\xff\xff\xff"
    )


def test_hstore_negative_count():
    with pytest.raises(DecodeError, match="invalid entry count"):
        hstore_from_sql(b"\xff\xff\xff\xff")


def test_hstore_trailing_bytes():
    buf = hstore_to_sql({"a": "b"}) + b"\x00"
    with pytest.raises(DecodeError, match="invalid buffer size"):
        list(hstore_from_sql(buf))


def test_hstore_negative_key_length():
    buf = b"\x00\x00\x00\x01" + b"\xff\xff\xff\xff"
    with pytest.raises(DecodeError, match="invalid key length"):
        list(hstore_from_sql(buf))


def test_varbit():
    length = 12
    bits = bytes([0b0010_1011, 0b0000_1111])
    out = varbit_from_sql(varbit_to_sql(length, bits))
    assert len(out) == length
    assert out.data == bits
    assert out == Varbit(12, bits)


def test_varbit_length_mismatch():
    buf = varbit_to_sql(12, b"\x01")
    with pytest.raises(DecodeError, match="invalid message length"):
        varbit_from_sql(buf)


def test_varbit_negative_length():
    with pytest.raises(DecodeError, match="invalid varbit length"):
        varbit_from_sql(b"\xff\xff\xff\xff")


def test_timestamp_date_time():
    assert timestamp_from_sql(timestamp_to_sql(-1_000_000)) == -1_000_000
    assert date_from_sql(date_to_sql(-365)) == -365
    assert time_from_sql(time_to_sql(86_399_999_999)) == 86_399_999_999


def test_timestamp_trailing_bytes():
    with pytest.raises(DecodeError, match="invalid message length"):
        timestamp_from_sql(timestamp_to_sql(0) + b"\x00")


def test_macaddr():
    mac = bytes([0x02, 0x00, 0x00, 0x00, 0x00, 0x01])
    assert macaddr_from_sql(macaddr_to_sql(mac)) == mac
    with pytest.raises(ValueError):
        macaddr_to_sql(b"\x00" * 5)
    with pytest.raises(DecodeError):
        macaddr_from_sql(b"\x00" * 7)


def test_uuid():
    value = uuid.UUID("12345678-1234-5678-1234-567812345678")
    assert uuid_from_sql(uuid_to_sql(value)) == value.bytes
    assert uuid_to_sql(value.bytes) == value.bytes
    with pytest.raises(DecodeError):
        uuid_from_sql(b"\x00" * 15)