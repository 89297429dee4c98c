"""Password hashing for the MD5 authentication exchange."""

from __future__ import annotations

import hashlib


def _to_bytes(value: str | bytes | bytearray) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def md5_hash(username: str | bytes, password: str | bytes, salt: bytes) -> str:
    """Hash credentials as a reply to an ``AuthenticationMD5Password`` request.

    The result is the text to send in a ``PasswordMessage``.
    """
    salt = bytes(salt)
    if len(salt) != 4:
        raise ValueError("salt must be exactly 4 bytes")
    inner = hashlib.md5(
        _to_bytes(password) + _to_bytes(username), usedforsecurity=False
    ).hexdigest()
    outer = hashlib.md5(inner.encode("ascii") + salt, usedforsecurity=False)
    return "md5" + outer.hexdigest()