"""PostgreSQL frontend messages, MD5 password hashing and binary value encodings."""

__version__ = "0.4.0"

__all__ = ["auth", "common", "composites", "frontend", "scalars"]