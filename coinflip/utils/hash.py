# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
coinflip.utils.hash
===================

Thin SHA-256 helpers used for both the server commitment and the outcome
digest. Stdlib `hashlib` only.

Text inputs are hashed as their UTF-8 encoding, so the hex secret that a
player sees is exactly the string that was hashed. Bytes-like inputs are
hashed as-is.

Key pieces
----------
- :func:`sha256_bytes`, :func:`sha256_hex`: one-shot digests.
- :func:`to_hex` / :func:`from_hex`: strict lowercase hex helpers.
- :func:`consteq`: timing-safe equality for digests and hex strings.
"""

from __future__ import annotations

import binascii
import hmac
from hashlib import sha256 as _sha256
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]
TextOrBytes = Union[str, bytes, bytearray, memoryview]

__all__ = [
    "sha256_bytes",
    "sha256_hex",
    "to_hex",
    "from_hex",
    "consteq",
]


def _encode(data: TextOrBytes) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError("expected str or bytes-like object")


def sha256_bytes(data: TextOrBytes) -> bytes:
    """Return SHA-256(data) as 32 raw bytes."""
    return _sha256(_encode(data)).digest()


def sha256_hex(data: TextOrBytes) -> str:
    """Return SHA-256(data) as 64 lowercase hex characters."""
    return _sha256(_encode(data)).hexdigest()


def to_hex(b: BytesLike) -> str:
    """Lowercase hex without a ``0x`` prefix."""
    return bytes(b).hex()


def from_hex(s: str) -> bytes:
    """
    Decode a hex string (optional ``0x`` prefix). Raises ValueError on odd
    length or non-hex characters.
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects a str")
    body = s[2:] if s.startswith(("0x", "0X")) else s
    try:
        return binascii.unhexlify(body)
    except (binascii.Error, ValueError) as e:
        raise ValueError("invalid hex string") from e


def consteq(a: TextOrBytes, b: TextOrBytes) -> bool:
    """
    Constant-time equality. Strings are compared by their UTF-8 bytes so that
    non-ASCII input does not raise inside ``hmac.compare_digest``.
    """
    return hmac.compare_digest(_encode(a), _encode(b))
