# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Outcome derivation.

Definition
----------
message       = secret ":" client_seed ":" decimal(nonce)
digest        = SHA-256( message )
derived_value = uint32_be( digest[0:4] )
outcome       = derived_value mod 2        (0 = HEADS, 1 = TAILS)

2**32 is even, so the mod-2 split over the derived value space is exactly
uniform. Everything here is pure: identical (secret, client_seed, nonce)
always yield identical (message, digest, derived_value, outcome).
"""

from __future__ import annotations

from coinflip.constants import DERIVED_VALUE_BYTES, MESSAGE_SEPARATOR
from coinflip.types.core import Derivation, Outcome
from coinflip.utils.hash import sha256_bytes, to_hex


def _check_nonce(nonce: int) -> int:
    # bool is an int subclass; True would render as "True"
    if isinstance(nonce, bool) or not isinstance(nonce, int):
        raise TypeError("nonce must be an int")
    if nonce < 0:
        raise ValueError("nonce must be non-negative")
    return nonce


def canonical_message(secret: str, client_seed: str, nonce: int) -> str:
    """Join the three inputs in fixed order; nonce as plain decimal."""
    n = _check_nonce(nonce)
    return MESSAGE_SEPARATOR.join((secret, client_seed, str(n)))


def derived_value_from_digest(digest: bytes) -> int:
    """Leading 4 digest bytes as an unsigned big-endian integer."""
    if len(digest) < DERIVED_VALUE_BYTES:
        raise ValueError(f"digest must be at least {DERIVED_VALUE_BYTES} bytes")
    return int.from_bytes(digest[:DERIVED_VALUE_BYTES], "big")


def outcome_from_value(value: int) -> Outcome:
    return Outcome.HEADS if value % 2 == 0 else Outcome.TAILS


def derive(secret: str, client_seed: str, nonce: int) -> Derivation:
    message = canonical_message(secret, client_seed, nonce)
    raw = sha256_bytes(message)
    value = derived_value_from_digest(raw)
    return Derivation(
        message=message,
        digest=to_hex(raw),
        derived_value=value,
        outcome=outcome_from_value(value),
    )


__all__ = [
    "canonical_message",
    "derived_value_from_digest",
    "outcome_from_value",
    "derive",
]
