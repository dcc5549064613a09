"""
Coin flip protocol constants.

This module centralizes:
- The canonical message separator and digest size
- Default sizes for server secrets and client seeds
- Default history bound and nonce start
- Outcome labels

Changing the separator or the hash would invalidate every previously published
flip record, so keep these stable. Operational knobs that may differ per
deployment live in `coinflip.config.FlipConfig`; its defaults mirror the
values here.
"""

from __future__ import annotations

# -----------------------------
# Canonical message
# -----------------------------
# message = secret || SEP || client_seed || SEP || decimal(nonce)
MESSAGE_SEPARATOR: str = ":"

# SHA-256 output size, for the commitment and the outcome digest.
DIGEST_SIZE: int = 32

# SHA-256 of the empty input, used as a known-answer check.
EMPTY_SHA256_HEX: str = (
    "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
)

# Leading digest bytes read as a big-endian unsigned integer.
DERIVED_VALUE_BYTES: int = 4

# -----------------------------
# Defaults (mirror config)
# -----------------------------
DEFAULT_SECRET_BYTES: int = 32
DEFAULT_CLIENT_SEED_BYTES: int = 16
DEFAULT_HISTORY_SIZE: int = 12
DEFAULT_NONCE_START: int = 0

# Below this a secret could be brute-forced from its public hash.
MIN_SECRET_BYTES: int = 16

# -----------------------------
# Outcomes
# -----------------------------
OUTCOME_LABELS: tuple[str, str] = ("HEADS", "TAILS")

__all__ = [
    "MESSAGE_SEPARATOR",
    "DIGEST_SIZE",
    "EMPTY_SHA256_HEX",
    "DERIVED_VALUE_BYTES",
    "DEFAULT_SECRET_BYTES",
    "DEFAULT_CLIENT_SEED_BYTES",
    "DEFAULT_HISTORY_SIZE",
    "DEFAULT_NONCE_START",
    "MIN_SECRET_BYTES",
    "OUTCOME_LABELS",
]
