# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Commitment construction for the coin flip's commit–reveal.

Definition
----------
secret      = hex( R )            R = `secret_bytes` bytes from a CSPRNG
public_hash = SHA-256( secret )   hashed as UTF-8 text

The public hash is published before the player picks a client seed; the
secret is disclosed only after the outcome has been computed. Because the
secret is hashed as the exact hex text the player later sees, anyone can
recompute the commitment with a stock `sha256sum`.

There is no fallback to a non-cryptographic generator: if the
entropy source fails, `EntropyFailure` is raised and no commitment exists.
"""

from __future__ import annotations

import logging
import os
from typing import Callable

from coinflip.constants import (DEFAULT_CLIENT_SEED_BYTES,
                                DEFAULT_SECRET_BYTES, MIN_SECRET_BYTES)
from coinflip.errors import EntropyFailure
from coinflip.types.core import Commitment
from coinflip.utils.hash import sha256_hex, to_hex

logger = logging.getLogger(__name__)

EntropySource = Callable[[int], bytes]


def _draw(n: int, entropy: EntropySource) -> bytes:
    try:
        raw = entropy(n)
    except (NotImplementedError, OSError) as e:
        logger.error("secure random source unavailable", extra={"requested": n})
        raise EntropyFailure(n, "source-unavailable") from e
    if not isinstance(raw, (bytes, bytearray)) or len(raw) != n:
        logger.error("secure random source returned a short read", extra={"requested": n})
        raise EntropyFailure(n, "short-read")
    return bytes(raw)


def random_client_seed(
    n_bytes: int = DEFAULT_CLIENT_SEED_BYTES,
    entropy: EntropySource = os.urandom,
) -> str:
    """Fresh random client seed as hex text (what the "Randomize" control uses)."""
    if n_bytes <= 0:
        raise ValueError("n_bytes must be > 0")
    return to_hex(_draw(n_bytes, entropy))


class CommitmentManager:
    """
    Mints sealed commitments and reveals them.

    The manager knows nothing about flips: *when* a reveal is allowed is
    decided by the FlipSession.
    """

    __slots__ = ("secret_bytes", "_entropy")

    def __init__(
        self,
        secret_bytes: int = DEFAULT_SECRET_BYTES,
        entropy: EntropySource = os.urandom,
    ):
        if secret_bytes < MIN_SECRET_BYTES:
            raise ValueError(f"secret_bytes must be >= {MIN_SECRET_BYTES}")
        self.secret_bytes = int(secret_bytes)
        self._entropy = entropy

    def generate_commitment(self) -> Commitment:
        """Draw a new secret and return it sealed together with its public hash."""
        secret = to_hex(_draw(self.secret_bytes, self._entropy))
        c = Commitment(secret=secret, public_hash=sha256_hex(secret))
        logger.debug("commitment minted", extra={"public_hash": c.public_hash})
        return c

    def reveal(self, commitment: Commitment) -> str:
        """Mark `commitment` revealed and return its secret. Idempotent."""
        if not commitment.revealed:
            commitment.revealed = True
            logger.debug("commitment revealed", extra={"public_hash": commitment.public_hash})
        return commitment.secret


__all__ = [
    "CommitmentManager",
    "EntropySource",
    "random_client_seed",
]
