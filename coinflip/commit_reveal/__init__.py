# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
coinflip.commit_reveal
======================

Commit–reveal primitives for the coin flip.

Typical flow (one flip):
    1) Publish the public hash of a fresh sealed commitment.
    2) Derive the outcome from (secret, client seed, nonce).
    3) Reveal the secret so anyone can re-run steps 1–2.

Submodules:
    - commit.py : secret generation, public hash, reveal.
    - derive.py : canonical message and outcome derivation.
    - verify.py : independent re-verification of a flip record.
"""

from __future__ import annotations

from coinflip.commit_reveal.commit import CommitmentManager, random_client_seed
from coinflip.commit_reveal.derive import canonical_message, derive
from coinflip.commit_reveal.verify import verify, verify_dict

__all__ = [
    "CommitmentManager",
    "random_client_seed",
    "canonical_message",
    "derive",
    "verify",
    "verify_dict",
]
