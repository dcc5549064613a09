"""
Provably-fair coin flip core.

This package provides the commit→flip→reveal cycle used to demonstrate that a
binary outcome was fixed before the player chose their client seed:

- a sealed server commitment (SHA-256 of a random secret),
- a deterministic outcome derived from secret, client seed and nonce,
- independent re-verification of any completed flip record.

Presentation (animation, sound, tables) lives outside this package and listens
to session events.
"""

from __future__ import annotations

from .commit_reveal.commit import CommitmentManager, random_client_seed
from .commit_reveal.derive import canonical_message, derive
from .commit_reveal.verify import verify, verify_dict
from .config import FlipConfig
from .errors import EntropyFailure, FlipError, RecordFormatError, ValidationError
from .session.flip_session import FlipResult, FlipSession, SessionState
from .session.history import HistoryLedger
from .types.core import (Commitment, Derivation, FlipRecord, Outcome,
                         VerificationResult, VerificationStatus)
from .version import __version__

__all__ = [
    "__version__",
    "Commitment",
    "CommitmentManager",
    "Derivation",
    "EntropyFailure",
    "FlipConfig",
    "FlipError",
    "FlipRecord",
    "FlipResult",
    "FlipSession",
    "HistoryLedger",
    "Outcome",
    "RecordFormatError",
    "SessionState",
    "ValidationError",
    "VerificationResult",
    "VerificationStatus",
    "canonical_message",
    "derive",
    "random_client_seed",
    "verify",
    "verify_dict",
]
