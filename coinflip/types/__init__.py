"""
Coin flip types package

Typed records shared across the commit/derive/verify pipeline and the
session:

  • core : Outcome, Commitment, Derivation, FlipRecord, VerificationResult
  • wire : pydantic model for the JSON form of a FlipRecord

Common symbols are re-exported here:
    from coinflip.types import FlipRecord, Outcome
"""

from __future__ import annotations

from .core import (Commitment, Derivation, FlipRecord, Outcome,
                   VerificationResult, VerificationStatus)

__all__ = [
    "Commitment",
    "Derivation",
    "FlipRecord",
    "Outcome",
    "VerificationResult",
    "VerificationStatus",
]
