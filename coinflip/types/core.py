from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Tuple

from coinflip.constants import OUTCOME_LABELS

"""
Core typed primitives for the coin flip.

Kept free of heavy dependencies so they can be shared by the deriver,
verifier, session, ledger, CLI and tests.

Types provided:
  • Outcome            : HEADS (0) / TAILS (1)
  • Commitment         : server secret plus its public hash, sealed until revealed
  • Derivation         : message/digest/derived value/outcome for one input triple
  • FlipRecord         : everything disclosed about one resolved flip
  • VerificationStatus : VERIFIED / FAILED / NOTHING_TO_VERIFY
  • VerificationResult : outcome of re-checking a FlipRecord
"""


class Outcome(IntEnum):
    HEADS = 0
    TAILS = 1

    @property
    def label(self) -> str:
        return OUTCOME_LABELS[int(self)]


@dataclass(slots=True)
class Commitment:
    """
    A server commitment.

    Fields:
      secret     : hex text drawn from a secure source; hidden from repr
      public_hash: SHA-256 hex of `secret`, safe to publish before the flip
      revealed   : flips to True exactly once, when the flip resolves
    """

    secret: str = field(repr=False)
    public_hash: str
    revealed: bool = False

    @property
    def sealed(self) -> bool:
        return not self.revealed


@dataclass(frozen=True, slots=True)
class Derivation:
    message: str
    digest: str
    derived_value: int
    outcome: Outcome


@dataclass(frozen=True, slots=True)
class FlipRecord:
    """
    One resolved flip. Immutable once created.

    `message`, `digest`, `derived_value` and `outcome` are what the server
    claims was derived from (`secret`, `client_seed`, `nonce`); the verifier
    recomputes them rather than trusting them.
    """

    nonce: int
    secret: str
    public_hash: str
    client_seed: str
    message: str
    digest: str
    derived_value: int
    outcome: Outcome

    @property
    def label(self) -> str:
        return Outcome(self.outcome).label

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly mapping using the published camelCase keys."""
        return {
            "nonce": self.nonce,
            "secret": self.secret,
            "publicHash": self.public_hash,
            "clientSeed": self.client_seed,
            "message": self.message,
            "digest": self.digest,
            "derivedValue": self.derived_value,
            "outcome": int(self.outcome),
        }


class VerificationStatus(Enum):
    VERIFIED = "verified"
    FAILED = "failed"
    NOTHING_TO_VERIFY = "nothing_to_verify"


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """
    Result of re-checking a record.

    `mismatches` lists the stored fields that disagree with the recomputed
    values (e.g. ("public_hash",) or ("digest", "outcome")).
    """

    status: VerificationStatus
    commit_valid: bool = False
    result_valid: bool = False
    mismatches: Tuple[str, ...] = ()
    nonce: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status is VerificationStatus.VERIFIED

    @classmethod
    def nothing_to_verify(cls) -> "VerificationResult":
        return cls(status=VerificationStatus.NOTHING_TO_VERIFY)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "commitValid": self.commit_valid,
            "resultValid": self.result_valid,
            "mismatches": list(self.mismatches),
            "nonce": self.nonce,
        }
