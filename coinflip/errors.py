"""
Coin flip errors.

A small typed hierarchy of exceptions raised by the commit/flip/reveal core.
Callers can catch the base `FlipError` to handle everything, or catch the
concrete subclasses:

- `ValidationError`  : a flip or seed change was refused; nothing was mutated.
- `EntropyFailure`   : the secure random source is unavailable; fatal.
- `RecordFormatError`: input is not a flip record at all (bad JSON shape).

A record whose hashes do not match is NOT an error: the verifier reports it
as a failed `VerificationResult`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class FlipError(Exception):
    """Base class for all coin flip errors."""
    pass


# Rejection codes carried by ValidationError.code
EMPTY_CLIENT_SEED = "empty_client_seed"
FLIP_IN_FLIGHT = "flip_in_flight"
NOT_STARTED = "not_started"


@dataclass(eq=False)
class ValidationError(FlipError):
    """
    Raised (or carried in a FlipResult) when a request is refused.

    Attributes:
        code: stable machine-readable reason (see module constants).
        reason: human-readable explanation.
    """
    code: str
    reason: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"ValidationError[{self.code}]: {self.reason}"


@dataclass(eq=False)
class EntropyFailure(FlipError):
    """
    Raised when no cryptographically secure random bytes can be obtained.

    Attributes:
        requested: number of bytes asked for.
        reason: optional explanation (e.g. 'source-unavailable', 'short-read').
    """
    requested: int
    reason: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return (
            f"EntropyFailure: requested={self.requested}"
            + (f" reason={self.reason}" if self.reason else "")
        )


class RecordFormatError(FlipError, ValueError):
    """Raised when serialized data cannot be read as a flip record."""
    pass


__all__ = [
    "FlipError",
    "ValidationError",
    "EntropyFailure",
    "RecordFormatError",
    "EMPTY_CLIENT_SEED",
    "FLIP_IN_FLIGHT",
    "NOT_STARTED",
]
