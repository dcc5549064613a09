# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Verify a resolved flip record from its disclosed inputs.

Definition
----------
Given a record (secret, public_hash, client_seed, nonce, message, digest,
derived_value, outcome) we recompute:

    commit  : SHA-256(secret)                 == public_hash
    result  : derive(secret, client_seed, nonce) == (message, digest,
                                                     derived_value, outcome)

Hash comparisons are constant-time. A mismatch is an expected outcome of
auditing untrusted data, so it is reported as a FAILED result rather than
raised. A missing record is NOTHING_TO_VERIFY, never success.

This module exposes:
- `verify(record)`      : FlipRecord | None -> VerificationResult
- `verify_dict(data)`   : JSON-shaped mapping -> VerificationResult
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from coinflip.commit_reveal.derive import derive
from coinflip.types.core import (FlipRecord, VerificationResult,
                                 VerificationStatus)
from coinflip.types.wire import parse_record
from coinflip.utils.hash import consteq, sha256_hex

logger = logging.getLogger(__name__)


_TEXT_FIELDS = ("secret", "public_hash", "client_seed", "message", "digest")


def _malformed_fields(record: FlipRecord) -> List[str]:
    """Fields whose type or range no session could have produced."""
    bad = [f for f in _TEXT_FIELDS if not isinstance(getattr(record, f), str)]
    n = record.nonce
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        bad.append("nonce")
    return bad


def _result_mismatches(record: FlipRecord) -> List[str]:
    d = derive(record.secret, record.client_seed, record.nonce)
    bad: List[str] = []
    if not consteq(d.message, record.message):
        bad.append("message")
    if not consteq(d.digest, record.digest):
        bad.append("digest")
    if d.derived_value != record.derived_value:
        bad.append("derived_value")
    if int(d.outcome) != int(record.outcome):
        bad.append("outcome")
    return bad


def verify(record: Optional[FlipRecord]) -> VerificationResult:
    """
    Re-check commit integrity and result integrity of `record`.

    Returns
    -------
    VerificationResult
        VERIFIED only if both checks pass; FAILED with the mismatching field
        names otherwise; NOTHING_TO_VERIFY when `record` is None.
    """
    if record is None:
        return VerificationResult.nothing_to_verify()

    malformed = _malformed_fields(record)
    if malformed:
        # neither check can be evaluated on inputs of the wrong shape
        commit_ok, result_bad = False, malformed
        mismatches: List[str] = list(malformed)
    else:
        commit_ok = consteq(sha256_hex(record.secret), record.public_hash)
        mismatches = [] if commit_ok else ["public_hash"]
        result_bad = _result_mismatches(record)
        mismatches.extend(result_bad)

    status = (
        VerificationStatus.VERIFIED
        if commit_ok and not result_bad
        else VerificationStatus.FAILED
    )
    res = VerificationResult(
        status=status,
        commit_valid=commit_ok,
        result_valid=not result_bad,
        mismatches=tuple(mismatches),
        nonce=record.nonce,
    )
    if res.ok:
        logger.debug("flip verified", extra={"nonce": record.nonce})
    else:
        logger.warning(
            "flip verification failed",
            extra={"nonce": record.nonce, "mismatches": list(res.mismatches)},
        )
    return res


def verify_dict(data: Optional[Mapping[str, Any]]) -> VerificationResult:
    """
    JSON-friendly wrapper around `verify`.

    Raises RecordFormatError if `data` does not have the shape of a record.
    """
    if data is None:
        return VerificationResult.nothing_to_verify()
    return verify(parse_record(data))


__all__ = [
    "verify",
    "verify_dict",
]
