# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Flip session state machine.

One FlipSession owns the current sealed commitment, the nonce counter and
the single-flight guard. Nothing else mutates them.

State layout
------------

    IDLE ──start()──▶ COMMITTED ──flip()──▶ RESOLVING ──▶ RESOLVED ──▶ COMMITTED
                          ▲                                               │
                          └─────────────── fresh commitment ◀─────────────┘

- IDLE: only before start(); no commitment exists yet.
- COMMITTED: a sealed commitment is published and awaits a flip.
- RESOLVING: nonce incremented, outcome derived from the still-sealed secret.
- RESOLVED: secret revealed, record frozen, appended to the ledger.

RESOLVING → RESOLVED → COMMITTED happens inside a single flip() call. Events
for the flip are dispatched afterwards while the guard is still held, so a
listener (for example one that kicks off a coin animation) cannot start a
second flip before the first has been fully announced.

Every flip mints a brand-new commitment: the nonce labels flips for audit,
but each flip's fairness rests on its own one-time secret.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, List, Optional

from coinflip.commit_reveal.commit import (CommitmentManager, EntropySource,
                                           random_client_seed)
from coinflip.commit_reveal.derive import derive
from coinflip.commit_reveal.verify import verify
from coinflip.config import FlipConfig
from coinflip.errors import (EMPTY_CLIENT_SEED, FLIP_IN_FLIGHT, NOT_STARTED,
                             ValidationError)
from coinflip.metrics import METRICS, Metrics
from coinflip.session.events import (CommitmentReady, Event, EventBus,
                                     FlipResolved, Listener,
                                     ValidationRejected)
from coinflip.session.history import HistoryLedger
from coinflip.types.core import (Commitment, Derivation, FlipRecord, Outcome,
                                 VerificationResult)

logger = logging.getLogger(__name__)

Deriver = Callable[[str, str, int], Derivation]


class SessionState(Enum):
    IDLE = auto()
    COMMITTED = auto()
    RESOLVING = auto()
    RESOLVED = auto()


@dataclass(frozen=True, slots=True)
class FlipResult:
    """Explicit result of a flip request: either a record or a rejection."""

    accepted: bool
    record: Optional[FlipRecord] = None
    rejection: Optional[ValidationError] = None

    @property
    def outcome(self) -> Optional[Outcome]:
        return None if self.record is None else self.record.outcome

    def raise_for_rejection(self) -> None:
        if self.rejection is not None:
            raise self.rejection


class FlipSession:
    """
    Orchestrates commit → flip → reveal cycles.

    Parameters
    ----------
    config : FlipConfig, optional
        Sizes, history bound and nonce start. Validated on construction.
    commitments : CommitmentManager, optional
        Source of sealed commitments (built from `config` if omitted).
    ledger : HistoryLedger, optional
        Where resolved records go (built from `config` if omitted).
    deriver : callable, optional
        (secret, client_seed, nonce) -> Derivation. Defaults to `derive`.
    metrics : Metrics, optional
        Prometheus instruments; defaults to the module singleton.
    client_seed : str, optional
        Initial client seed; a random one is generated if omitted.
    entropy : callable, optional
        Secure byte source shared by the default CommitmentManager and the
        client seed generator.
    """

    def __init__(
        self,
        config: Optional[FlipConfig] = None,
        *,
        commitments: Optional[CommitmentManager] = None,
        ledger: Optional[HistoryLedger] = None,
        deriver: Deriver = derive,
        metrics: Optional[Metrics] = None,
        client_seed: Optional[str] = None,
        entropy: EntropySource = os.urandom,
    ) -> None:
        cfg = config or FlipConfig()
        cfg.validate()
        self._cfg = cfg
        self._entropy = entropy
        self._commitments = commitments or CommitmentManager(cfg.secret_bytes, entropy)
        self._ledger = ledger or HistoryLedger(cfg.history_size)
        self._derive = deriver
        self._metrics = metrics or METRICS
        self._bus = EventBus()
        self._guard = threading.Lock()

        self._state = SessionState.IDLE
        self._nonce = cfg.nonce_start
        self._current: Optional[Commitment] = None
        self._last: Optional[FlipRecord] = None
        self._client_seed = (
            client_seed.strip()
            if client_seed is not None
            else random_client_seed(cfg.client_seed_bytes, entropy)
        )

    # ------------------------ read-only view ------------------------

    @property
    def config(self) -> FlipConfig:
        return self._cfg

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def nonce(self) -> int:
        return self._nonce

    @property
    def public_hash(self) -> Optional[str]:
        """Public hash of the current sealed commitment (None before start)."""
        return None if self._current is None else self._current.public_hash

    @property
    def client_seed(self) -> str:
        return self._client_seed

    @property
    def last_record(self) -> Optional[FlipRecord]:
        return self._last

    @property
    def history(self) -> List[FlipRecord]:
        return self._ledger.entries()

    @property
    def ledger(self) -> HistoryLedger:
        return self._ledger

    @property
    def busy(self) -> bool:
        return self._guard.locked()

    # ------------------------ listeners ------------------------

    def subscribe(self, listener: Listener) -> None:
        self._bus.subscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        self._bus.unsubscribe(listener)

    # ------------------------ operations ------------------------

    def start(self) -> None:
        """
        Publish the first commitment (IDLE → COMMITTED). No-op once started.

        Raises EntropyFailure if no secure randomness is available; the
        session then stays IDLE.
        """
        with self._hold():
            if self._state is not SessionState.IDLE:
                return
            self._commit_next()
            self._dispatch([CommitmentReady(self._current.public_hash, self._nonce)])

    def flip(self, client_seed: Optional[str] = None) -> FlipResult:
        """
        Resolve one flip against the current commitment.

        `client_seed`, when given, replaces the session's client seed first.
        Refused requests return a FlipResult carrying a ValidationError and
        leave nonce, commitment and history untouched.
        """
        if not self._guard.acquire(blocking=False):
            return self._reject(FLIP_IN_FLIGHT, "a flip is already in progress")
        try:
            if self._state is not SessionState.COMMITTED:
                return self._reject(NOT_STARTED, "no sealed commitment is current; call start()")
            seed = (self._client_seed if client_seed is None else client_seed).strip()
            if not seed:
                return self._reject(EMPTY_CLIENT_SEED, "client seed must not be empty")
            self._client_seed = seed
            return self._resolve(seed)
        finally:
            self._guard.release()

    def set_client_seed(self, seed: str) -> None:
        """Replace the client seed. Refused while a flip is in flight."""
        with self._hold():
            self._client_seed = seed.strip()

    def randomize_client_seed(self) -> str:
        with self._hold():
            self._client_seed = random_client_seed(self._cfg.client_seed_bytes, self._entropy)
            return self._client_seed

    def verify_last(self) -> VerificationResult:
        """Verify the most recent resolved flip (NOTHING_TO_VERIFY if none)."""
        res = verify(self._last)
        self._metrics.record_verification(res.status.value)
        return res

    def reset(self) -> None:
        """
        Forget history, return the nonce to its start value and publish a
        fresh commitment. The replaced commitment is discarded unrevealed.
        """
        with self._hold():
            self._ledger.clear()
            self._last = None
            self._nonce = self._cfg.nonce_start
            self._commit_next()
            logger.info("session reset", extra={"public_hash": self._current.public_hash})
            self._dispatch([CommitmentReady(self._current.public_hash, self._nonce)])

    # ------------------------ internals ------------------------

    def _resolve(self, seed: str) -> FlipResult:
        commitment = self._current
        assert commitment is not None

        # COMMITTED → RESOLVING: the nonce is consumed even if derivation fails
        self._state = SessionState.RESOLVING
        self._nonce += 1
        nonce = self._nonce
        try:
            d = self._derive(commitment.secret, seed, nonce)
        except Exception:
            self._state = SessionState.COMMITTED
            raise

        # RESOLVING → RESOLVED
        record = FlipRecord(
            nonce=nonce,
            secret=self._commitments.reveal(commitment),
            public_hash=commitment.public_hash,
            client_seed=seed,
            message=d.message,
            digest=d.digest,
            derived_value=d.derived_value,
            outcome=Outcome(d.outcome),
        )
        self._state = SessionState.RESOLVED
        self._ledger.append(record)
        self._last = record
        self._metrics.record_flip(record.label)
        logger.info(
            "flip resolved",
            extra={"nonce": nonce, "outcome": record.label, "public_hash": record.public_hash},
        )

        # RESOLVED → COMMITTED
        events: List[Event] = [FlipResolved(record)]
        try:
            self._commit_next()
            events.append(CommitmentReady(self._current.public_hash, self._nonce))
        finally:
            self._dispatch(events)
        return FlipResult(accepted=True, record=record)

    def _commit_next(self) -> None:
        self._current = self._commitments.generate_commitment()
        self._state = SessionState.COMMITTED
        self._metrics.record_commitment()

    def _reject(self, code: str, reason: str) -> FlipResult:
        err = ValidationError(code, reason)
        logger.info("flip rejected", extra={"code": code, "nonce": self._nonce})
        self._metrics.record_rejection(code)
        self._bus.emit(ValidationRejected(code, reason))
        return FlipResult(accepted=False, rejection=err)

    def _dispatch(self, events: List[Event]) -> None:
        for ev in events:
            self._bus.emit(ev)

    def _hold(self) -> "_Guarded":
        return _Guarded(self._guard)


class _Guarded:
    """Non-blocking acquire of the single-flight guard, raising if held."""

    __slots__ = ("_lock",)

    def __init__(self, lock: threading.Lock) -> None:
        self._lock = lock

    def __enter__(self) -> None:
        if not self._lock.acquire(blocking=False):
            raise ValidationError(FLIP_IN_FLIGHT, "a flip is already in progress")

    def __exit__(self, *exc: object) -> None:
        self._lock.release()


__all__ = [
    "SessionState",
    "FlipResult",
    "FlipSession",
    "Deriver",
]
