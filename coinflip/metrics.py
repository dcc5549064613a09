"""
Prometheus metrics for the coin flip core.

This module defines counters for the session pipeline:
  • flips_total         : resolved flips per outcome
  • rejections_total    : refused flip requests per rejection code
  • verifications_total : verifier runs per status
  • commitments_total   : commitments minted

Design notes
------------
- Label cardinality is intentionally low: every label has a small, fixed
  vocabulary. Nonces and hashes are never used as labels.

Usage
-----
    from coinflip.metrics import METRICS

    METRICS.record_flip("HEADS")
    METRICS.record_rejection("empty_client_seed")

Tests (or embedders that run several sessions) should construct their own
`Metrics` with a fresh `CollectorRegistry`.
"""

from __future__ import annotations

from prometheus_client import REGISTRY, Counter

from coinflip.constants import OUTCOME_LABELS
from coinflip.errors import EMPTY_CLIENT_SEED, FLIP_IN_FLIGHT, NOT_STARTED

# --------- Vocabularies (kept small for bounded cardinality) ---------

_OUTCOMES = tuple(label.lower() for label in OUTCOME_LABELS)

_REJECTION_CODES = (
    EMPTY_CLIENT_SEED,
    FLIP_IN_FLIGHT,
    NOT_STARTED,
    "other",
)

_VERIFY_STATUSES = (
    "verified",
    "failed",
    "nothing_to_verify",
)


class Metrics:
    """
    Container for all coin flip Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "coinflip",
        subsystem: str = "core",
        registry=REGISTRY,
    ) -> None:
        self.flips_total = Counter(
            "flips_total",
            "Number of resolved flips, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.rejections_total = Counter(
            "rejections_total",
            "Number of refused flip requests, labeled by rejection code.",
            labelnames=("code",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.verifications_total = Counter(
            "verifications_total",
            "Number of verifier runs, labeled by status.",
            labelnames=("status",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.commitments_total = Counter(
            "commitments_total",
            "Number of server commitments minted.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    # ----- Recording helpers -------------------------------------------------

    def record_flip(self, outcome: str) -> None:
        outcome = outcome.lower()
        if outcome not in _OUTCOMES:
            raise ValueError(f"unknown outcome label: {outcome!r}")
        self.flips_total.labels(outcome=outcome).inc()

    def record_rejection(self, code: str) -> None:
        if code not in _REJECTION_CODES:
            code = "other"
        self.rejections_total.labels(code=code).inc()

    def record_verification(self, status: str) -> None:
        if status not in _VERIFY_STATUSES:
            raise ValueError(f"unknown verification status: {status!r}")
        self.verifications_total.labels(status=status).inc()

    def record_commitment(self) -> None:
        self.commitments_total.inc()


# Singleton used by sessions that are not handed their own instance
METRICS = Metrics()

__all__ = [
    "Metrics",
    "METRICS",
]
