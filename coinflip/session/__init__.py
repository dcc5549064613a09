"""
coinflip.session
----------------

Stateful side of the coin flip: the FlipSession state machine, the bounded
history ledger and the events a presentation layer listens to.
"""

from __future__ import annotations

from .events import (CommitmentReady, Event, EventBus, FlipResolved,
                     ValidationRejected)
from .flip_session import FlipResult, FlipSession, SessionState
from .history import HistoryLedger

__all__ = [
    "CommitmentReady",
    "Event",
    "EventBus",
    "FlipResolved",
    "FlipResult",
    "FlipSession",
    "HistoryLedger",
    "SessionState",
    "ValidationRejected",
]
