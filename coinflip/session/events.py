"""
Session events and a tiny synchronous dispatcher.

A presentation layer (coin animation, history table, "Verify" button)
subscribes a callable and receives one of:

  • CommitmentReady(public_hash, nonce) : a new sealed commitment is current
  • FlipResolved(record)                : a flip finished; secret is revealed
  • ValidationRejected(code, reason)    : a flip request was refused

Events are delivered on the caller's thread, after the state transition that
produced them is complete. A listener that raises is logged and skipped; the
remaining listeners still run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Union

from coinflip.types.core import FlipRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommitmentReady:
    public_hash: str
    nonce: int


@dataclass(frozen=True, slots=True)
class FlipResolved:
    record: FlipRecord


@dataclass(frozen=True, slots=True)
class ValidationRejected:
    code: str
    reason: str


Event = Union[CommitmentReady, FlipResolved, ValidationRejected]
Listener = Callable[[Event], None]


class EventBus:
    __slots__ = ("_listeners",)

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def __len__(self) -> int:
        return len(self._listeners)

    def emit(self, event: Event) -> None:
        # snapshot so listeners may (un)subscribe while being notified
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "session listener failed", extra={"event": type(event).__name__}
                )


__all__ = [
    "CommitmentReady",
    "FlipResolved",
    "ValidationRejected",
    "Event",
    "Listener",
    "EventBus",
]
