"""
coinflip.session.history
========================

A small in-memory ring buffer of resolved flips, newest first.

Design goals
------------
- O(1) append and eviction (strict FIFO by insertion order).
- O(1) lookup by nonce for records still in the window.
- Thread-safe for light concurrent readers/writers.

The ledger is purely observational: the verifier never reads it, it only
checks the record it is handed.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from coinflip.constants import DEFAULT_HISTORY_SIZE
from coinflip.types.core import FlipRecord


class HistoryLedger:
    """
    Ring buffer of recent :class:`FlipRecord` items keyed by nonce.

    Assumes strictly increasing nonces on append; call :meth:`clear` before
    starting over from a lower nonce.
    """

    __slots__ = ("_cap", "_buf", "_by_nonce", "_lock")

    def __init__(self, capacity: int = DEFAULT_HISTORY_SIZE):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._cap: int = int(capacity)
        self._buf: Deque[FlipRecord] = deque()  # oldest on the left
        self._by_nonce: Dict[int, FlipRecord] = {}
        self._lock = threading.RLock()

    @property
    def capacity(self) -> int:
        return self._cap

    def __len__(self) -> int:
        with self._lock:
            return len(self._buf)

    # ------------------------ mutation ------------------------

    def append(self, record: FlipRecord) -> Optional[FlipRecord]:
        """
        Append a resolved flip. Nonces must be strictly increasing.
        Returns the evicted record when the bound is exceeded, else None.
        """
        with self._lock:
            if self._buf and record.nonce <= self._buf[-1].nonce:
                raise ValueError(
                    f"nonce must increase (got {record.nonce}, last {self._buf[-1].nonce})"
                )
            self._buf.append(record)
            self._by_nonce[record.nonce] = record
            if len(self._buf) > self._cap:
                oldest = self._buf.popleft()
                del self._by_nonce[oldest.nonce]
                return oldest
            return None

    def clear(self) -> None:
        with self._lock:
            self._buf.clear()
            self._by_nonce.clear()

    # ------------------------ lookup ------------------------

    def entries(self) -> List[FlipRecord]:
        """All retained records, newest first."""
        with self._lock:
            return list(reversed(self._buf))

    def latest(self) -> Optional[FlipRecord]:
        with self._lock:
            return self._buf[-1] if self._buf else None

    def get(self, nonce: int) -> Optional[FlipRecord]:
        with self._lock:
            return self._by_nonce.get(int(nonce))

    def rows(self) -> List[Dict[str, Any]]:
        """Display rows for a history table, newest first."""
        return [
            {
                "index": r.nonce,
                "outcome": r.label,
                "nonce": r.nonce,
                "roll": r.derived_value,
                "resultHash": r.digest,
            }
            for r in self.entries()
        ]


__all__ = ["HistoryLedger"]
