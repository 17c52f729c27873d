"""
boardsync.realtime.presence — Reference-Counted Board Presence
===============================================================

A user may hold several sockets on the same board (one per tab), so
presence is a per-board multiset: ``join`` increments the user's count,
``leave`` decrements it, and the user is online while the count is ≥ 1.

* A board's entry disappears once its last user leaves (no growth from
  connection churn).
* ``leave`` on a zero count is a no-op, so duplicate disconnect
  notifications are harmless.

The table is process-local and never persisted; it is rebuilt from live
sockets after a restart.  Every mutation happens under one lock with a
short critical section.
"""

from __future__ import annotations

import threading
from collections import Counter

__all__ = ["PresenceTracker"]


class PresenceTracker:
    """Thread-safe ``board_id → Counter[user_id]`` table."""

    def __init__(self) -> None:
        self._boards: dict[int, Counter[int]] = {}
        self._lock = threading.Lock()

    def join(self, board_id: int, user_id: int) -> int:
        """Count one more connection for *user_id*; return the new count."""
        with self._lock:
            counts = self._boards.setdefault(board_id, Counter())
            counts[user_id] += 1
            return counts[user_id]

    def leave(self, board_id: int, user_id: int) -> int:
        """Drop one connection for *user_id*; return the remaining count."""
        with self._lock:
            counts = self._boards.get(board_id)
            if counts is None or counts[user_id] <= 0:
                return 0
            counts[user_id] -= 1
            remaining = counts[user_id]
            if remaining <= 0:
                del counts[user_id]
            if not counts:
                del self._boards[board_id]
            return remaining

    def online_users(self, board_id: int) -> list[int]:
        """User ids with at least one live connection, in ascending order."""
        with self._lock:
            counts = self._boards.get(board_id)
            return sorted(counts) if counts else []

    def is_online(self, board_id: int, user_id: int) -> bool:
        with self._lock:
            counts = self._boards.get(board_id)
            return bool(counts) and counts[user_id] > 0

    def connection_count(self, board_id: int, user_id: int) -> int:
        with self._lock:
            counts = self._boards.get(board_id)
            return counts[user_id] if counts else 0

    @property
    def board_count(self) -> int:
        """Number of boards with at least one online user."""
        with self._lock:
            return len(self._boards)

    def clear(self) -> None:
        with self._lock:
            self._boards.clear()
