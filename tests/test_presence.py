"""
tests/test_presence.py — Reference-Counted Presence
====================================================
"""

from __future__ import annotations

import threading

from boardsync.realtime.presence import PresenceTracker


class TestPresenceTracker:
    def test_two_tabs_one_close_stays_online(self):
        tracker = PresenceTracker()
        tracker.join(1, 42)
        tracker.join(1, 42)
        tracker.leave(1, 42)
        assert tracker.online_users(1) == [42]
        assert tracker.is_online(1, 42)

    def test_last_close_goes_offline_and_board_removed(self):
        tracker = PresenceTracker()
        tracker.join(1, 42)
        tracker.join(1, 42)
        tracker.leave(1, 42)
        tracker.leave(1, 42)
        assert tracker.online_users(1) == []
        assert tracker.board_count == 0

    def test_leave_on_zero_is_noop(self):
        tracker = PresenceTracker()
        assert tracker.leave(1, 42) == 0
        tracker.join(1, 7)
        assert tracker.leave(1, 42) == 0
        assert tracker.online_users(1) == [7]

    def test_join_returns_count(self):
        tracker = PresenceTracker()
        assert tracker.join(3, 1) == 1
        assert tracker.join(3, 1) == 2
        assert tracker.connection_count(3, 1) == 2

    def test_online_users_sorted_and_per_board(self):
        tracker = PresenceTracker()
        for user in (9, 2, 5):
            tracker.join(1, user)
        tracker.join(2, 9)
        assert tracker.online_users(1) == [2, 5, 9]
        assert tracker.online_users(2) == [9]
        assert not tracker.is_online(2, 5)

    def test_clear(self):
        tracker = PresenceTracker()
        tracker.join(1, 1)
        tracker.clear()
        assert tracker.board_count == 0

    def test_concurrent_join_leave_balances(self):
        tracker = PresenceTracker()

        def churn():
            for _ in range(500):
                tracker.join(1, 42)
                tracker.leave(1, 42)

        threads = [threading.Thread(target=churn) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert tracker.online_users(1) == []
        assert tracker.connection_count(1, 42) == 0
