"""
boardsync.constants — Shared Constants
=======================================

Single source of truth for values shared by the config loader, services
and routes.  Import from here instead of duplicating literals.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------
DEFAULT_COLUMN_TITLES: tuple[str, ...] = ("To Do", "In Progress", "Done")

# ---------------------------------------------------------------------------
# Activity feed paging
# ---------------------------------------------------------------------------
DEFAULT_ACTIVITY_PAGE_SIZE = 30
DEFAULT_ACTIVITY_PAGE_MAX = 100

# ---------------------------------------------------------------------------
# Realtime rooms
# ---------------------------------------------------------------------------
BOARD_ROOM_PREFIX = "board:"
USER_ROOM_PREFIX = "user:"


def board_room(board_id: int) -> str:
    return f"{BOARD_ROOM_PREFIX}{board_id}"


def user_room(user_id: int) -> str:
    return f"{USER_ROOM_PREFIX}{user_id}"
