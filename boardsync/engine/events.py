"""
boardsync.engine.events — Realtime Event Vocabulary
====================================================

Three event classes travel to clients:

* ``board_changed``    → board room: something structural changed.
* ``presence_changed`` → board room: the set of online users changed.
* ``boards_changed``   → user room: the user's board list changed.

Notices carry no entity data.  Clients re-fetch authoritative state when
they receive one, so a dropped notice costs at most one stale frame.

:class:`MutationOutcome` is what every service mutation returns: the
response body plus which notices (if any) the route must publish after
the transaction commits.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "BoardEvent",
    "EventName",
    "MutationOutcome",
    "UserEvent",
    "board_changed",
    "boards_changed",
    "presence_changed",
]


class EventName(enum.StrEnum):
    """Top-level event names sent over the socket."""
    BOARD_CHANGED = "board_changed"
    PRESENCE_CHANGED = "presence_changed"
    BOARDS_CHANGED = "boards_changed"
    SOCKET_ERROR = "socket_error"
    PONG = "pong"


class BoardEvent(enum.StrEnum):
    """``event`` values carried by ``board_changed``."""
    BOARD_CREATED = "board_created"
    MEMBER_ADDED = "member_added"
    COLUMN_CREATED = "column_created"
    COLUMN_UPDATED = "column_updated"
    CARD_CREATED = "card_created"
    CARD_UPDATED = "card_updated"
    CARD_DELETED = "card_deleted"
    CARD_MOVED = "card_moved"
    COMMENT_CREATED = "comment_created"
    COMMENT_DELETED = "comment_deleted"


class UserEvent(enum.StrEnum):
    """``event`` values carried by ``boards_changed``."""
    BOARD_CREATED = "board_created"
    BOARD_ADDED_TO_USER = "board_added_to_user"


def _now() -> str:
    return datetime.now(UTC).isoformat()


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------
def board_changed(board_id: int, event: BoardEvent | str) -> dict[str, Any]:
    return {"boardId": board_id, "event": str(event), "at": _now()}


def boards_changed(user_id: int, event: UserEvent | str) -> dict[str, Any]:
    return {"userId": user_id, "event": str(event), "at": _now()}


def presence_changed(board_id: int, online_user_ids: list[int]) -> dict[str, Any]:
    return {"boardId": board_id, "onlineUserIds": online_user_ids, "at": _now()}


# ---------------------------------------------------------------------------
# MutationOutcome
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class MutationOutcome:
    """Result of one service mutation.

    ``changed`` is ``False`` for a no-op write: nothing was written, no
    activity was recorded and nothing should be broadcast.
    """

    board_id: int
    data: dict[str, Any] | None
    changed: bool = True
    board_event: BoardEvent | None = None
    user_events: tuple[tuple[int, UserEvent], ...] = field(default_factory=tuple)

    @classmethod
    def unchanged(cls, board_id: int, data: dict[str, Any]) -> MutationOutcome:
        return cls(board_id=board_id, data=data, changed=False)
