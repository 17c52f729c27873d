"""
boardsync.realtime.broadcaster — Room-Based Fan-Out
====================================================

Routes authoritative notices to exactly the sockets that should see them.

Rooms:
  * ``board:{id}`` — every connection that successfully joined the board.
  * ``user:{id}``  — every connection of one user, joined on connect.

Joining a board room first resolves the caller's role through the
authorization gate.  Invalid ids, non-members and lookup failures get an
explicit ``socket_error`` event, never a silent drop.

Delivery is fire-and-forget: a failed send to one socket is logged and
skipped, nothing is retried or queued.  Clients re-fetch full state on
reconnect or board switch, so gaps are tolerated.

Usage::

    hub = get_broadcaster()
    hub.connect(conn)
    await hub.join_board(conn, board_id, resolve_role)
    await hub.publish(outcome)        # after the mutation committed
    await hub.disconnect(conn)
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import threading
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from boardsync.constants import board_room, user_room
from boardsync.database.models import BoardRole
from boardsync.engine.events import (
    BoardEvent,
    EventName,
    MutationOutcome,
    UserEvent,
    board_changed,
    boards_changed,
    presence_changed,
)
from boardsync.realtime.presence import PresenceTracker

logger = logging.getLogger(__name__)

RoleResolver = Callable[[int, int], Awaitable[BoardRole | None]]

_connection_ids = itertools.count(1)


class JsonSender(Protocol):
    async def send_json(self, data: Any) -> None: ...


class Connection:
    """One live socket, owned by one authenticated user."""

    __slots__ = ("id", "user_id", "boards", "_sender")

    def __init__(self, sender: JsonSender, user_id: int) -> None:
        self.id = next(_connection_ids)
        self.user_id = user_id
        self.boards: set[int] = set()
        self._sender = sender

    async def send(self, event: str, payload: dict[str, Any]) -> None:
        await self._sender.send_json({"event": str(event), "payload": payload})

    async def send_error(self, message: str) -> None:
        await self.send(EventName.SOCKET_ERROR, {"message": message})

    def __repr__(self) -> str:
        return f"<Connection id={self.id} user={self.user_id} boards={sorted(self.boards)}>"


class Broadcaster:
    """Room membership, presence bookkeeping and event fan-out."""

    def __init__(self, presence: PresenceTracker | None = None) -> None:
        self.presence = presence or PresenceTracker()
        self._rooms: dict[str, set[Connection]] = {}
        self._lock = threading.Lock()

    # -------------------------------------------------------------------
    # Room bookkeeping
    # -------------------------------------------------------------------
    def _add(self, room: str, conn: Connection) -> None:
        with self._lock:
            self._rooms.setdefault(room, set()).add(conn)

    def _discard(self, room: str, conn: Connection) -> None:
        with self._lock:
            members = self._rooms.get(room)
            if members is None:
                return
            members.discard(conn)
            if not members:
                del self._rooms[room]

    def members(self, room: str) -> list[Connection]:
        with self._lock:
            return list(self._rooms.get(room, ()))

    @property
    def room_count(self) -> int:
        with self._lock:
            return len(self._rooms)

    # -------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------
    def connect(self, conn: Connection) -> None:
        """Register a new authenticated connection in its user room."""
        self._add(user_room(conn.user_id), conn)
        logger.info("Socket %d connected for user %d", conn.id, conn.user_id)

    async def disconnect(self, conn: Connection) -> None:
        """Leave every room; re-broadcast presence for each board left."""
        self._discard(user_room(conn.user_id), conn)
        boards = sorted(conn.boards)
        conn.boards.clear()
        for board_id in boards:
            self._discard(board_room(board_id), conn)
            self.presence.leave(board_id, conn.user_id)
            await self.notify_presence(board_id)
        logger.info("Socket %d disconnected (user %d)", conn.id, conn.user_id)

    async def join_board(
        self, conn: Connection, board_id: Any, resolve_role: RoleResolver
    ) -> bool:
        """Join *board_id*'s room after a fresh role check.

        Returns ``True`` on success.  Re-joining an already joined board
        only re-sends the presence snapshot.
        """
        if isinstance(board_id, bool) or not isinstance(board_id, int):
            await self._safe_send_error(conn, "Invalid board id")
            return False

        try:
            role = await resolve_role(conn.user_id, board_id)
        except Exception:
            logger.exception(
                "Role lookup failed for user %d on board %d", conn.user_id, board_id
            )
            await self._safe_send_error(conn, "Could not join board")
            return False

        if role is None:
            logger.warning(
                "Socket %d (user %d) refused join: not a participant of board %d",
                conn.id, conn.user_id, board_id,
            )
            await self._safe_send_error(conn, "Not authorized for this board")
            return False

        if board_id in conn.boards:
            await self.notify_presence(board_id)
            return True

        self._add(board_room(board_id), conn)
        conn.boards.add(board_id)
        self.presence.join(board_id, conn.user_id)
        await self.notify_presence(board_id)
        return True

    async def leave_board(self, conn: Connection, board_id: Any) -> bool:
        if board_id not in conn.boards:
            return False
        conn.boards.discard(board_id)
        self._discard(board_room(board_id), conn)
        self.presence.leave(board_id, conn.user_id)
        await self.notify_presence(board_id)
        return True

    # -------------------------------------------------------------------
    # Notices
    # -------------------------------------------------------------------
    async def notify_board(self, board_id: int, event: BoardEvent | str) -> int:
        return await self._emit(
            board_room(board_id), EventName.BOARD_CHANGED, board_changed(board_id, event)
        )

    async def notify_user(self, user_id: int, event: UserEvent | str) -> int:
        return await self._emit(
            user_room(user_id), EventName.BOARDS_CHANGED, boards_changed(user_id, event)
        )

    async def notify_presence(self, board_id: int) -> int:
        payload = presence_changed(board_id, self.presence.online_users(board_id))
        return await self._emit(board_room(board_id), EventName.PRESENCE_CHANGED, payload)

    async def publish(self, outcome: MutationOutcome) -> None:
        """Broadcast the notices of a committed mutation.

        No-op outcomes publish nothing.  Failures are logged and swallowed:
        the write already stands and clients recover by re-fetching.
        """
        if not outcome.changed:
            return
        try:
            if outcome.board_event is not None:
                await self.notify_board(outcome.board_id, outcome.board_event)
            for user_id, event in outcome.user_events:
                await self.notify_user(user_id, event)
        except Exception:
            logger.exception(
                "Broadcast failed after commit on board %d (%s)",
                outcome.board_id, outcome.board_event,
            )

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------
    async def _emit(self, room: str, event: str, payload: dict[str, Any]) -> int:
        """Send to every member of *room*; return how many sends succeeded."""
        targets = self.members(room)
        if not targets:
            return 0
        results = await asyncio.gather(
            *(conn.send(event, payload) for conn in targets), return_exceptions=True
        )
        delivered = 0
        for conn, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Dropped %s for socket %d in %s: %r", event, conn.id, room, result
                )
            else:
                delivered += 1
        return delivered

    async def _safe_send_error(self, conn: Connection, message: str) -> None:
        try:
            await conn.send_error(message)
        except Exception:
            logger.warning("Could not deliver socket_error to socket %d", conn.id)


# ---------------------------------------------------------------------------
# Module-level singleton — one hub per process
# ---------------------------------------------------------------------------
_broadcaster: Broadcaster | None = None


def get_broadcaster() -> Broadcaster:
    """Return the process-wide broadcaster, creating it on first use."""
    global _broadcaster
    if _broadcaster is None:
        _broadcaster = Broadcaster()
    return _broadcaster


def configure_broadcaster(presence: PresenceTracker | None = None) -> Broadcaster:
    """Replace the process-wide broadcaster (startup and tests)."""
    global _broadcaster
    _broadcaster = Broadcaster(presence)
    return _broadcaster
