"""
boardsync.api.routes.realtime — WebSocket endpoint
===================================================

Protocol (JSON text frames)::

    client → {"type": "join_board",  "boardId": 7}
    client → {"type": "leave_board", "boardId": 7}
    client → {"type": "ping"}

    server → {"event": "presence_changed", "payload": {...}}
    server → {"event": "board_changed",    "payload": {...}}
    server → {"event": "boards_changed",   "payload": {...}}
    server → {"event": "socket_error",     "payload": {"message": "..."}}
    server → {"event": "pong",             "payload": {}}

The bearer token travels as ``?token=`` (browsers cannot set headers on a
WebSocket handshake) or in an ``Authorization`` header.  A socket without
a valid token gets one ``socket_error`` and is closed with 1008.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from boardsync.api.deps import get_broadcaster, get_engine
from boardsync.api.security import CurrentUser, TokenError, bearer_token, decode_token
from boardsync.database.engine import run_db
from boardsync.database.models import BoardRole
from boardsync.engine.events import EventName
from boardsync.engine.permissions import lookup_role
from boardsync.realtime.broadcaster import Broadcaster, Connection

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])


def _authenticate(websocket: WebSocket) -> CurrentUser | None:
    token = websocket.query_params.get("token") or bearer_token(
        websocket.headers.get("authorization")
    )
    if not token:
        return None
    try:
        return decode_token(token)
    except TokenError:
        return None


@router.websocket("/ws")
async def board_socket(
    websocket: WebSocket,
    engine=Depends(get_engine),
    hub: Broadcaster = Depends(get_broadcaster),
):
    await websocket.accept()

    user = _authenticate(websocket)
    if user is None:
        logger.warning("Rejected socket from %s: missing or invalid token", websocket.client)
        await websocket.send_json(
            {"event": str(EventName.SOCKET_ERROR), "payload": {"message": "Unauthorized"}}
        )
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    async def resolve_role(user_id: int, board_id: int) -> BoardRole | None:
        return await run_db(lookup_role, engine, user_id, board_id)

    conn = Connection(websocket, user.id)
    hub.connect(conn)
    try:
        while True:
            try:
                frame = await websocket.receive_json()
            except (ValueError, KeyError, TypeError):
                # non-JSON text, or a binary frame without a text payload
                await conn.send_error("Malformed message")
                continue
            await _dispatch(hub, conn, frame, resolve_role)
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(conn)


async def _dispatch(hub: Broadcaster, conn: Connection, frame: Any, resolve_role) -> None:
    if not isinstance(frame, dict):
        await conn.send_error("Malformed message")
        return

    kind = frame.get("type")
    if kind == "join_board":
        await hub.join_board(conn, frame.get("boardId"), resolve_role)
    elif kind == "leave_board":
        await hub.leave_board(conn, frame.get("boardId"))
    elif kind == "ping":
        await conn.send(EventName.PONG, {})
    else:
        await conn.send_error(f"Unknown message type: {kind!r}")
