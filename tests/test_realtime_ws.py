"""
tests/test_realtime_ws.py — WebSocket Endpoint
===============================================
Single-connection protocol checks through ``TestClient.websocket_connect``.
Multi-socket fan-out is covered against fake sockets in
``test_broadcaster.py``.
"""

from __future__ import annotations

import pytest
from starlette.websockets import WebSocketDisconnect


def _ws_url(user: dict | None = None) -> str:
    if user is None:
        return "/api/ws"
    from boardsync.api.security import issue_token

    return f"/api/ws?token={issue_token(user['id'], user['email'], user['name'])}"


class TestHandshake:
    def test_missing_token_is_rejected(self, client):
        with client.websocket_connect("/api/ws") as ws:
            frame = ws.receive_json()
            assert frame == {"event": "socket_error", "payload": {"message": "Unauthorized"}}
            with pytest.raises(WebSocketDisconnect) as exc:
                ws.receive_json()
        assert exc.value.code == 1008

    def test_invalid_token_is_rejected(self, client):
        with client.websocket_connect("/api/ws?token=garbage") as ws:
            assert ws.receive_json()["payload"]["message"] == "Unauthorized"

    def test_authorization_header_accepted(self, client, board, headers_for):
        with client.websocket_connect("/api/ws", headers=headers_for(board.member)) as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"event": "pong", "payload": {}}


class TestBoardRooms:
    def test_member_join_receives_presence(self, client, board, hub):
        with client.websocket_connect(_ws_url(board.member)) as ws:
            ws.send_json({"type": "join_board", "boardId": board.board_id})
            frame = ws.receive_json()

            assert frame["event"] == "presence_changed"
            assert frame["payload"]["boardId"] == board.board_id
            assert frame["payload"]["onlineUserIds"] == [board.member["id"]]
            assert len(hub.members(f"board:{board.board_id}")) == 1

        assert hub.presence.online_users(board.board_id) == []

    def test_viewer_may_join(self, client, board):
        with client.websocket_connect(_ws_url(board.viewer)) as ws:
            ws.send_json({"type": "join_board", "boardId": board.board_id})
            assert ws.receive_json()["event"] == "presence_changed"

    def test_outsider_join_gets_socket_error(self, client, board, hub):
        with client.websocket_connect(_ws_url(board.outsider)) as ws:
            ws.send_json({"type": "join_board", "boardId": board.board_id})
            frame = ws.receive_json()

            assert frame == {
                "event": "socket_error",
                "payload": {"message": "Not authorized for this board"},
            }
            assert hub.members(f"board:{board.board_id}") == []

    def test_invalid_board_id(self, client, board):
        with client.websocket_connect(_ws_url(board.member)) as ws:
            ws.send_json({"type": "join_board", "boardId": "abc"})
            assert ws.receive_json()["payload"]["message"] == "Invalid board id"

    def test_leave_board_rebroadcasts_empty_presence(self, client, board):
        with client.websocket_connect(_ws_url(board.member)) as ws:
            ws.send_json({"type": "join_board", "boardId": board.board_id})
            ws.receive_json()
            ws.send_json({"type": "leave_board", "boardId": board.board_id})
            ws.send_json({"type": "ping"})
            # the leaver is no longer in the room, so the next frame is the pong
            assert ws.receive_json()["event"] == "pong"


class TestMalformedFrames:
    def test_non_json_text(self, client, board):
        with client.websocket_connect(_ws_url(board.member)) as ws:
            ws.send_text("not json")
            assert ws.receive_json()["payload"]["message"] == "Malformed message"

    def test_unknown_type(self, client, board):
        with client.websocket_connect(_ws_url(board.member)) as ws:
            ws.send_json({"type": "dance"})
            assert ws.receive_json()["payload"]["message"] == "Unknown message type: 'dance'"

    def test_non_object_frame(self, client, board):
        with client.websocket_connect(_ws_url(board.member)) as ws:
            ws.send_json([1, 2, 3])
            assert ws.receive_json()["event"] == "socket_error"

    def test_binary_frame(self, client, board):
        with client.websocket_connect(_ws_url(board.member)) as ws:
            ws.send_bytes(b"\x00\x01")
            assert ws.receive_json()["payload"]["message"] == "Malformed message"
            ws.send_json({"type": "ping"})
            assert ws.receive_json()["event"] == "pong"
