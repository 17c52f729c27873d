"""
tests/test_permissions.py — Authorization Gate
===============================================
"""

from __future__ import annotations

import logging

import pytest
from sqlalchemy.orm import Session

from boardsync.database.models import BoardRole
from boardsync.engine.permissions import (
    NotParticipantError,
    RoleForbiddenError,
    can_delete_comment,
    can_manage_members,
    can_write,
    lookup_role,
    require_owner,
    require_participant,
    require_writer,
    role_of,
)


# ===========================================================================
# Predicates
# ===========================================================================
class TestPredicates:
    @pytest.mark.parametrize(
        "role,expected",
        [
            (BoardRole.OWNER, True),
            (BoardRole.MEMBER, True),
            (BoardRole.VIEWER, False),
            (None, False),
        ],
    )
    def test_can_write(self, role, expected):
        assert can_write(role) is expected

    def test_only_owner_manages_members(self):
        assert can_manage_members(BoardRole.OWNER)
        assert not can_manage_members(BoardRole.MEMBER)
        assert not can_manage_members(BoardRole.VIEWER)
        assert not can_manage_members(None)

    def test_author_may_delete_own_comment_even_as_viewer(self):
        assert can_delete_comment(BoardRole.VIEWER, user_id=5, author_id=5)

    def test_owner_may_delete_any_comment(self):
        assert can_delete_comment(BoardRole.OWNER, user_id=1, author_id=5)

    def test_member_may_not_delete_others_comment(self):
        assert not can_delete_comment(BoardRole.MEMBER, user_id=2, author_id=5)

    def test_non_participant_never_deletes(self):
        assert not can_delete_comment(None, user_id=5, author_id=5)

    def test_orphaned_comment_only_owner(self):
        assert not can_delete_comment(BoardRole.MEMBER, user_id=2, author_id=None)
        assert can_delete_comment(BoardRole.OWNER, user_id=1, author_id=None)


# ===========================================================================
# Role resolution & guards
# ===========================================================================
class TestRoleResolution:
    def test_role_of_each_participant(self, board):
        with Session(board.engine) as session:
            assert role_of(session, board.owner["id"], board.board_id) == BoardRole.OWNER
            assert role_of(session, board.member["id"], board.board_id) == BoardRole.MEMBER
            assert role_of(session, board.viewer["id"], board.board_id) == BoardRole.VIEWER
            assert role_of(session, board.outsider["id"], board.board_id) is None

    def test_lookup_role_opens_own_session(self, board):
        assert lookup_role(board.engine, board.member["id"], board.board_id) == BoardRole.MEMBER
        assert lookup_role(board.engine, board.member["id"], 9999) is None


class TestGuards:
    def test_require_participant_rejects_outsider(self, board, caplog):
        with Session(board.engine) as session, caplog.at_level(logging.WARNING):
            with pytest.raises(NotParticipantError) as exc:
                require_participant(session, board.outsider["id"], board.board_id)
        assert exc.value.status_code == 403
        assert "not a participant" in caplog.text

    def test_require_writer_rejects_viewer(self, board, caplog):
        with Session(board.engine) as session, caplog.at_level(logging.WARNING):
            with pytest.raises(RoleForbiddenError) as exc:
                require_writer(session, board.viewer["id"], board.board_id, "add cards")
        assert exc.value.role == BoardRole.VIEWER
        assert exc.value.message == "Board role cannot add cards"
        assert "forbids add cards" in caplog.text

    def test_require_writer_accepts_member(self, board):
        with Session(board.engine) as session:
            role = require_writer(session, board.member["id"], board.board_id, "add cards")
        assert role == BoardRole.MEMBER

    def test_require_owner_rejects_member(self, board):
        with Session(board.engine) as session:
            with pytest.raises(RoleForbiddenError, match="Only board owners can add members"):
                require_owner(session, board.member["id"], board.board_id, "add members")

    def test_denial_classes_are_distinguishable(self, board):
        with Session(board.engine) as session:
            with pytest.raises(NotParticipantError):
                require_writer(session, board.outsider["id"], board.board_id, "add cards")
            with pytest.raises(RoleForbiddenError):
                require_writer(session, board.viewer["id"], board.board_id, "add cards")
