"""
tests/test_activity_service.py — Activity Trail
================================================
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from boardsync.database.engine import get_session
from boardsync.database.models import Activity, ActivityAction, EntityType
from boardsync.services.activity_service import (
    clamp_page_size,
    list_activities,
    record_activity,
)


class TestClampPageSize:
    @pytest.mark.parametrize(
        "requested,expected",
        [(None, 30), (0, 1), (-5, 1), (1, 1), (50, 50), (100, 100), (500, 100)],
    )
    def test_clamps(self, requested, expected):
        assert clamp_page_size(requested, default=30, maximum=100) == expected


class TestRecordActivity:
    def test_metadata_defaults_to_empty_object(self, board):
        with get_session(board.engine) as session:
            entry = record_activity(
                session,
                board_id=board.board_id,
                actor_id=board.owner["id"],
                entity_type=EntityType.BOARD,
                entity_id=board.board_id,
                action=ActivityAction.UPDATED,
                message="Touched board",
            )
            entry_id = entry.id

        with Session(board.engine) as session:
            stored = session.get(Activity, entry_id)
            assert stored.metadata_ == {}
            assert stored.entity_type == "board"
            assert stored.action == "updated"

    def test_rolled_back_with_failed_mutation(self, board):
        with Session(board.engine) as session:
            before = session.scalar(select(func.count()).select_from(Activity))

        with pytest.raises(RuntimeError):
            with get_session(board.engine) as session:
                record_activity(
                    session,
                    board_id=board.board_id,
                    actor_id=board.owner["id"],
                    entity_type=EntityType.CARD,
                    entity_id=None,
                    action=ActivityAction.CREATED,
                    message="never committed",
                )
                raise RuntimeError("write failed")

        with Session(board.engine) as session:
            after = session.scalar(select(func.count()).select_from(Activity))
        assert after == before


class TestListActivities:
    def test_newest_first_with_actor(self, board):
        with get_session(board.engine) as session:
            for i in range(3):
                record_activity(
                    session,
                    board_id=board.board_id,
                    actor_id=board.member["id"],
                    entity_type=EntityType.CARD,
                    entity_id=i,
                    action=ActivityAction.CREATED,
                    message=f"entry {i}",
                )

        with Session(board.engine) as session:
            rows = list_activities(session, board.board_id, limit=3)

        assert [r["message"] for r in rows] == ["entry 2", "entry 1", "entry 0"]
        assert rows[0]["actor_name"] == "Marcus"
        assert rows[0]["actor_email"] == "marcus@example.com"

    def test_limit_is_clamped(self, board):
        with Session(board.engine) as session:
            assert len(list_activities(session, board.board_id, limit=1)) == 1
            # fixture wrote: board created + 2 member additions
            assert len(list_activities(session, board.board_id, limit=0)) == 1
            assert len(list_activities(session, board.board_id, limit=1000)) == 3
