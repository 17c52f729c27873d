"""
boardsync.services.board_service — Boards, Memberships & Columns
=================================================================

Every write follows the same unit of work:
  1. Open a transaction (``get_session``)
  2. Load the current entity
  3. Re-resolve the caller's role and check it
  4. Compute new values (positions via the sequencer)
  5. Return early if nothing would change (no write, no activity)
  6. Write + append the activity entry in the same transaction
  7. Commit, and hand the route a :class:`MutationOutcome` to broadcast

Column writes lock the parent ``boards`` row before reading sibling
positions, so appends and reorders on one board serialize.

Reads return plain dicts and require board participation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import Session

from boardsync.constants import (
    DEFAULT_ACTIVITY_PAGE_MAX,
    DEFAULT_ACTIVITY_PAGE_SIZE,
    DEFAULT_COLUMN_TITLES,
)
from boardsync.database.engine import get_session, lock_rows
from boardsync.database.models import (
    ActivityAction,
    Board,
    BoardColumn,
    BoardMember,
    BoardRole,
    Card,
    EntityType,
    User,
)
from boardsync.engine import positions
from boardsync.engine.events import BoardEvent, MutationOutcome, UserEvent
from boardsync.engine.permissions import (
    require_owner,
    require_participant,
    require_writer,
)
from boardsync.services.activity_service import list_activities, record_activity
from boardsync.services.errors import InvalidInputError, NotFoundError
from boardsync.services.serializers import (
    board_dict,
    card_dict,
    column_dict,
    member_dict,
)
from boardsync.services.user_service import get_user_by_email

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = frozenset({BoardRole.MEMBER, BoardRole.VIEWER})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _ordered_column_ids(session: Session, board_id: int) -> list[int]:
    return list(
        session.scalars(
            select(BoardColumn.id)
            .where(BoardColumn.board_id == board_id)
            .order_by(BoardColumn.position.asc(), BoardColumn.id.asc())
        ).all()
    )


def _apply_column_positions(session: Session, assignments: dict[int, int]) -> None:
    for column_id, position in assignments.items():
        column = session.get(BoardColumn, column_id)
        if column is not None and column.position != position:
            column.position = position


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------
def create_board(
    engine: Engine,
    *,
    user_id: int,
    name: str,
    default_columns: Sequence[str] = DEFAULT_COLUMN_TITLES,
) -> MutationOutcome:
    """Create a board, its owner membership and the default columns atomically."""
    clean_name = name.strip()
    if not clean_name:
        raise InvalidInputError("Board name is required")

    with get_session(engine) as session:
        if session.get(User, user_id) is None:
            raise NotFoundError("User not found")

        board = Board(name=clean_name, created_by=user_id)
        session.add(board)
        session.flush()

        session.add(BoardMember(board_id=board.id, user_id=user_id, role=BoardRole.OWNER))
        for i, title in enumerate(default_columns):
            session.add(
                BoardColumn(
                    board_id=board.id,
                    title=title,
                    position=(i + 1) * positions.POSITION_GAP,
                )
            )

        record_activity(
            session,
            board_id=board.id,
            actor_id=user_id,
            entity_type=EntityType.BOARD,
            entity_id=board.id,
            action=ActivityAction.CREATED,
            message=f'Created board "{board.name}"',
        )
        data = board_dict(board)

    logger.info("Board %d created by user %d", data["id"], user_id)
    return MutationOutcome(
        board_id=data["id"],
        data=data,
        board_event=BoardEvent.BOARD_CREATED,
        user_events=((user_id, UserEvent.BOARD_CREATED),),
    )


def list_boards(engine: Engine, *, user_id: int) -> list[dict[str, Any]]:
    """Boards the user participates in, newest first, with the user's role."""
    with Session(engine) as session:
        rows = session.execute(
            select(Board, BoardMember.role)
            .join(BoardMember, BoardMember.board_id == Board.id)
            .where(BoardMember.user_id == user_id)
            .order_by(Board.id.desc())
        ).all()
        return [{**board_dict(board), "role": role} for board, role in rows]


def get_board_detail(engine: Engine, *, user_id: int, board_id: int) -> dict[str, Any]:
    """Board with its columns (by position) and each column's cards (by position)."""
    with Session(engine) as session:
        role = require_participant(session, user_id, board_id)
        board = session.get(Board, board_id)
        if board is None:
            raise NotFoundError("Board not found")

        columns = session.scalars(
            select(BoardColumn)
            .where(BoardColumn.board_id == board_id)
            .order_by(BoardColumn.position.asc(), BoardColumn.id.asc())
        ).all()
        cards = session.scalars(
            select(Card)
            .where(Card.board_id == board_id)
            .order_by(Card.position.asc(), Card.id.asc())
        ).all()

        by_column: dict[int, list[dict[str, Any]]] = {c.id: [] for c in columns}
        for card in cards:
            by_column.setdefault(card.column_id, []).append(card_dict(card))

        return {
            **board_dict(board),
            "role": str(role),
            "columns": [
                {**column_dict(column), "cards": by_column[column.id]}
                for column in columns
            ],
        }


# ---------------------------------------------------------------------------
# Memberships
# ---------------------------------------------------------------------------
def list_members(engine: Engine, *, user_id: int, board_id: int) -> list[dict[str, Any]]:
    with Session(engine) as session:
        require_participant(session, user_id, board_id)
        rows = session.execute(
            select(User, BoardMember.role)
            .join(BoardMember, BoardMember.user_id == User.id)
            .where(BoardMember.board_id == board_id)
            .order_by(BoardMember.created_at.asc(), User.id.asc())
        ).all()
        return [member_dict(user, role) for user, role in rows]


def add_member(
    engine: Engine,
    *,
    user_id: int,
    board_id: int,
    email: str,
    role: BoardRole | str,
) -> MutationOutcome:
    """Add a user to the board, or overwrite their role if already present.

    Re-inviting with the same role is a no-op.  Demoting the board's last
    owner is rejected so a board always keeps an owner.
    """
    new_role = BoardRole(role)
    if new_role not in ASSIGNABLE_ROLES:
        raise InvalidInputError("Role must be 'member' or 'viewer'")

    with get_session(engine) as session:
        require_owner(session, user_id, board_id, "add members")

        target = get_user_by_email(session, email)
        if target is None:
            raise NotFoundError("User with this email does not exist")

        membership = session.get(BoardMember, (board_id, target.id))
        if membership is not None and membership.role == new_role:
            return MutationOutcome.unchanged(board_id, member_dict(target, membership.role))

        if membership is None:
            membership = BoardMember(board_id=board_id, user_id=target.id, role=new_role)
            session.add(membership)
        else:
            if membership.role == BoardRole.OWNER:
                owners = session.scalar(
                    select(func.count())
                    .select_from(BoardMember)
                    .where(
                        BoardMember.board_id == board_id,
                        BoardMember.role == BoardRole.OWNER,
                    )
                )
                if owners <= 1:
                    raise InvalidInputError("Cannot demote the last board owner")
            membership.role = new_role
        session.flush()

        record_activity(
            session,
            board_id=board_id,
            actor_id=user_id,
            entity_type=EntityType.MEMBER,
            entity_id=target.id,
            action=ActivityAction.ADDED,
            message=f"Added {target.email} as {new_role}",
            metadata={"role": str(new_role), "email": target.email},
        )
        data = member_dict(target, new_role)
        target_id = target.id

    logger.info("User %d added to board %d as %s", target_id, board_id, new_role)
    return MutationOutcome(
        board_id=board_id,
        data=data,
        board_event=BoardEvent.MEMBER_ADDED,
        user_events=((target_id, UserEvent.BOARD_ADDED_TO_USER),),
    )


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------
def create_column(
    engine: Engine, *, user_id: int, board_id: int, title: str
) -> MutationOutcome:
    """Append a column at ``max(position) + GAP``."""
    if not title.strip():
        raise InvalidInputError("Column title is required")

    with get_session(engine) as session:
        require_writer(session, user_id, board_id, "modify columns")
        if not lock_rows(session, Board, {board_id}):
            raise NotFoundError("Board not found")

        existing = session.scalars(
            select(BoardColumn.position).where(BoardColumn.board_id == board_id)
        ).all()
        column = BoardColumn(
            board_id=board_id,
            title=title,
            position=positions.next_position(existing),
        )
        session.add(column)
        session.flush()

        record_activity(
            session,
            board_id=board_id,
            actor_id=user_id,
            entity_type=EntityType.COLUMN,
            entity_id=column.id,
            action=ActivityAction.CREATED,
            message=f'Created column "{column.title}"',
        )
        data = column_dict(column)

    return MutationOutcome(
        board_id=board_id, data=data, board_event=BoardEvent.COLUMN_CREATED
    )


def update_column(
    engine: Engine,
    *,
    user_id: int,
    column_id: int,
    changes: dict[str, Any],
) -> MutationOutcome:
    """Rename and/or reorder a column.

    ``changes`` holds only the keys the client sent: ``title`` and/or
    ``position`` (a target index among the board's columns).  Reordering
    renumbers the board's full column list.
    """
    with get_session(engine) as session:
        column = session.get(BoardColumn, column_id)
        if column is None:
            raise NotFoundError("Column not found")
        board_id = column.board_id
        require_writer(session, user_id, board_id, "modify columns")
        lock_rows(session, Board, {board_id})
        column = lock_rows(session, BoardColumn, {column_id})[0]

        next_title = changes.get("title", column.title)
        if next_title is None or not str(next_title).strip():
            raise InvalidInputError("Column title is required")

        order = _ordered_column_ids(session, board_id)
        reorder: dict[int, int] = {}
        if changes.get("position") is not None:
            plan = positions.plan_move(column.id, order, int(changes["position"]))
            if plan.index != order.index(column.id):
                reorder = plan.destination

        if next_title == column.title and not reorder:
            return MutationOutcome.unchanged(board_id, column_dict(column))

        column.title = next_title
        _apply_column_positions(session, reorder)
        session.flush()

        record_activity(
            session,
            board_id=board_id,
            actor_id=user_id,
            entity_type=EntityType.COLUMN,
            entity_id=column.id,
            action=ActivityAction.UPDATED,
            message=f'Updated column "{column.title}"',
            metadata={"reordered": bool(reorder)},
        )
        data = column_dict(column)

    return MutationOutcome(
        board_id=board_id, data=data, board_event=BoardEvent.COLUMN_UPDATED
    )


def get_activities(
    engine: Engine,
    *,
    user_id: int,
    board_id: int,
    limit: int | None = None,
    default_limit: int = DEFAULT_ACTIVITY_PAGE_SIZE,
    max_limit: int = DEFAULT_ACTIVITY_PAGE_MAX,
) -> list[dict[str, Any]]:
    """Participant-only view of the board's activity trail."""
    with Session(engine) as session:
        require_participant(session, user_id, board_id)
        return list_activities(
            session,
            board_id,
            limit=limit,
            default_limit=default_limit,
            max_limit=max_limit,
        )
