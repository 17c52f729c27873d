"""
boardsync.services.card_service — Cards, Moves & Comments
==========================================================

Same unit-of-work shape as :mod:`boardsync.services.board_service`:
validate → load → authorize → compute → no-op check → write + activity
→ commit → :class:`MutationOutcome`.

Moves are the concurrency-sensitive path.  Before any sibling list is read,
the source and destination column rows are locked in ascending id order
(``SELECT … FOR UPDATE``), then the moved card itself.  Every writer that
renumbers or appends to a column holds that column's lock, so two moves
into the same column serialize and the second one renumbers from the
first one's committed list.  Both affected columns are renumbered in full
inside the same transaction, leaving no duplicate or missing ordinals.

A move is always a state change, even when the resulting positions are
numerically identical to the old ones.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from boardsync.database.engine import get_session, lock_rows
from boardsync.database.models import (
    ActivityAction,
    BoardColumn,
    Card,
    CardComment,
    EntityType,
    User,
)
from boardsync.engine import positions
from boardsync.engine.events import BoardEvent, MutationOutcome
from boardsync.engine.permissions import (
    RoleForbiddenError,
    can_delete_comment,
    require_participant,
    require_writer,
)
from boardsync.services.activity_service import record_activity
from boardsync.services.card_fields import (
    normalize_assignee,
    normalize_due_date,
)
from boardsync.services.errors import (
    InvalidInputError,
    InvalidReferenceError,
    NotFoundError,
)
from boardsync.services.serializers import card_dict, comment_dict

logger = logging.getLogger(__name__)

EDITABLE_CARD_FIELDS = ("title", "description", "assignee", "due_date")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _column_cards(session: Session, column_id: int) -> list[Card]:
    return list(
        session.scalars(
            select(Card)
            .where(Card.column_id == column_id)
            .order_by(Card.position.asc(), Card.id.asc())
        ).all()
    )


def _load_card(session: Session, card_id: int, *, lock: bool = False) -> Card:
    stmt = select(Card).where(Card.id == card_id)
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    card = session.scalar(stmt)
    if card is None:
        raise NotFoundError("Card not found")
    return card


def _lock_columns(session: Session, column_ids: set[int]) -> set[int]:
    return {column.id for column in lock_rows(session, BoardColumn, column_ids)}


def _require_title(value: Any, what: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(f"{what} title is required")
    return str(value)


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------
def create_card(
    engine: Engine,
    *,
    user_id: int,
    column_id: int,
    title: str,
    description: str | None = None,
    assignee: str | None = None,
    due_date: str | None = None,
) -> MutationOutcome:
    """Append a card at the end of *column_id*."""
    title = _require_title(title, "Card")
    parsed_due = normalize_due_date(due_date)

    with get_session(engine) as session:
        column = session.get(BoardColumn, column_id)
        if column is None:
            raise NotFoundError("Column not found")
        board_id = column.board_id
        require_writer(session, user_id, board_id, "add cards")
        _lock_columns(session, {column_id})

        assignee_name = normalize_assignee(session, board_id, assignee)
        existing = [c.position for c in _column_cards(session, column_id)]
        card = Card(
            board_id=board_id,
            column_id=column_id,
            title=title,
            description=description or "",
            assignee=assignee_name,
            due_date=parsed_due,
            position=positions.next_position(existing),
        )
        session.add(card)
        session.flush()

        record_activity(
            session,
            board_id=board_id,
            actor_id=user_id,
            entity_type=EntityType.CARD,
            entity_id=card.id,
            action=ActivityAction.CREATED,
            message=f'Created card "{card.title}"',
        )
        data = card_dict(card)

    return MutationOutcome(board_id=board_id, data=data, board_event=BoardEvent.CARD_CREATED)


def update_card(
    engine: Engine,
    *,
    user_id: int,
    card_id: int,
    changes: dict[str, Any],
) -> MutationOutcome:
    """Apply a partial update to a card.

    ``changes`` holds only the keys the client sent.  For ``assignee`` and
    ``due_date`` an explicit ``None`` (or blank string) clears the field;
    an absent key leaves it untouched.

    If no field would differ from what is stored, nothing is written, no
    activity is recorded and the unchanged card is returned with
    ``changed=False``.
    """
    unknown = set(changes) - set(EDITABLE_CARD_FIELDS)
    if unknown:
        raise InvalidInputError(f"Unknown card fields: {', '.join(sorted(unknown))}")
    if "title" in changes:
        _require_title(changes["title"], "Card")
    if "description" in changes and changes["description"] is None:
        raise InvalidInputError("Card description may not be null")
    parsed_due = (
        normalize_due_date(changes["due_date"]) if "due_date" in changes else None
    )

    with get_session(engine) as session:
        card = _load_card(session, card_id)
        board_id = card.board_id
        require_writer(session, user_id, board_id, "update cards")

        proposed: dict[str, Any] = {}
        if "title" in changes:
            proposed["title"] = changes["title"]
        if "description" in changes:
            proposed["description"] = changes["description"]
        if "assignee" in changes:
            proposed["assignee"] = normalize_assignee(session, board_id, changes["assignee"])
        if "due_date" in changes:
            proposed["due_date"] = parsed_due

        changed_fields = sorted(
            name for name, value in proposed.items() if getattr(card, name) != value
        )
        if not changed_fields:
            logger.debug("Card %d update is a no-op", card_id)
            return MutationOutcome.unchanged(board_id, card_dict(card))

        for name in changed_fields:
            setattr(card, name, proposed[name])
        session.flush()

        record_activity(
            session,
            board_id=board_id,
            actor_id=user_id,
            entity_type=EntityType.CARD,
            entity_id=card.id,
            action=ActivityAction.UPDATED,
            message=f'Updated card "{card.title}"',
            metadata={"fields": changed_fields},
        )
        data = card_dict(card)

    return MutationOutcome(board_id=board_id, data=data, board_event=BoardEvent.CARD_UPDATED)


def delete_card(engine: Engine, *, user_id: int, card_id: int) -> MutationOutcome:
    with get_session(engine) as session:
        card = _load_card(session, card_id)
        board_id = card.board_id
        require_writer(session, user_id, board_id, "delete cards")

        record_activity(
            session,
            board_id=board_id,
            actor_id=user_id,
            entity_type=EntityType.CARD,
            entity_id=card.id,
            action=ActivityAction.DELETED,
            message=f'Deleted card "{card.title}"',
        )
        session.delete(card)

    return MutationOutcome(board_id=board_id, data=None, board_event=BoardEvent.CARD_DELETED)


def move_card(
    engine: Engine,
    *,
    user_id: int,
    card_id: int,
    to_column_id: int,
    to_position: int,
) -> MutationOutcome:
    """Move a card to index *to_position* of *to_column_id*.

    Same column: that column is renumbered once.  Across columns: the
    destination is renumbered with the card inserted at
    ``min(to_position, len)``, and the source is renumbered without it.
    """
    if to_position < 0:
        raise InvalidInputError("toPosition must be zero or greater")

    with get_session(engine) as session:
        card = _load_card(session, card_id)
        board_id = card.board_id
        require_writer(session, user_id, board_id, "move cards")

        locked = _lock_columns(session, {card.column_id, to_column_id})
        card = _load_card(session, card_id, lock=True)
        if card.column_id not in locked:
            # moved elsewhere by a request that committed before our lock
            _lock_columns(session, {card.column_id})
        source_column_id = card.column_id

        target = session.get(BoardColumn, to_column_id)
        if target is None or target.board_id != board_id:
            raise InvalidReferenceError("Target column is invalid for this board")

        destination = _column_cards(session, to_column_id)
        source: list[Card] = []
        if source_column_id != to_column_id:
            source = _column_cards(session, source_column_id)

        plan = positions.plan_move(
            card.id,
            [c.id for c in destination],
            to_position,
            source_ids=[c.id for c in source] if source_column_id != to_column_id else None,
        )

        card.column_id = to_column_id
        by_id = {c.id: c for c in (*destination, *source, card)}
        for sibling_id, position in plan.assignments().items():
            by_id[sibling_id].position = position
        session.flush()

        record_activity(
            session,
            board_id=board_id,
            actor_id=user_id,
            entity_type=EntityType.CARD,
            entity_id=card.id,
            action=ActivityAction.MOVED,
            message=f'Moved card "{card.title}"',
            metadata={
                "fromColumnId": source_column_id,
                "toColumnId": to_column_id,
                "toPosition": plan.index,
            },
        )
        data = card_dict(card)

    logger.info(
        "Card %d moved %d → %d[%d] on board %d",
        card_id, source_column_id, to_column_id, plan.index, board_id,
    )
    return MutationOutcome(board_id=board_id, data=data, board_event=BoardEvent.CARD_MOVED)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
def list_comments(engine: Engine, *, user_id: int, card_id: int) -> list[dict[str, Any]]:
    """Comments on a card, oldest first, with author name and email."""
    with Session(engine) as session:
        card = _load_card(session, card_id)
        require_participant(session, user_id, card.board_id)
        rows = session.execute(
            select(CardComment, User)
            .outerjoin(User, User.id == CardComment.user_id)
            .where(CardComment.card_id == card_id)
            .order_by(CardComment.created_at.asc(), CardComment.id.asc())
        ).all()
        return [comment_dict(comment, author) for comment, author in rows]


def add_comment(
    engine: Engine, *, user_id: int, card_id: int, body: str
) -> MutationOutcome:
    clean_body = body.strip()
    if not clean_body:
        raise InvalidInputError("Comment body is required")

    with get_session(engine) as session:
        card = _load_card(session, card_id)
        board_id = card.board_id
        require_writer(session, user_id, board_id, "comment on this board")

        comment = CardComment(
            board_id=board_id, card_id=card.id, user_id=user_id, body=clean_body
        )
        session.add(comment)
        session.flush()

        record_activity(
            session,
            board_id=board_id,
            actor_id=user_id,
            entity_type=EntityType.COMMENT,
            entity_id=comment.id,
            action=ActivityAction.CREATED,
            message=f'Commented on card "{card.title}"',
            metadata={"cardId": card.id},
        )
        data = comment_dict(comment, session.get(User, user_id))

    return MutationOutcome(
        board_id=board_id, data=data, board_event=BoardEvent.COMMENT_CREATED
    )


def delete_comment(engine: Engine, *, user_id: int, comment_id: int) -> MutationOutcome:
    """Delete a comment: allowed to its author or any board owner."""
    with get_session(engine) as session:
        comment = session.get(CardComment, comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        board_id = comment.board_id

        role = require_participant(session, user_id, board_id)
        if not can_delete_comment(role, user_id, comment.user_id):
            logger.warning(
                "Denied: user %d (%s) may not delete comment %d by %s",
                user_id, role, comment_id, comment.user_id,
            )
            raise RoleForbiddenError(
                "Not authorized to delete this comment",
                user_id=user_id, board_id=board_id, role=role,
            )

        card = session.get(Card, comment.card_id)
        record_activity(
            session,
            board_id=board_id,
            actor_id=user_id,
            entity_type=EntityType.COMMENT,
            entity_id=comment.id,
            action=ActivityAction.DELETED,
            message=(
                f'Deleted a comment on card "{card.title}"'
                if card is not None
                else "Deleted a comment"
            ),
            metadata={"cardId": comment.card_id},
        )
        session.delete(comment)

    return MutationOutcome(
        board_id=board_id, data=None, board_event=BoardEvent.COMMENT_DELETED
    )
