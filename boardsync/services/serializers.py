"""
boardsync.services.serializers — ORM row → JSON-ready dict
===========================================================

Must be called while the row's session is still open: server-generated
columns (``created_at``, ``updated_at``) are loaded lazily after a flush.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from boardsync.database.models import (
    Activity,
    Board,
    BoardColumn,
    Card,
    CardComment,
    User,
)
from boardsync.services.card_fields import format_due_date


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def board_dict(board: Board) -> dict[str, Any]:
    return {
        "id": board.id,
        "name": board.name,
        "created_by": board.created_by,
        "created_at": _iso(board.created_at),
    }


def column_dict(column: BoardColumn) -> dict[str, Any]:
    return {
        "id": column.id,
        "board_id": column.board_id,
        "title": column.title,
        "position": column.position,
        "created_at": _iso(column.created_at),
    }


def card_dict(card: Card) -> dict[str, Any]:
    return {
        "id": card.id,
        "board_id": card.board_id,
        "column_id": card.column_id,
        "title": card.title,
        "description": card.description,
        "assignee": card.assignee,
        "due_date": format_due_date(card.due_date),
        "position": card.position,
        "created_at": _iso(card.created_at),
        "updated_at": _iso(card.updated_at),
    }


def member_dict(user: User, role: str) -> dict[str, Any]:
    return {"id": user.id, "name": user.name, "email": user.email, "role": role}


def comment_dict(comment: CardComment, author: User | None = None) -> dict[str, Any]:
    return {
        "id": comment.id,
        "board_id": comment.board_id,
        "card_id": comment.card_id,
        "user_id": comment.user_id,
        "body": comment.body,
        "created_at": _iso(comment.created_at),
        "author_name": author.name if author else None,
        "author_email": author.email if author else None,
    }


def activity_dict(activity: Activity, actor: User | None = None) -> dict[str, Any]:
    return {
        "id": activity.id,
        "board_id": activity.board_id,
        "actor_user_id": activity.actor_user_id,
        "entity_type": activity.entity_type,
        "entity_id": activity.entity_id,
        "action": activity.action,
        "message": activity.message,
        "metadata": activity.metadata_ or {},
        "created_at": _iso(activity.created_at),
        "actor_name": actor.name if actor else None,
        "actor_email": actor.email if actor else None,
    }
