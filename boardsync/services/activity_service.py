"""
boardsync.services.activity_service — Append-Only Activity Trail
=================================================================

Every state-changing mutation appends exactly one entry, in the **same
session** as the mutation it describes.  If the insert fails the whole
transaction rolls back, so the trail and the board can never disagree.

No-op writes never reach this module: the coordinator returns early
before recording.

Reads are reverse-chronological (``created_at DESC, id DESC``) and the
page size is clamped so a client cannot request an unbounded scan.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from boardsync.constants import DEFAULT_ACTIVITY_PAGE_MAX, DEFAULT_ACTIVITY_PAGE_SIZE
from boardsync.database.models import Activity, ActivityAction, EntityType, User
from boardsync.services.serializers import activity_dict

logger = logging.getLogger(__name__)


def record_activity(
    session: Session,
    *,
    board_id: int,
    actor_id: int | None,
    entity_type: EntityType | str,
    entity_id: int | None,
    action: ActivityAction | str,
    message: str,
    metadata: dict[str, Any] | None = None,
) -> Activity:
    """Insert an activity row within the current transaction."""
    entry = Activity(
        board_id=board_id,
        actor_user_id=actor_id,
        entity_type=str(entity_type),
        entity_id=entity_id,
        action=str(action),
        message=message,
        metadata_=dict(metadata or {}),
    )
    session.add(entry)
    session.flush()
    logger.debug(
        "Activity #%d on board %d: %s.%s by %s",
        entry.id, board_id, entity_type, action, actor_id,
    )
    return entry


def clamp_page_size(
    limit: int | None,
    *,
    default: int = DEFAULT_ACTIVITY_PAGE_SIZE,
    maximum: int = DEFAULT_ACTIVITY_PAGE_MAX,
) -> int:
    """Clamp a requested page size into ``[1, maximum]``."""
    if limit is None:
        limit = default
    return max(1, min(int(limit), maximum))


def list_activities(
    session: Session,
    board_id: int,
    *,
    limit: int | None = None,
    default_limit: int = DEFAULT_ACTIVITY_PAGE_SIZE,
    max_limit: int = DEFAULT_ACTIVITY_PAGE_MAX,
) -> list[dict[str, Any]]:
    """Newest entries first, joined with the actor's name and email."""
    page = clamp_page_size(limit, default=default_limit, maximum=max_limit)
    rows = session.execute(
        select(Activity, User)
        .outerjoin(User, User.id == Activity.actor_user_id)
        .where(Activity.board_id == board_id)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(page)
    ).all()
    return [activity_dict(activity, actor) for activity, actor in rows]
