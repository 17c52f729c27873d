"""
boardsync.engine.permissions — Authorization Gate
==================================================

Maps (user, board) → role and role → permitted mutations.

Rules:
  * ``owner`` and ``member`` may write; ``viewer`` is read-only.
  * Only ``owner`` may add or change memberships.
  * A comment may be deleted by its author or by any owner, regardless of
    write role — but the caller must still be a participant.

Roles are always re-read from ``board_members`` inside the caller's own
transaction.  Nothing here caches a role.

Two failure classes exist so logs can tell them apart:
  * :class:`NotParticipantError` — no membership row at all.
  * :class:`RoleForbiddenError` — membership present, role insufficient.
Both surface to clients as a 403 denial.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from boardsync.database.models import BoardMember, BoardRole

logger = logging.getLogger(__name__)

WRITE_ROLES: frozenset[BoardRole] = frozenset({BoardRole.OWNER, BoardRole.MEMBER})


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class AuthorizationError(Exception):
    """Base class for authorization denials."""

    status_code = 403

    def __init__(self, message: str, *, user_id: int, board_id: int) -> None:
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.board_id = board_id


class NotParticipantError(AuthorizationError):
    """The user has no membership on the board."""


class RoleForbiddenError(AuthorizationError):
    """The user is a member, but their role forbids the action."""

    def __init__(
        self, message: str, *, user_id: int, board_id: int, role: BoardRole
    ) -> None:
        super().__init__(message, user_id=user_id, board_id=board_id)
        self.role = role


# ---------------------------------------------------------------------------
# Role predicates
# ---------------------------------------------------------------------------
def can_write(role: BoardRole | None) -> bool:
    return role in WRITE_ROLES


def can_manage_members(role: BoardRole | None) -> bool:
    return role == BoardRole.OWNER


def can_delete_comment(
    role: BoardRole | None, user_id: int, author_id: int | None
) -> bool:
    """Author or any owner; non-participants never."""
    if role is None:
        return False
    return role == BoardRole.OWNER or (author_id is not None and author_id == user_id)


# ---------------------------------------------------------------------------
# Role resolution
# ---------------------------------------------------------------------------
def role_of(session: Session, user_id: int, board_id: int) -> BoardRole | None:
    """Return the user's current role on the board, or ``None``."""
    raw = session.scalar(
        select(BoardMember.role).where(
            BoardMember.board_id == board_id,
            BoardMember.user_id == user_id,
        )
    )
    return BoardRole(raw) if raw is not None else None


def lookup_role(engine: Engine, user_id: int, board_id: int) -> BoardRole | None:
    """Session-owning variant of :func:`role_of` for use with ``run_db``."""
    with Session(engine) as session:
        return role_of(session, user_id, board_id)


# ---------------------------------------------------------------------------
# Guards — raise on denial, return the resolved role on success
# ---------------------------------------------------------------------------
def require_participant(session: Session, user_id: int, board_id: int) -> BoardRole:
    role = role_of(session, user_id, board_id)
    if role is None:
        logger.warning(
            "Denied: user %d is not a participant of board %d", user_id, board_id
        )
        raise NotParticipantError(
            "Not authorized for this board", user_id=user_id, board_id=board_id
        )
    return role


def require_writer(
    session: Session, user_id: int, board_id: int, action: str
) -> BoardRole:
    """Require ``owner`` or ``member``.  *action* is used in the denial text."""
    role = require_participant(session, user_id, board_id)
    if not can_write(role):
        logger.warning(
            "Denied: role %s of user %d on board %d forbids %s",
            role, user_id, board_id, action,
        )
        raise RoleForbiddenError(
            f"Board role cannot {action}",
            user_id=user_id, board_id=board_id, role=role,
        )
    return role


def require_owner(
    session: Session, user_id: int, board_id: int, action: str
) -> BoardRole:
    role = require_participant(session, user_id, board_id)
    if not can_manage_members(role):
        logger.warning(
            "Denied: role %s of user %d on board %d forbids %s (owner only)",
            role, user_id, board_id, action,
        )
        raise RoleForbiddenError(
            f"Only board owners can {action}",
            user_id=user_id, board_id=board_id, role=role,
        )
    return role
