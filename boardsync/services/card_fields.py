"""
boardsync.services.card_fields — Due-Date & Assignee Normalization
===================================================================

Due dates are calendar dates exchanged as plain ``YYYY-MM-DD`` strings.
They are parsed with :meth:`date.fromisoformat` only — never through a
datetime or timezone — so ``"2026-03-10"`` stays ``2026-03-10`` for every
user regardless of UTC offset.

Assignees are written as the display name of a *current* board member,
matched case-insensitively by name or email.  The stored value is a
snapshot; later renames do not propagate.
"""

from __future__ import annotations

import re
from datetime import date

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from boardsync.database.models import BoardMember, User
from boardsync.services.errors import InvalidInputError

_DUE_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

INVALID_DUE_DATE = "Invalid dueDate. Use YYYY-MM-DD format."
INVALID_ASSIGNEE = "Assignee must be an existing board member."


def parse_due_date(value: str) -> date | None:
    """Return the calendar date for *value*, or ``None`` if it is invalid.

    ``"2026-02-30"`` matches the pattern but is not a real date → ``None``.
    """
    trimmed = value.strip()
    if not _DUE_DATE_RE.match(trimmed):
        return None
    try:
        return date.fromisoformat(trimmed)
    except ValueError:
        return None


def normalize_due_date(value: str | None) -> date | None:
    """Parse a due date from a request; blank or ``None`` clears it.

    Raises
    ------
    InvalidInputError
        If *value* is non-blank and not a real ``YYYY-MM-DD`` date.
    """
    if value is None or not value.strip():
        return None
    parsed = parse_due_date(value)
    if parsed is None:
        raise InvalidInputError(INVALID_DUE_DATE)
    return parsed


def format_due_date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def resolve_assignee_name(session: Session, board_id: int, value: str) -> str | None:
    """Return the display name of the board member matching *value*.

    Matches ``users.name`` or ``users.email`` case-insensitively among the
    board's current members.  Returns ``None`` when nothing matches.
    """
    needle = value.strip().lower()
    if not needle:
        return None
    return session.scalar(
        select(User.name)
        .join(BoardMember, BoardMember.user_id == User.id)
        .where(
            BoardMember.board_id == board_id,
            or_(func.lower(User.name) == needle, func.lower(User.email) == needle),
        )
        .order_by(User.id)
        .limit(1)
    )


def normalize_assignee(session: Session, board_id: int, value: str | None) -> str | None:
    """Resolve an assignee from a request; blank or ``None`` clears it.

    Raises
    ------
    InvalidInputError
        If *value* is non-blank and matches no current board member.
    """
    if value is None or not value.strip():
        return None
    name = resolve_assignee_name(session, board_id, value)
    if name is None:
        raise InvalidInputError(INVALID_ASSIGNEE)
    return name
