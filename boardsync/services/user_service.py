"""
boardsync.services.user_service — User Provisioning Helpers
============================================================

Credential issuance is handled outside this service; these helpers only
create and look up the identity rows the board engine reads.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from boardsync.database.engine import get_session
from boardsync.database.models import User
from boardsync.services.errors import InvalidInputError

logger = logging.getLogger(__name__)


def get_user_by_email(session: Session, email: str) -> User | None:
    return session.scalar(select(User).where(User.email == email.strip().lower()))


def create_user(engine: Engine, *, name: str, email: str) -> dict:
    """Insert a user and return ``{id, name, email}``.

    Raises
    ------
    InvalidInputError
        If the name is blank or the email is already registered.
    """
    clean_name = name.strip()
    clean_email = email.strip().lower()
    if not clean_name or not clean_email:
        raise InvalidInputError("Name and email are required")

    with get_session(engine) as session:
        if get_user_by_email(session, clean_email) is not None:
            raise InvalidInputError("Email already exists")
        user = User(name=clean_name, email=clean_email)
        session.add(user)
        session.flush()
        logger.info("Provisioned user %d (%s)", user.id, clean_email)
        return {"id": user.id, "name": user.name, "email": user.email}


def get_profile(engine: Engine, user_id: int) -> dict | None:
    with Session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            return None
        return {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "created_at": user.created_at.isoformat() if user.created_at else None,
        }
