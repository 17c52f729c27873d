"""
boardsync.api.deps — FastAPI dependency injection
==================================================
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Header, HTTPException, status
from sqlalchemy import Engine

from boardsync.api.security import CurrentUser, TokenError, bearer_token, decode_token
from boardsync.config import BoardSyncConfig, load_config
from boardsync.database.engine import create_db_engine
from boardsync.realtime.broadcaster import Broadcaster
from boardsync.realtime.broadcaster import get_broadcaster as _process_broadcaster


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> BoardSyncConfig:
    return load_config()


def get_broadcaster() -> Broadcaster:
    return _process_broadcaster()


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Validate the bearer JWT and return the caller. Raises 401 if invalid."""
    token = bearer_token(authorization)
    if token is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    try:
        return decode_token(token)
    except TokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
