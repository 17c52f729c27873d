"""
boardsync.api.auth — Current identity
======================================

Tokens are minted by the upstream identity service; this router only
reports who the bearer is.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from boardsync.api.deps import get_current_user, get_engine
from boardsync.api.security import CurrentUser
from boardsync.database.engine import run_db
from boardsync.services import user_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me")
async def me(
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
):
    """Return the stored profile of the authenticated user."""
    profile = await run_db(user_service.get_profile, engine, user.id)
    if profile is None:
        raise HTTPException(404, "User not found")
    return profile
