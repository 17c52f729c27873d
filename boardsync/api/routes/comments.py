"""
boardsync.api.routes.comments — Comment deletion
=================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from boardsync.api.deps import get_broadcaster, get_current_user, get_engine
from boardsync.api.security import CurrentUser
from boardsync.database.engine import run_db
from boardsync.realtime.broadcaster import Broadcaster
from boardsync.services import card_service

router = APIRouter(prefix="/comments", tags=["comments"])


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: int,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: Broadcaster = Depends(get_broadcaster),
):
    outcome = await run_db(
        card_service.delete_comment, engine, user_id=user.id, comment_id=comment_id
    )
    await hub.publish(outcome)
    return Response(status_code=204)
