"""
boardsync.api.routes.cards — Card edits, moves & comments
==========================================================

``PATCH /cards/{id}`` distinguishes an omitted field from an explicit
``null``: only the keys present in the request body are forwarded to the
service (``exclude_unset``).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field

from boardsync.api.deps import get_broadcaster, get_current_user, get_engine
from boardsync.api.security import CurrentUser
from boardsync.database.engine import run_db
from boardsync.realtime.broadcaster import Broadcaster
from boardsync.services import card_service

router = APIRouter(prefix="/cards", tags=["cards"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class CardUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    assignee: str | None = None
    due_date: str | None = Field(default=None, alias="dueDate")


class CardMove(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    to_column_id: int = Field(alias="toColumnId")
    to_position: int = Field(alias="toPosition", ge=0)


class CommentCreate(BaseModel):
    body: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------
@router.patch("/{card_id}")
async def update_card(
    card_id: int,
    body: CardUpdate,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: Broadcaster = Depends(get_broadcaster),
):
    outcome = await run_db(
        card_service.update_card,
        engine,
        user_id=user.id,
        card_id=card_id,
        changes=body.model_dump(exclude_unset=True),
    )
    await hub.publish(outcome)
    return outcome.data


@router.delete("/{card_id}", status_code=204)
async def delete_card(
    card_id: int,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: Broadcaster = Depends(get_broadcaster),
):
    outcome = await run_db(
        card_service.delete_card, engine, user_id=user.id, card_id=card_id
    )
    await hub.publish(outcome)
    return Response(status_code=204)


@router.post("/{card_id}/move")
async def move_card(
    card_id: int,
    body: CardMove,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: Broadcaster = Depends(get_broadcaster),
):
    outcome = await run_db(
        card_service.move_card,
        engine,
        user_id=user.id,
        card_id=card_id,
        to_column_id=body.to_column_id,
        to_position=body.to_position,
    )
    await hub.publish(outcome)
    return outcome.data


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------
@router.get("/{card_id}/comments")
async def list_comments(
    card_id: int,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
):
    return await run_db(
        card_service.list_comments, engine, user_id=user.id, card_id=card_id
    )


@router.post("/{card_id}/comments", status_code=201)
async def add_comment(
    card_id: int,
    body: CommentCreate,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: Broadcaster = Depends(get_broadcaster),
):
    outcome = await run_db(
        card_service.add_comment,
        engine,
        user_id=user.id,
        card_id=card_id,
        body=body.body,
    )
    await hub.publish(outcome)
    return outcome.data
