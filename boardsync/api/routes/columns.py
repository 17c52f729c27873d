"""
boardsync.api.routes.columns — Column edits & card creation
============================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from boardsync.api.deps import get_broadcaster, get_current_user, get_engine
from boardsync.api.security import CurrentUser
from boardsync.database.engine import run_db
from boardsync.realtime.broadcaster import Broadcaster
from boardsync.services import board_service, card_service

router = APIRouter(prefix="/columns", tags=["columns"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class ColumnUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    position: int | None = Field(default=None, ge=0)  # target index among columns


class CardCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1)
    description: str = ""
    assignee: str | None = None
    due_date: str | None = Field(default=None, alias="dueDate")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.patch("/{column_id}")
async def update_column(
    column_id: int,
    body: ColumnUpdate,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: Broadcaster = Depends(get_broadcaster),
):
    outcome = await run_db(
        board_service.update_column,
        engine,
        user_id=user.id,
        column_id=column_id,
        changes=body.model_dump(exclude_unset=True),
    )
    await hub.publish(outcome)
    return outcome.data


@router.post("/{column_id}/cards", status_code=201)
async def create_card(
    column_id: int,
    body: CardCreate,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: Broadcaster = Depends(get_broadcaster),
):
    outcome = await run_db(
        card_service.create_card,
        engine,
        user_id=user.id,
        column_id=column_id,
        title=body.title,
        description=body.description,
        assignee=body.assignee,
        due_date=body.due_date,
    )
    await hub.publish(outcome)
    return outcome.data
