"""
boardsync.api.routes.boards — Boards, members, columns & activity feed
=======================================================================

Each write runs its unit of work on a worker thread, then publishes the
committed outcome to the board (and user) rooms.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field

from boardsync.api.deps import get_broadcaster, get_config, get_current_user, get_engine
from boardsync.api.security import CurrentUser
from boardsync.config import BoardSyncConfig
from boardsync.database.engine import run_db
from boardsync.realtime.broadcaster import Broadcaster
from boardsync.services import board_service

router = APIRouter(prefix="/boards", tags=["boards"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class BoardCreate(BaseModel):
    name: str = Field(min_length=1)


class MemberAdd(BaseModel):
    email: str = Field(min_length=3)
    role: Literal["member", "viewer"] = "member"


class ColumnCreate(BaseModel):
    title: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------
@router.get("")
async def list_boards(
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
):
    return await run_db(board_service.list_boards, engine, user_id=user.id)


@router.post("", status_code=201)
async def create_board(
    body: BoardCreate,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
    cfg: BoardSyncConfig = Depends(get_config),
    hub: Broadcaster = Depends(get_broadcaster),
):
    outcome = await run_db(
        board_service.create_board,
        engine,
        user_id=user.id,
        name=body.name,
        default_columns=cfg.default_columns,
    )
    await hub.publish(outcome)
    return outcome.data


@router.get("/{board_id}")
async def get_board(
    board_id: int,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
):
    return await run_db(
        board_service.get_board_detail, engine, user_id=user.id, board_id=board_id
    )


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------
@router.get("/{board_id}/members")
async def list_members(
    board_id: int,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
):
    return await run_db(
        board_service.list_members, engine, user_id=user.id, board_id=board_id
    )


@router.post("/{board_id}/members", status_code=201)
async def add_member(
    board_id: int,
    body: MemberAdd,
    response: Response,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: Broadcaster = Depends(get_broadcaster),
):
    outcome = await run_db(
        board_service.add_member,
        engine,
        user_id=user.id,
        board_id=board_id,
        email=body.email,
        role=body.role,
    )
    if not outcome.changed:
        response.status_code = 200
    await hub.publish(outcome)
    return outcome.data


# ---------------------------------------------------------------------------
# Activity feed
# ---------------------------------------------------------------------------
@router.get("/{board_id}/activities")
async def list_activities(
    board_id: int,
    limit: int | None = Query(default=None),
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
    cfg: BoardSyncConfig = Depends(get_config),
):
    return await run_db(
        board_service.get_activities,
        engine,
        user_id=user.id,
        board_id=board_id,
        limit=limit,
        default_limit=cfg.activity_page_size,
        max_limit=cfg.activity_page_max,
    )


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------
@router.post("/{board_id}/columns", status_code=201)
async def create_column(
    board_id: int,
    body: ColumnCreate,
    user: CurrentUser = Depends(get_current_user),
    engine=Depends(get_engine),
    hub: Broadcaster = Depends(get_broadcaster),
):
    outcome = await run_db(
        board_service.create_column,
        engine,
        user_id=user.id,
        board_id=board_id,
        title=body.title,
    )
    await hub.publish(outcome)
    return outcome.data
