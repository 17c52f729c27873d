"""
boardsync.database.engine — Database Connection & Async Helper
===============================================================

The API serves WebSockets and HTTP on one ``asyncio`` event loop, while
SQLAlchemy + psycopg2 is **synchronous**.  Calling the DB directly from a
coroutine would freeze every open socket until the query returns.

The bridge:

    1. A request or socket event arrives (async world).
    2. The handler calls ``await run_db(some_function, engine, ...)``.
    3. ``run_db`` ships the synchronous unit of work to a thread via
       ``asyncio.to_thread()``.
    4. The transaction runs on the worker thread; the loop keeps serving.
    5. The result is awaited back and the handler broadcasts / responds.

Usage::

    from boardsync.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    outcome = await run_db(card_service.move_card, engine, ...)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterable
from contextlib import contextmanager
from typing import Any, ParamSpec, TypeVar

from sqlalchemy import Engine, Select, create_engine, select
from sqlalchemy.orm import Session

from boardsync.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine() -> Engine:
    """Build a SQLAlchemy :class:`Engine` from the ``DATABASE_URL`` env var.

    The pool is shared by every request handler:
    * ``pool_size=5`` — five persistent connections.
    * ``max_overflow=10`` — up to 10 extra connections under load.
    * ``pool_timeout=10`` — fail after 10 s if no connection is available.
    * ``pool_recycle=3600`` — recycle connections after 1 hour.

    Raises
    ------
    RuntimeError
        If ``DATABASE_URL`` is not set.
    """
    url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid PostgreSQL URL."
        )

    engine = create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
        pool_recycle=3600,
    )
    logger.info("Database engine created → %s", engine.url.host)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`boardsync.database.models`.

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``).  ``create_all`` is kept for dev/test databases.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Yield a :class:`Session` that commits on success and rolls back on
    exception.

    Every mutation runs inside exactly one of these blocks, so position
    renumbering and the activity entry commit (or vanish) together.
    """
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Row locks
# ---------------------------------------------------------------------------
def row_lock_statement(model: type[Base], ids: Iterable[int]) -> Select[Any]:
    """``SELECT … FOR UPDATE`` over *ids*, ordered by primary key.

    Writers that lock more than one row of a table take them in ascending
    id order, so two of them can never wait on each other.
    """
    return (
        select(model)
        .where(model.id.in_(sorted(set(ids))))
        .order_by(model.id.asc())
        .with_for_update()
        .execution_options(populate_existing=True)
    )


def lock_rows(session: Session, model: type[Base], ids: Iterable[int]) -> list[Any]:
    """Lock the rows of *model* with the given ids for the rest of the transaction."""
    return list(session.scalars(row_lock_statement(model, ids)).all())


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread.

    Under the hood it calls :func:`asyncio.to_thread`, which schedules
    *func* on the default ``ThreadPoolExecutor`` so the event loop (and
    every connected socket) is never blocked.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
