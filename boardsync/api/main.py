"""
boardsync.api.main — FastAPI application entry point
=====================================================

Run with::

    uvicorn boardsync.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

load_dotenv()

from boardsync import __version__  # noqa: E402
from boardsync.api.auth import router as auth_router  # noqa: E402
from boardsync.api.deps import get_config, get_engine  # noqa: E402
from boardsync.api.routes.boards import router as boards_router  # noqa: E402
from boardsync.api.routes.cards import router as cards_router  # noqa: E402
from boardsync.api.routes.columns import router as columns_router  # noqa: E402
from boardsync.api.routes.comments import router as comments_router  # noqa: E402
from boardsync.api.routes.realtime import router as realtime_router  # noqa: E402
from boardsync.engine.permissions import AuthorizationError  # noqa: E402
from boardsync.realtime.broadcaster import configure_broadcaster  # noqa: E402
from boardsync.services.errors import BoardSyncError  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — warm the DB engine and reset the hub."""
    engine = get_engine()
    cfg = get_config()
    configure_broadcaster()
    logger.info("%s API started — engine ready (%s)", cfg.app_name, engine.url.database)
    yield
    logger.info("%s API shutting down", cfg.app_name)


app = FastAPI(
    title="BoardSync API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
@app.exception_handler(AuthorizationError)
async def _authorization_error(request: Request, exc: AuthorizationError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(BoardSyncError)
async def _board_sync_error(request: Request, exc: BoardSyncError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(SQLAlchemyError)
async def _storage_error(request: Request, exc: SQLAlchemyError):
    logger.exception(
        "Storage error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Mount routers
app.include_router(auth_router, prefix="/api")
app.include_router(boards_router, prefix="/api")
app.include_router(columns_router, prefix="/api")
app.include_router(cards_router, prefix="/api")
app.include_router(comments_router, prefix="/api")
app.include_router(realtime_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
