"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of boardsync.api.security, which
# validates the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

from dataclasses import dataclass  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402

from boardsync.config import BoardSyncConfig  # noqa: E402
from boardsync.database.engine import init_db  # noqa: E402
from boardsync.database.models import BoardRole  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all BoardSync tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return engine


@pytest.fixture
def test_config() -> BoardSyncConfig:
    return BoardSyncConfig(app_name="BoardSync Test")


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------
def make_token(user_id: int, email: str = "fixture@example.com", name: str = "Fixture") -> str:
    """Create a user JWT.  Usable from fixtures and directly in tests."""
    from boardsync.api.security import issue_token

    return issue_token(user_id, email, name)


def auth_headers(user: dict) -> dict:
    return {"Authorization": f"Bearer {make_token(user['id'], user['email'], user['name'])}"}


# ---------------------------------------------------------------------------
# Fake sockets for the broadcaster
# ---------------------------------------------------------------------------
class FakeSocket:
    """Collects frames sent through ``send_json``; can be told to fail."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail

    async def send_json(self, data) -> None:
        if self.fail:
            raise ConnectionError("socket closed")
        self.sent.append(data)

    def events(self, name: str | None = None) -> list[dict]:
        return [f for f in self.sent if name is None or f["event"] == name]


# ---------------------------------------------------------------------------
# Board fixtures
# ---------------------------------------------------------------------------
@dataclass
class BoardFixture:
    """A board with one user per role plus an outsider."""

    engine: Engine
    board_id: int
    owner: dict
    member: dict
    viewer: dict
    outsider: dict
    column_ids: list[int]


@pytest.fixture
def make_user(db_engine: Engine):
    from boardsync.services.user_service import create_user

    def _make(name: str, email: str | None = None) -> dict:
        return create_user(
            db_engine, name=name, email=email or f"{name.lower()}@example.com"
        )

    return _make


@pytest.fixture
def board(db_engine: Engine, make_user) -> BoardFixture:
    from boardsync.services import board_service

    owner = make_user("Olivia")
    member = make_user("Marcus")
    viewer = make_user("Vera")
    outsider = make_user("Oscar")

    created = board_service.create_board(db_engine, user_id=owner["id"], name="Roadmap")
    board_id = created.board_id
    board_service.add_member(
        db_engine, user_id=owner["id"], board_id=board_id,
        email=member["email"], role=BoardRole.MEMBER,
    )
    board_service.add_member(
        db_engine, user_id=owner["id"], board_id=board_id,
        email=viewer["email"], role=BoardRole.VIEWER,
    )
    detail = board_service.get_board_detail(db_engine, user_id=owner["id"], board_id=board_id)
    return BoardFixture(
        engine=db_engine,
        board_id=board_id,
        owner=owner,
        member=member,
        viewer=viewer,
        outsider=outsider,
        column_ids=[c["id"] for c in detail["columns"]],
    )


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------
@pytest.fixture
def hub():
    from boardsync.realtime.broadcaster import Broadcaster

    return Broadcaster()


@pytest.fixture
def client(db_engine: Engine, test_config: BoardSyncConfig, hub):
    """FastAPI TestClient wired to the SQLite engine and a fresh broadcaster.

    Lifespan is not entered, so no real database URL is needed.
    """
    from fastapi.testclient import TestClient

    from boardsync.api.deps import get_broadcaster, get_config, get_engine
    from boardsync.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: test_config
    app.dependency_overrides[get_broadcaster] = lambda: hub
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def headers_for():
    """``headers_for(user_dict)`` → bearer Authorization header."""
    return auth_headers


@pytest.fixture
def fake_socket():
    """Factory for :class:`FakeSocket` instances."""
    return FakeSocket
