"""
boardsync.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- users          — Identities provisioned by the credential layer
- boards         — Top-level shared workspaces
- board_members  — (board, user) → role, unique per pair
- columns        — Ordered lists within a board (sparse integer positions)
- cards          — Ordered items within a column (sparse integer positions)
- card_comments  — Discussion on a card
- activities     — Append-only audit trail of state-changing actions
"""

from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all BoardSync ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class BoardRole(enum.StrEnum):
    """Per-board roles, strongest first."""
    OWNER = "owner"
    MEMBER = "member"
    VIEWER = "viewer"


class EntityType(enum.StrEnum):
    """Kinds of entity an activity entry can describe."""
    BOARD = "board"
    MEMBER = "member"
    COLUMN = "column"
    CARD = "card"
    COMMENT = "comment"


class ActivityAction(enum.StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    MOVED = "moved"
    ADDED = "added"


# ---------------------------------------------------------------------------
# Users — provisioned upstream; the core only reads name/email
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    memberships: Mapped[list[BoardMember]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"


# ---------------------------------------------------------------------------
# Boards
# ---------------------------------------------------------------------------
class Board(Base):
    __tablename__ = "boards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    members: Mapped[list[BoardMember]] = relationship(
        back_populates="board", cascade="all, delete-orphan"
    )
    columns: Mapped[list[BoardColumn]] = relationship(
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="BoardColumn.position",
    )

    def __repr__(self) -> str:
        return f"<Board id={self.id} name={self.name!r}>"


# ---------------------------------------------------------------------------
# BoardMember — (board, user) → role
# ---------------------------------------------------------------------------
class BoardMember(Base):
    __tablename__ = "board_members"

    board_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    board: Mapped[Board] = relationship(back_populates="members")
    user: Mapped[User] = relationship(back_populates="memberships")

    __table_args__ = (
        CheckConstraint(
            "role IN ('owner', 'member', 'viewer')", name="ck_board_members_role"
        ),
        Index("ix_board_members_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<BoardMember board={self.board_id} user={self.user_id} role={self.role}>"


# ---------------------------------------------------------------------------
# Columns — ``position`` is a sparse ordering key, not a dense index
# ---------------------------------------------------------------------------
class BoardColumn(Base):
    __tablename__ = "columns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    board_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    board: Mapped[Board] = relationship(back_populates="columns")
    cards: Mapped[list[Card]] = relationship(
        back_populates="column",
        cascade="all, delete-orphan",
        order_by="Card.position",
    )

    __table_args__ = (
        Index("ix_columns_board_position", "board_id", "position"),
    )

    def __repr__(self) -> str:
        return f"<BoardColumn id={self.id} title={self.title!r} pos={self.position}>"


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------
class Card(Base):
    """A card in a column.

    ``assignee`` is a snapshot of the member's display name taken at write
    time, not a foreign key.  It is not kept in sync with later renames.
    """
    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    board_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    column_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("columns.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    assignee: Mapped[str | None] = mapped_column(String(200), nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    column: Mapped[BoardColumn] = relationship(back_populates="cards")

    __table_args__ = (
        Index("ix_cards_column_position", "column_id", "position"),
        Index("ix_cards_board", "board_id"),
    )

    def __repr__(self) -> str:
        return f"<Card id={self.id} column={self.column_id} pos={self.position}>"


# ---------------------------------------------------------------------------
# CardComment
# ---------------------------------------------------------------------------
class CardComment(Base):
    __tablename__ = "card_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    board_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    card_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cards.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    author: Mapped[User | None] = relationship()

    __table_args__ = (
        Index("ix_card_comments_card_created", "card_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<CardComment id={self.id} card={self.card_id} author={self.user_id}>"


# ---------------------------------------------------------------------------
# Activity — append-only audit trail
# ---------------------------------------------------------------------------
class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    board_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    actor_user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_: Mapped[dict] = mapped_column(
        "metadata", JSONB, nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    actor: Mapped[User | None] = relationship()

    __table_args__ = (
        Index("ix_activities_board_created", "board_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Activity id={self.id} board={self.board_id} "
            f"{self.entity_type}.{self.action}>"
        )
