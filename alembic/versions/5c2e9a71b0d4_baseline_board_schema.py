"""Baseline board schema

Revision ID: 5c2e9a71b0d4
Revises:
Create Date: 2026-10-18 09:12:41.204113

"""
from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c2e9a71b0d4'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    """Create users, boards, memberships, columns, cards, comments, activities."""

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        _created_at(),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # --- boards ---
    op.create_table(
        "boards",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "created_by",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _created_at(),
    )

    # --- board_members ---
    op.create_table(
        "board_members",
        sa.Column(
            "board_id",
            sa.Integer,
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("role", sa.String(20), nullable=False),
        _created_at(),
        sa.CheckConstraint(
            "role IN ('owner', 'member', 'viewer')", name="ck_board_members_role"
        ),
    )
    op.create_index("ix_board_members_user", "board_members", ["user_id"])

    # --- columns ---
    op.create_table(
        "columns",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "board_id",
            sa.Integer,
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("position", sa.Integer, nullable=False),
        _created_at(),
    )
    op.create_index("ix_columns_board_position", "columns", ["board_id", "position"])

    # --- cards ---
    op.create_table(
        "cards",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "board_id",
            sa.Integer,
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "column_id",
            sa.Integer,
            sa.ForeignKey("columns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("assignee", sa.String(200), nullable=True),
        sa.Column("due_date", sa.Date, nullable=True),
        sa.Column("position", sa.Integer, nullable=False),
        _created_at(),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_cards_column_position", "cards", ["column_id", "position"])
    op.create_index("ix_cards_board", "cards", ["board_id"])

    # --- card_comments ---
    op.create_table(
        "card_comments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "board_id",
            sa.Integer,
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "card_id",
            sa.Integer,
            sa.ForeignKey("cards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("body", sa.Text, nullable=False),
        _created_at(),
    )
    op.create_index(
        "ix_card_comments_card_created", "card_comments", ["card_id", "created_at"]
    )

    # --- activities ---
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "board_id",
            sa.Integer,
            sa.ForeignKey("boards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "actor_user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.Integer, nullable=True),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column(
            "metadata", postgresql.JSONB, nullable=False, server_default="{}"
        ),
        _created_at(),
    )
    op.create_index(
        "ix_activities_board_created",
        "activities",
        ["board_id", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("ix_activities_board_created", table_name="activities")
    op.drop_table("activities")
    op.drop_index("ix_card_comments_card_created", table_name="card_comments")
    op.drop_table("card_comments")
    op.drop_index("ix_cards_board", table_name="cards")
    op.drop_index("ix_cards_column_position", table_name="cards")
    op.drop_table("cards")
    op.drop_index("ix_columns_board_position", table_name="columns")
    op.drop_table("columns")
    op.drop_index("ix_board_members_user", table_name="board_members")
    op.drop_table("board_members")
    op.drop_table("boards")
    op.drop_table("users")
