"""ledger schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

Directory tables (players, groups, seasons) plus the append-only
match_outcomes history and the streak_states cache keyed by
(player_id, group_id, season_key).
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- players ---
    op.create_table(
        "players",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("display_name", sa.String(128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # --- groups ---
    op.create_table(
        "groups",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("slug", sa.String(64), nullable=False),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )

    # --- seasons ---
    op.create_table(
        "seasons",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("group_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("starts_on", sa.Date(), nullable=True),
        sa.Column("ends_on", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_seasons_group_id", "seasons", ["group_id"])

    # --- match_outcomes (append-only) ---
    op.create_table(
        "match_outcomes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("player_id", sa.String(64), nullable=False),
        sa.Column("group_id", sa.String(64), nullable=False),
        sa.Column("season_id", sa.String(64), nullable=True),
        sa.Column("won", sa.Boolean(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_match_outcomes_group_occurred", "match_outcomes", ["group_id", "occurred_at"])
    op.create_index(
        "ix_match_outcomes_triple", "match_outcomes", ["player_id", "group_id", "season_id", "id"]
    )

    # --- streak_states (CAS on version) ---
    op.create_table(
        "streak_states",
        sa.Column("player_id", sa.String(64), nullable=False),
        sa.Column("group_id", sa.String(64), nullable=False),
        sa.Column("season_key", sa.String(64), nullable=False, server_default=""),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("best_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_outcome_id", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("player_id", "group_id", "season_key"),
    )
    op.create_index("ix_streak_states_group_id", "streak_states", ["group_id"])


def downgrade() -> None:
    op.drop_index("ix_streak_states_group_id", table_name="streak_states")
    op.drop_table("streak_states")
    op.drop_index("ix_match_outcomes_triple", table_name="match_outcomes")
    op.drop_index("ix_match_outcomes_group_occurred", table_name="match_outcomes")
    op.drop_table("match_outcomes")
    op.drop_index("ix_seasons_group_id", table_name="seasons")
    op.drop_table("seasons")
    op.drop_table("groups")
    op.drop_table("players")
