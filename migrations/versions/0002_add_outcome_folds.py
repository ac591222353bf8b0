"""add outcome folds

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 00:00:00.000000

Per-outcome fold marks. Outcome ids are not guaranteed to become visible
in id order, so the highest folded id alone cannot tell which outcomes a
state row already includes.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0002"
down_revision: Union[str, None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "outcome_folds",
        sa.Column("outcome_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("player_id", sa.String(64), nullable=False),
        sa.Column("group_id", sa.String(64), nullable=False),
        sa.Column("season_key", sa.String(64), nullable=False, server_default=""),
        sa.Column("state_version", sa.Integer(), nullable=False),
        sa.Column("folded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("outcome_id"),
    )
    op.create_index(
        "ix_outcome_folds_triple", "outcome_folds", ["player_id", "group_id", "season_key"]
    )


def downgrade() -> None:
    op.drop_index("ix_outcome_folds_triple", table_name="outcome_folds")
    op.drop_table("outcome_folds")
