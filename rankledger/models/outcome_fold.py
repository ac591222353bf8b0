"""
OutcomeFold — marks one outcome as folded into its triple's streak state.

Rows are written in the same transaction as the compare-and-set on
`streak_states`, so an outcome is folded exactly when the state that
includes it is committed. Outcomes without a fold row are pending.
"""
from datetime import datetime
from sqlalchemy import Index, Integer, String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from rankledger.db.base import Base


class OutcomeFold(Base):
    __tablename__ = "outcome_folds"
    __table_args__ = (
        Index("ix_outcome_folds_triple", "player_id", "group_id", "season_key"),
    )

    outcome_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)
    group_id: Mapped[str] = mapped_column(String(64), nullable=False)
    season_key: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    state_version: Mapped[int] = mapped_column(Integer, nullable=False)
    folded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
