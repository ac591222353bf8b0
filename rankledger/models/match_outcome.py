"""
MatchOutcome — one reported result for one player.

Append-only. The autoincrement `id` is the append order and is what the
streak state folds over; `occurred_at` places the outcome in digest
windows.
"""
from datetime import datetime
from sqlalchemy import Integer, String, Boolean, DateTime, Index, func
from sqlalchemy.orm import Mapped, mapped_column

from rankledger.db.base import Base


class MatchOutcome(Base):
    __tablename__ = "match_outcomes"
    __table_args__ = (
        Index("ix_match_outcomes_group_occurred", "group_id", "occurred_at"),
        Index("ix_match_outcomes_triple", "player_id", "group_id", "season_id", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[str] = mapped_column(String(64), nullable=False)
    group_id: Mapped[str] = mapped_column(String(64), nullable=False)
    season_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    won: Mapped[bool] = mapped_column(Boolean, nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
