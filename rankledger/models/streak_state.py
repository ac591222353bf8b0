"""
StreakRecord — current derived state for one (player, group, season) triple.

A cache of the fold of `update_streak` over the triple's folded outcomes
(see `OutcomeFold`); `last_outcome_id` is the highest id among them.
Written only through a compare-and-set on `version`.
`season_key` is the season id, or "" when the outcome had no season, so
the primary key never contains NULL.
"""
from datetime import datetime
from sqlalchemy import Integer, String, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from rankledger.db.base import Base


class StreakRecord(Base):
    __tablename__ = "streak_states"

    player_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    group_id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    season_key: Mapped[str] = mapped_column(String(64), primary_key=True, default="")
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    losses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_outcome_id: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
