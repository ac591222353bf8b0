"""
Digest aggregator — time-windowed tallies over the outcome history.

Public API
----------
weekly_digest(ledger, group_id, since, until=None)    -> dict[player_id, WinLoss]
summarize_window(ledger, group_id, since, until=None) -> WindowSummary

The window is `[since, until)`, `until` defaulting to now. Aggregation
is at group granularity: outcomes from every season inside the window
count. Players with no outcome in the window are absent from the result,
not zero-filled.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from rankledger.core.logging import get_logger
from rankledger.services.ledger import Outcome, RecordLedger, utcnow
from rankledger.services.streaks import StreakState, ZERO_STATE, update_streak

log = get_logger(__name__)

# A run shorter than this is not worth calling a streak in a summary.
MIN_REPORTED_STREAK = 2


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class WinLoss:
    wins: int = 0
    losses: int = 0

    @property
    def net(self) -> int:
        return self.wins - self.losses

    @property
    def games(self) -> int:
        return self.wins + self.losses

    def add(self, won: bool) -> None:
        if won:
            self.wins += 1
        else:
            self.losses += 1


@dataclass
class PlayerCount:
    player_id: str
    count: int


@dataclass
class WindowSummary:
    group_id: str
    since: datetime
    until: datetime
    outcome_count: int = 0
    players: dict[str, WinLoss] = field(default_factory=dict)
    most_active: Optional[PlayerCount] = None
    longest_streak: Optional[PlayerCount] = None


# ---------------------------------------------------------------------------
# Folding
# ---------------------------------------------------------------------------

def tally(outcomes) -> dict[str, WinLoss]:
    """Per-player win/loss counts of an iterable of outcomes."""
    result: dict[str, WinLoss] = {}
    for outcome in outcomes:
        result.setdefault(outcome.player_id, WinLoss()).add(outcome.won)
    return result


def weekly_digest(
    ledger: RecordLedger,
    group_id: str,
    since: datetime,
    until: Optional[datetime] = None,
) -> dict[str, WinLoss]:
    return tally(ledger.list_outcomes(group_id, since, until or utcnow()))


def summarize_window(
    ledger: RecordLedger,
    group_id: str,
    since: datetime,
    until: Optional[datetime] = None,
) -> WindowSummary:
    """
    One pass over the window: tallies, the most active player, and the
    longest winning run that happened inside the window (runs are rebuilt
    from scratch at `since`, independent of stored streak state).
    """
    window = ledger.list_outcomes(group_id, since, until or utcnow())
    summary = WindowSummary(group_id=group_id, since=window.since, until=window.until)
    streaks: dict[str, StreakState] = {}

    outcome: Outcome
    for outcome in window:
        summary.outcome_count += 1
        summary.players.setdefault(outcome.player_id, WinLoss()).add(outcome.won)
        streaks[outcome.player_id] = update_streak(
            streaks.get(outcome.player_id, ZERO_STATE), outcome.won
        )

    if summary.players:
        # Ties resolve to the smallest player id so the summary is stable.
        busiest = min(summary.players.items(), key=lambda kv: (-kv[1].games, kv[0]))
        summary.most_active = PlayerCount(player_id=busiest[0], count=busiest[1].games)

        best = min(streaks.items(), key=lambda kv: (-kv[1].best_streak, kv[0]))
        if best[1].best_streak >= MIN_REPORTED_STREAK:
            summary.longest_streak = PlayerCount(player_id=best[0], count=best[1].best_streak)

    log.debug(
        "window_summarized",
        group_id=group_id,
        outcomes=summary.outcome_count,
        players=len(summary.players),
    )
    return summary
