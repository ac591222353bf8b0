"""
Read-only queries for the API and bot replies.

`RankingQueries` is a pass-through over the ledger and the digest
aggregator; it never writes and holds no state of its own.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

from rankledger.services.digest import WinLoss, WindowSummary, summarize_window, weekly_digest
from rankledger.services.ledger import RecordLedger, TripleRecord, utcnow
from rankledger.services.streaks import StreakState

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class PlayerRecord:
    player_id: str
    display_name: Optional[str]
    season_id: Optional[str]
    streak: StreakState
    wins: int
    losses: int


@dataclass(frozen=True)
class Highlight:
    player_id: str
    display_name: Optional[str]
    value: int
    day: Optional[date] = None


@dataclass(frozen=True)
class GroupHighlights:
    longest_streak: Optional[Highlight]
    most_games_played: Optional[Highlight]
    most_matches_in_day: Optional[Highlight]


def _record_sort_key(record: TripleRecord):
    return (
        -record.state.streak.best_streak,
        -record.state.wins,
        record.player_id,
        record.season_id or "",
    )


class RankingQueries:
    def __init__(self, ledger: RecordLedger):
        self.ledger = ledger

    def get_group_records(
        self, group_id: str, season_id: Optional[str] = None
    ) -> list[PlayerRecord]:
        """Best win streak first, then most wins, then player id."""
        rows = sorted(self.ledger.list_states(group_id, season_id), key=_record_sort_key)
        return [
            PlayerRecord(
                player_id=row.player_id,
                display_name=row.display_name,
                season_id=row.season_id,
                streak=row.state.streak,
                wins=row.state.wins,
                losses=row.state.losses,
            )
            for row in rows
        ]

    def get_weekly_stats(
        self, group_id: str, since: datetime, until: Optional[datetime] = None
    ) -> dict[str, WinLoss]:
        return weekly_digest(self.ledger, group_id, since, until)

    def get_window_summary(
        self, group_id: str, since: datetime, until: Optional[datetime] = None
    ) -> WindowSummary:
        return summarize_window(self.ledger, group_id, since, until)

    def get_group_highlights(self, group_id: str) -> GroupHighlights:
        rows = self.ledger.list_states(group_id)
        names = {row.player_id: row.display_name for row in rows}

        longest = None
        streak_rows = [row for row in rows if row.state.streak.best_streak > 0]
        if streak_rows:
            top = min(streak_rows, key=lambda r: (-r.state.streak.best_streak, r.player_id))
            longest = Highlight(top.player_id, top.display_name, top.state.streak.best_streak)

        games: Counter[str] = Counter()
        for row in rows:
            games[row.player_id] += row.state.games_played
        most_games = None
        if games:
            player_id, count = min(games.items(), key=lambda kv: (-kv[1], kv[0]))
            if count > 0:
                most_games = Highlight(player_id, names.get(player_id), count)

        per_day: Counter[tuple[str, date]] = Counter(
            (outcome.player_id, outcome.occurred_at.date())
            for outcome in self.ledger.list_outcomes(group_id, _EPOCH, utcnow())
        )
        busiest_day = None
        if per_day:
            (player_id, day), count = min(
                per_day.items(), key=lambda kv: (-kv[1], kv[0][1], kv[0][0])
            )
            busiest_day = Highlight(player_id, names.get(player_id), count, day=day)

        return GroupHighlights(
            longest_streak=longest,
            most_games_played=most_games,
            most_matches_in_day=busiest_day,
        )
