"""
Digest router.

GET /groups/{group_id}/stats/weekly
GET /groups/{group_id}/stats/summary
"""
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from rankledger.core.config import settings
from rankledger.routers.deps import get_queries
from rankledger.schemas.stats import (
    PlayerCountResponse,
    WeeklyStatsResponse,
    WinLossResponse,
    WindowSummaryResponse,
)
from rankledger.services.digest import WinLoss
from rankledger.services.ledger import as_utc, utcnow
from rankledger.services.records import RankingQueries

router = APIRouter(prefix="/groups/{group_id}/stats", tags=["stats"])


def _window(since: Optional[datetime], until: Optional[datetime]) -> tuple[datetime, datetime]:
    end = as_utc(until) if until else utcnow()
    start = as_utc(since) if since else end - timedelta(days=settings.DIGEST_WINDOW_DAYS)
    return start, end


def _players_to_response(players: dict[str, WinLoss]) -> dict[str, WinLossResponse]:
    return {
        player_id: WinLossResponse(wins=wl.wins, losses=wl.losses, net=wl.net)
        for player_id, wl in sorted(players.items())
    }


@router.get(
    "/weekly",
    response_model=WeeklyStatsResponse,
    summary="Per-player wins and losses in a time window",
)
def weekly_stats(
    group_id: str = Path(min_length=1, max_length=64),
    since: Optional[datetime] = Query(
        default=None,
        description="Window start (inclusive). Defaults to now minus DIGEST_WINDOW_DAYS.",
    ),
    queries: RankingQueries = Depends(get_queries),
):
    """
    Tally of outcomes with `since <= occurred_at < now`, across all seasons
    of the group. Players without outcomes in the window are omitted.
    """
    start, end = _window(since, None)
    players = queries.get_weekly_stats(group_id, start, end)
    return WeeklyStatsResponse(
        group_id=group_id,
        since=start.isoformat(),
        until=end.isoformat(),
        players=_players_to_response(players),
    )


@router.get(
    "/summary",
    response_model=WindowSummaryResponse,
    summary="Digest highlights for a time window",
)
def window_summary(
    group_id: str = Path(min_length=1, max_length=64),
    since: Optional[datetime] = Query(default=None, description="Window start (inclusive)."),
    until: Optional[datetime] = Query(default=None, description="Window end (exclusive)."),
    queries: RankingQueries = Depends(get_queries),
):
    start, end = _window(since, until)
    s = queries.get_window_summary(group_id, start, end)
    return WindowSummaryResponse(
        group_id=group_id,
        since=s.since.isoformat(),
        until=s.until.isoformat(),
        outcome_count=s.outcome_count,
        players=_players_to_response(s.players),
        most_active=(
            PlayerCountResponse(player_id=s.most_active.player_id, count=s.most_active.count)
            if s.most_active else None
        ),
        longest_streak=(
            PlayerCountResponse(player_id=s.longest_streak.player_id, count=s.longest_streak.count)
            if s.longest_streak else None
        ),
    )
