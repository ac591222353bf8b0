"""
Digest schemas.

GET /groups/{group_id}/stats/weekly  → WeeklyStatsResponse
GET /groups/{group_id}/stats/summary → WindowSummaryResponse
"""
from typing import Optional
from pydantic import BaseModel, Field


class WinLossResponse(BaseModel):
    wins: int
    losses: int
    net: int


class WeeklyStatsResponse(BaseModel):
    group_id: str
    since: str
    until: str
    players: dict[str, WinLossResponse] = Field(
        description="Only players with at least one outcome in the window."
    )


class PlayerCountResponse(BaseModel):
    player_id: str
    count: int


class WindowSummaryResponse(BaseModel):
    group_id: str
    since: str
    until: str
    outcome_count: int
    players: dict[str, WinLossResponse]
    most_active: Optional[PlayerCountResponse] = None
    longest_streak: Optional[PlayerCountResponse] = Field(
        default=None, description="Longest winning run inside the window, when at least 2."
    )

