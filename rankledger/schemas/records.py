"""
Group records schemas.

GET /groups/{group_id}/records            → GroupRecordsResponse
GET /groups/{group_id}/records/highlights → GroupHighlightsResponse
"""
from typing import Optional
from pydantic import BaseModel, Field

from rankledger.schemas.common import StreakStateResponse


class PlayerRecordResponse(BaseModel):
    player_id: str
    display_name: Optional[str] = None
    season_id: Optional[str] = None
    state: StreakStateResponse
    wins: int
    losses: int


class GroupRecordsResponse(BaseModel):
    group_id: str
    season_id: Optional[str] = Field(
        default=None, description="Season filter applied, null when all seasons are listed."
    )
    items: list[PlayerRecordResponse] = Field(
        description="Best win streak first, then most wins."
    )


class HighlightResponse(BaseModel):
    player_id: str
    display_name: Optional[str] = None
    value: int
    day: Optional[str] = Field(default=None, description="ISO date, only for per-day records.")


class GroupHighlightsResponse(BaseModel):
    group_id: str
    longest_streak: Optional[HighlightResponse] = None
    most_games_played: Optional[HighlightResponse] = None
    most_matches_in_day: Optional[HighlightResponse] = None
