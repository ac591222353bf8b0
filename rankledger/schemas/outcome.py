"""
Outcome reporting schemas.

POST /groups/{group_id}/outcomes → OutcomeRecordedResponse (201)
                                 → ErrorResponse (202, state update pending)
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from rankledger.schemas.common import StreakStateResponse


class OutcomeReportRequest(BaseModel):
    player_id: str = Field(min_length=1, max_length=64)
    season_id: Optional[str] = Field(
        default=None,
        max_length=64,
        description="Season partition. Omit for outcomes outside any season.",
    )
    won: bool
    occurred_at: Optional[datetime] = Field(
        default=None,
        description="When the match was played. Defaults to the time of the report.",
    )

    @field_validator("player_id")
    @classmethod
    def player_id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("player_id must not be blank")
        return v


class OutcomeRecordedResponse(BaseModel):
    player_id: str
    group_id: str
    season_id: Optional[str]
    won: bool
    state: StreakStateResponse
