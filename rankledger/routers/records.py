"""
Records router.

GET  /groups/{group_id}/records
GET  /groups/{group_id}/records/highlights
POST /groups/{group_id}/repair
"""
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from rankledger.routers.deps import get_ledger, get_queries
from rankledger.schemas.common import StreakStateResponse
from rankledger.schemas.records import (
    GroupHighlightsResponse,
    GroupRecordsResponse,
    HighlightResponse,
    PlayerRecordResponse,
)
from rankledger.schemas.repair import RepairRequest, RepairResponse
from rankledger.services.ledger import RecordLedger
from rankledger.services.records import Highlight, PlayerRecord, RankingQueries
from rankledger.services.repair import repair_group

router = APIRouter(prefix="/groups/{group_id}", tags=["records"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _record_to_response(r: PlayerRecord) -> PlayerRecordResponse:
    return PlayerRecordResponse(
        player_id=r.player_id,
        display_name=r.display_name,
        season_id=r.season_id,
        state=StreakStateResponse(
            current_streak=r.streak.current_streak,
            best_streak=r.streak.best_streak,
        ),
        wins=r.wins,
        losses=r.losses,
    )


def _highlight_to_response(h: Optional[Highlight]) -> Optional[HighlightResponse]:
    if h is None:
        return None
    return HighlightResponse(
        player_id=h.player_id,
        display_name=h.display_name,
        value=h.value,
        day=str(h.day) if h.day else None,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/records",
    response_model=GroupRecordsResponse,
    summary="Current streak state and record of every player in a group",
)
def group_records(
    group_id: str = Path(min_length=1, max_length=64),
    season_id: Optional[str] = Query(
        default=None,
        description="Restrict to one season. Omit to list every season.",
    ),
    queries: RankingQueries = Depends(get_queries),
):
    records = queries.get_group_records(group_id, season_id=season_id)
    return GroupRecordsResponse(
        group_id=group_id,
        season_id=season_id,
        items=[_record_to_response(r) for r in records],
    )


@router.get(
    "/records/highlights",
    response_model=GroupHighlightsResponse,
    summary="All-time group records",
)
def group_highlights(
    group_id: str = Path(min_length=1, max_length=64),
    queries: RankingQueries = Depends(get_queries),
):
    """
    | Record | Source |
    |---|---|
    | `longest_streak` | highest best win streak of any player/season |
    | `most_games_played` | most outcomes of one player, all seasons |
    | `most_matches_in_day` | most outcomes of one player on one UTC day |
    """
    h = queries.get_group_highlights(group_id)
    return GroupHighlightsResponse(
        group_id=group_id,
        longest_streak=_highlight_to_response(h.longest_streak),
        most_games_played=_highlight_to_response(h.most_games_played),
        most_matches_in_day=_highlight_to_response(h.most_matches_in_day),
    )


@router.post(
    "/repair",
    response_model=RepairResponse,
    summary="Rebuild streak state of a group from its outcome history",
)
def repair(
    payload: RepairRequest,
    group_id: str = Path(min_length=1, max_length=64),
    ledger: RecordLedger = Depends(get_ledger),
):
    results = repair_group(ledger, group_id, dry_run=payload.dry_run)
    return RepairResponse(
        group_id=group_id,
        dry_run=payload.dry_run,
        triples=len(results),
        drifted=sum(1 for r in results if r.drifted),
        repaired=sum(1 for r in results if r.written),
    )
