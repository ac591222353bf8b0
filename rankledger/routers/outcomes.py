"""
Outcome reporting router.

POST /groups/{group_id}/outcomes
"""
from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse
from starlette import status

from rankledger.core.errors import StateUpdatePending
from rankledger.routers.deps import get_writer
from rankledger.schemas.common import ErrorResponse, StreakStateResponse
from rankledger.schemas.outcome import OutcomeRecordedResponse, OutcomeReportRequest
from rankledger.services.writer import LedgerWriter

router = APIRouter(prefix="/groups/{group_id}", tags=["outcomes"])


@router.post(
    "/outcomes",
    response_model=OutcomeRecordedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report one match outcome for a player",
    responses={
        201: {"description": "Outcome recorded and streak state updated."},
        202: {"model": ErrorResponse, "description": "Outcome recorded; streak update pending."},
        503: {"model": ErrorResponse, "description": "Storage unavailable; nothing was recorded."},
    },
)
def report_outcome(
    payload: OutcomeReportRequest,
    group_id: str = Path(min_length=1, max_length=64),
    writer: LedgerWriter = Depends(get_writer),
):
    """
    Append the outcome to the ledger and fold it into the player's streak
    state for `(player_id, group_id, season_id)`.

    - **201**: recorded, body carries the new streak state.
    - **202**: recorded, but the streak update has not landed, either because
      concurrent reports kept winning (`RANKING_UPDATE_CONTENTION`) or because
      storage failed after the append (`STATE_UPDATE_DEFERRED`). It is applied
      with the next report for the same player or by
      `POST /groups/{group_id}/repair`. Do not report the match again.
    - **503**: the match was **not** recorded.
    """
    try:
        state = writer.record_outcome(
            player_id=payload.player_id,
            group_id=group_id,
            season_id=payload.season_id,
            won=payload.won,
            occurred_at=payload.occurred_at,
        )
    except StateUpdatePending as exc:
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    return OutcomeRecordedResponse(
        player_id=payload.player_id,
        group_id=group_id,
        season_id=payload.season_id,
        won=payload.won,
        state=StreakStateResponse(
            current_streak=state.current_streak,
            best_streak=state.best_streak,
        ),
    )
