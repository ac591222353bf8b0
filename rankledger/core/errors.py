"""
Exception hierarchy for the ranking ledger.

Rule: every error carries a machine-readable `code` string so the trigger
and presentation layers can tell "match not recorded" apart from
"match recorded, ranking update pending" without parsing messages.
"""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from rankledger.core.logging import get_logger

log = get_logger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class LedgerException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class StorageUnavailable(LedgerException):
    """The durable backend could not be reached; nothing was recorded."""
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORAGE_UNAVAILABLE"

    def __init__(self, operation: str, reason: str | None = None):
        super().__init__(
            message=f"Ledger storage unavailable during {operation}.",
            details={"operation": operation, "reason": reason} if reason else {"operation": operation},
        )
        self.operation = operation


class StateUpdatePending(LedgerException):
    """
    The outcome is durably recorded but its streak state update has not
    landed yet. The next successful write for the same triple (or a repair
    pass) folds it in; the outcome must not be reported again.
    """
    http_status = status.HTTP_202_ACCEPTED
    code = "STATE_UPDATE_PENDING"

    def __init__(self, outcome_id: int, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            details={"outcome_id": outcome_id, **(details or {}), "recorded": True},
        )
        self.outcome_id = outcome_id


class RankingUpdateContention(StateUpdatePending):
    """The state update lost every attempt of its retry budget to concurrent writers."""
    code = "RANKING_UPDATE_CONTENTION"

    def __init__(self, outcome_id: int, attempts: int):
        super().__init__(
            outcome_id,
            message=(
                f"Outcome {outcome_id} was recorded but the ranking update "
                f"lost {attempts} concurrent attempts; it will be applied later."
            ),
            details={"attempts": attempts},
        )
        self.attempts = attempts


class StateUpdateDeferred(StateUpdatePending):
    """The backend failed after the outcome was appended."""
    code = "STATE_UPDATE_DEFERRED"

    def __init__(self, outcome_id: int, operation: str):
        super().__init__(
            outcome_id,
            message=(
                f"Outcome {outcome_id} was recorded but storage failed during "
                f"{operation}; the ranking update will be applied later."
            ),
            details={"operation": operation},
        )
        self.operation = operation


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def ledger_exception_handler(request: Request, exc: LedgerException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
