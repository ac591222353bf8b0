from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from rankledger.core.config import settings
from rankledger.core.errors import (
    LedgerException,
    ledger_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)
from rankledger.core.logging import get_logger, setup_logging
from rankledger.db.base import Database, get_database
from rankledger.routers import outcomes as outcomes_router
from rankledger.routers import records as records_router
from rankledger.routers import stats as stats_router

log = get_logger(__name__)


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the API around one database handle. The handle is opened on
    startup and closed on shutdown; pass one in to run against an isolated
    backend (tests).
    """
    db_handle = database or Database(settings.DATABASE_URL, busy_timeout=settings.SQLITE_BUSY_TIMEOUT)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)
        db_handle.open()
        if settings.AUTO_CREATE_TABLES:
            db_handle.create_all()
        log.info("app_started", env=settings.APP_ENV)
        try:
            yield
        finally:
            db_handle.close()

    app = FastAPI(
        title="Rank Ledger API",
        description=(
            "**Match record ledger and streak engine**\n\n"
            "Records reported match outcomes per player, group and season, keeps "
            "win/loss streaks consistent under concurrent reports, and serves "
            "records and time-windowed digests.\n\n"
            "All error responses follow the `{code, message, details}` envelope."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.database = db_handle

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers (most specific first) ---
    app.add_exception_handler(LedgerException, ledger_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --- Routers ---
    app.include_router(outcomes_router.router)
    app.include_router(records_router.router)
    app.include_router(stats_router.router)

    @app.get("/health", tags=["health"], summary="Health check")
    def health(database: Database = Depends(get_database)):
        """
        Returns `{"status": "ok", "db": "ok"}` when both the API and the
        ledger backend are reachable, HTTP 503 otherwise.
        """
        try:
            with database.session() as db:
                db.execute(text("SELECT 1"))
            db_status = "ok"
        except SQLAlchemyError:
            db_status = "unreachable"

        if db_status != "ok":
            return JSONResponse(
                status_code=503,
                content={"status": "error", "db": db_status},
            )
        return {"status": "ok", "db": "ok", "env": settings.APP_ENV}

    return app


app = create_app()
