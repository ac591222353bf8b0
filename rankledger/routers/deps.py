"""
FastAPI dependencies that build the ledger services per request from the
application's database handle.
"""
from fastapi import Depends

from rankledger.core.config import settings
from rankledger.db.base import Database, get_database
from rankledger.services.ledger import RecordLedger
from rankledger.services.records import RankingQueries
from rankledger.services.writer import LedgerWriter


def get_ledger(database: Database = Depends(get_database)) -> RecordLedger:
    return RecordLedger(database)


def get_writer(ledger: RecordLedger = Depends(get_ledger)) -> LedgerWriter:
    return LedgerWriter(
        ledger,
        max_attempts=settings.RECORD_MAX_ATTEMPTS,
        retry_jitter=settings.RECORD_RETRY_JITTER,
    )


def get_queries(ledger: RecordLedger = Depends(get_ledger)) -> RankingQueries:
    return RankingQueries(ledger)
