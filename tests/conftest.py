"""
Shared pytest fixtures.

Every test gets its own SQLite file under tmp_path behind an explicitly
opened `Database` handle, so no state leaks between tests and no
Postgres is required.
"""
import pytest
from fastapi.testclient import TestClient

from rankledger.core.errors import StorageUnavailable
from rankledger.db.base import Database
from rankledger.main import create_app
from rankledger.services.ledger import CasResult, RecordLedger
from rankledger.services.records import RankingQueries
from rankledger.services.writer import LedgerWriter


@pytest.fixture()
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'ledger.db'}", busy_timeout=30)
    db.open()
    db.create_all()
    yield db
    db.close()


@pytest.fixture()
def ledger(database):
    return RecordLedger(database)


@pytest.fixture()
def writer(ledger):
    return LedgerWriter(ledger, max_attempts=5, retry_jitter=0)


@pytest.fixture()
def queries(ledger):
    return RankingQueries(ledger)


@pytest.fixture()
def unreachable_database(tmp_path):
    # The parent directory does not exist, so SQLite cannot open the file.
    db = Database(f"sqlite:///{tmp_path / 'missing' / 'ledger.db'}", busy_timeout=1)
    db.open()
    yield db
    db.close()


@pytest.fixture()
def client(database):
    app = create_app(database)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class AlwaysConflictLedger(RecordLedger):
    """Every CAS write loses, as if another writer always got there first."""

    def __init__(self, database):
        super().__init__(database)
        self.write_calls = 0

    def write_current_state(self, *args, **kwargs):
        self.write_calls += 1
        return CasResult.conflict


@pytest.fixture()
def conflicting_ledger(database):
    return AlwaysConflictLedger(database)


class StateReadFailingLedger(RecordLedger):
    """Appends work, then the backend drops before the state can be read."""

    def read_current_state(self, *args, **kwargs):
        raise StorageUnavailable("read_current_state", reason="OperationalError")


@pytest.fixture()
def state_read_failing_ledger(database):
    return StateReadFailingLedger(database)
