"""
Tests for the exception classes and their error envelope.
"""
from rankledger.core.errors import (
    LedgerException,
    RankingUpdateContention,
    StateUpdateDeferred,
    StateUpdatePending,
    StorageUnavailable,
)


class TestExceptionClasses:
    def test_storage_unavailable(self):
        err = StorageUnavailable("append", reason="OperationalError")
        assert err.http_status == 503
        assert err.code == "STORAGE_UNAVAILABLE"
        assert err.operation == "append"
        assert "append" in err.message
        d = err.to_dict()
        assert d["details"] == {"operation": "append", "reason": "OperationalError"}

    def test_storage_unavailable_without_reason(self):
        err = StorageUnavailable("list_outcomes")
        assert err.to_dict()["details"] == {"operation": "list_outcomes"}

    def test_ranking_update_contention(self):
        err = RankingUpdateContention(outcome_id=42, attempts=5)
        assert err.http_status == 202
        assert err.code == "RANKING_UPDATE_CONTENTION"
        assert err.outcome_id == 42
        assert "42" in err.message
        d = err.to_dict()
        assert d["details"] == {"outcome_id": 42, "attempts": 5, "recorded": True}

    def test_state_update_deferred(self):
        err = StateUpdateDeferred(outcome_id=7, operation="write_current_state")
        assert err.http_status == 202
        assert err.code == "STATE_UPDATE_DEFERRED"
        assert err.operation == "write_current_state"
        assert err.to_dict()["details"] == {
            "outcome_id": 7,
            "operation": "write_current_state",
            "recorded": True,
        }

    def test_recorded_errors_share_the_pending_base(self):
        assert issubclass(RankingUpdateContention, StateUpdatePending)
        assert issubclass(StateUpdateDeferred, StateUpdatePending)
        assert not issubclass(StorageUnavailable, StateUpdatePending)

    def test_both_share_the_base_class(self):
        assert issubclass(StorageUnavailable, LedgerException)
        assert issubclass(RankingUpdateContention, LedgerException)
        assert not issubclass(RankingUpdateContention, StorageUnavailable)

    def test_to_dict_without_details(self):
        err = LedgerException("boom")
        assert err.to_dict() == {"code": "INTERNAL_ERROR", "message": "boom"}
