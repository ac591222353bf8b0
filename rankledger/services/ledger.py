"""
Record ledger — durable outcome history plus the current derived state.

Public API
----------
RecordLedger.append(report)                                   -> Outcome
RecordLedger.read_current_state(player, group, season)        -> LedgerState
RecordLedger.write_current_state(player, group, season,
                                 new_state, expected_prior,
                                 folded=())                   -> CasResult
RecordLedger.list_outcomes(group, since, until)               -> OutcomeWindow
RecordLedger.list_triple_outcomes(player, group, season, ...) -> list[Outcome]
RecordLedger.list_unfolded_outcomes(player, group, season)  -> list[Outcome]
RecordLedger.list_states(group, season)                       -> list[TripleRecord]
RecordLedger.list_triples(group)                              -> list[(player, season)]

Concurrency contract
--------------------
Every call opens its own short-lived session, so state is always re-read
from the shared backend and never served from a process-local cache.
`write_current_state` is a compare-and-set on the row `version`: an
insert when no row existed (a concurrent insert loses on the primary key)
or an `UPDATE ... WHERE version = :expected` otherwise. The ids of the
outcomes folded into the new state are marked in the same transaction, so
"which outcomes does this state include" is answered by the fold marks and
never inferred from id order (ids can become visible out of order when
transactions commit concurrently). No lock is held between calls.

Every backend failure to connect surfaces as `StorageUnavailable`.
"""
from __future__ import annotations

import enum
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from rankledger.core.errors import StorageUnavailable
from rankledger.core.logging import get_logger
from rankledger.db.base import Database
from rankledger.models.match_outcome import MatchOutcome
from rankledger.models.outcome_fold import OutcomeFold
from rankledger.models.player import Player
from rankledger.models.streak_state import StreakRecord
from rankledger.services.streaks import StreakState, ZERO_STATE, update_streak

log = get_logger(__name__)

NO_SEASON = ""
_STREAM_BATCH = 500


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OutcomeReport:
    """An outcome that has not been appended yet."""
    player_id: str
    group_id: str
    season_id: Optional[str]
    won: bool
    occurred_at: Optional[datetime] = None


@dataclass(frozen=True)
class Outcome:
    """An appended, immutable outcome."""
    id: int
    player_id: str
    group_id: str
    season_id: Optional[str]
    won: bool
    occurred_at: datetime


@dataclass(frozen=True)
class LedgerState:
    """
    Stored state of one triple. `version == 0` means no row exists yet,
    which reads as the zero state.
    """
    streak: StreakState = ZERO_STATE
    wins: int = 0
    losses: int = 0
    last_outcome_id: int = 0
    version: int = 0

    @property
    def games_played(self) -> int:
        return self.wins + self.losses

    def apply(self, outcome: Outcome) -> "LedgerState":
        """Fold one outcome in. The version is left for the CAS write to bump."""
        return replace(
            self,
            streak=update_streak(self.streak, outcome.won),
            wins=self.wins + (1 if outcome.won else 0),
            losses=self.losses + (0 if outcome.won else 1),
            last_outcome_id=max(self.last_outcome_id, outcome.id),
        )


ZERO_LEDGER_STATE = LedgerState()


@dataclass(frozen=True)
class TripleRecord:
    player_id: str
    group_id: str
    season_id: Optional[str]
    state: LedgerState
    display_name: Optional[str] = None


class CasResult(str, enum.Enum):
    success = "success"
    conflict = "conflict"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already (SQLite returns them so)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def season_key(season_id: Optional[str]) -> str:
    return season_id if season_id is not None else NO_SEASON


def _season_from_key(key: str) -> Optional[str]:
    return key if key != NO_SEASON else None


def _to_outcome(row: MatchOutcome) -> Outcome:
    return Outcome(
        id=row.id,
        player_id=row.player_id,
        group_id=row.group_id,
        season_id=row.season_id,
        won=row.won,
        occurred_at=as_utc(row.occurred_at),
    )


def _triple_query(db, player_id: str, group_id: str, season_id: Optional[str]):
    q = db.query(MatchOutcome).filter(
        MatchOutcome.player_id == player_id,
        MatchOutcome.group_id == group_id,
    )
    if season_id is None:
        return q.filter(MatchOutcome.season_id.is_(None))
    return q.filter(MatchOutcome.season_id == season_id)


def _to_state(row: Optional[StreakRecord]) -> LedgerState:
    if row is None:
        return ZERO_LEDGER_STATE
    return LedgerState(
        streak=StreakState(current_streak=row.current_streak, best_streak=row.best_streak),
        wins=row.wins,
        losses=row.losses,
        last_outcome_id=row.last_outcome_id,
        version=row.version,
    )


# ---------------------------------------------------------------------------
# Lazy, restartable window over the outcome history
# ---------------------------------------------------------------------------

class OutcomeWindow:
    """
    Outcomes of a group with `since <= occurred_at < until`, oldest first.
    Each iteration runs a fresh streaming query, so the window can be
    walked any number of times. `until` is fixed when the window is built.
    """

    def __init__(self, ledger: "RecordLedger", group_id: str, since: datetime, until: datetime):
        self._ledger = ledger
        self.group_id = group_id
        self.since = as_utc(since)
        self.until = as_utc(until)

    def __iter__(self) -> Iterator[Outcome]:
        return self._ledger._stream_window(self.group_id, self.since, self.until)

    def __repr__(self) -> str:
        return f"OutcomeWindow(group_id={self.group_id!r}, since={self.since}, until={self.until})"


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

class RecordLedger:
    def __init__(self, database: Database):
        self._database = database

    @contextmanager
    def _storage(self, operation: str) -> Iterator[None]:
        try:
            yield
        except (OperationalError, InterfaceError, PoolTimeoutError) as exc:
            log.error("storage_unavailable", operation=operation, error=str(exc))
            raise StorageUnavailable(operation, reason=type(exc).__name__) from exc
        except DBAPIError as exc:
            if not exc.connection_invalidated:
                raise
            log.error("storage_unavailable", operation=operation, error=str(exc))
            raise StorageUnavailable(operation, reason="connection invalidated") from exc

    # -- history ------------------------------------------------------------

    def append(self, report: OutcomeReport) -> Outcome:
        """Durably store one outcome. Nothing is recorded unless this returns."""
        occurred_at = as_utc(report.occurred_at) if report.occurred_at else utcnow()
        with self._storage("append"), self._database.session() as db:
            row = MatchOutcome(
                player_id=report.player_id,
                group_id=report.group_id,
                season_id=report.season_id,
                won=report.won,
                occurred_at=occurred_at,
            )
            db.add(row)
            db.commit()
            outcome = _to_outcome(row)
        log.debug(
            "outcome_appended",
            outcome_id=outcome.id,
            player_id=outcome.player_id,
            group_id=outcome.group_id,
            season_id=outcome.season_id,
            won=outcome.won,
        )
        return outcome

    def list_outcomes(
        self,
        group_id: str,
        since: datetime,
        until: Optional[datetime] = None,
    ) -> OutcomeWindow:
        return OutcomeWindow(self, group_id, since, until or utcnow())

    def _stream_window(self, group_id: str, since: datetime, until: datetime) -> Iterator[Outcome]:
        with self._storage("list_outcomes"), self._database.session() as db:
            rows = (
                db.query(MatchOutcome)
                .filter(
                    MatchOutcome.group_id == group_id,
                    MatchOutcome.occurred_at >= since,
                    MatchOutcome.occurred_at < until,
                )
                .order_by(MatchOutcome.occurred_at.asc(), MatchOutcome.id.asc())
                .yield_per(_STREAM_BATCH)
            )
            for row in rows:
                yield _to_outcome(row)

    def list_triple_outcomes(
        self,
        player_id: str,
        group_id: str,
        season_id: Optional[str],
        after_id: int = 0,
        through_id: Optional[int] = None,
    ) -> list[Outcome]:
        """Outcomes of one triple in id order, `after_id < id <= through_id`."""
        with self._storage("list_triple_outcomes"), self._database.session() as db:
            q = _triple_query(db, player_id, group_id, season_id).filter(MatchOutcome.id > after_id)
            if through_id is not None:
                q = q.filter(MatchOutcome.id <= through_id)
            return [_to_outcome(row) for row in q.order_by(MatchOutcome.id.asc()).all()]

    def list_unfolded_outcomes(
        self,
        player_id: str,
        group_id: str,
        season_id: Optional[str],
    ) -> list[Outcome]:
        """Outcomes of one triple not yet folded into its state, in id order."""
        with self._storage("list_unfolded_outcomes"), self._database.session() as db:
            rows = (
                _triple_query(db, player_id, group_id, season_id)
                .outerjoin(OutcomeFold, OutcomeFold.outcome_id == MatchOutcome.id)
                .filter(OutcomeFold.outcome_id.is_(None))
                .order_by(MatchOutcome.id.asc())
                .all()
            )
            return [_to_outcome(row) for row in rows]

    def list_triples(self, group_id: str) -> list[tuple[str, Optional[str]]]:
        """Every (player, season) pair with history in the group."""
        with self._storage("list_triples"), self._database.session() as db:
            rows = (
                db.query(MatchOutcome.player_id, MatchOutcome.season_id)
                .filter(MatchOutcome.group_id == group_id)
                .distinct()
                .all()
            )
        return sorted(
            ((row.player_id, row.season_id) for row in rows),
            key=lambda pair: (pair[0], season_key(pair[1])),
        )

    # -- derived state ------------------------------------------------------

    def read_current_state(
        self,
        player_id: str,
        group_id: str,
        season_id: Optional[str],
    ) -> LedgerState:
        with self._storage("read_current_state"), self._database.session() as db:
            row = db.get(StreakRecord, (player_id, group_id, season_key(season_id)))
            return _to_state(row)

    def write_current_state(
        self,
        player_id: str,
        group_id: str,
        season_id: Optional[str],
        new_state: LedgerState,
        expected_prior: LedgerState,
        folded: Iterable[int] = (),
    ) -> CasResult:
        """
        Store `new_state` only if the row still holds `expected_prior`, and
        mark the `folded` outcome ids as included in it. Either both land
        or neither does.
        """
        key = season_key(season_id)
        version = expected_prior.version + 1
        values = {
            "current_streak": new_state.streak.current_streak,
            "best_streak": new_state.streak.best_streak,
            "wins": new_state.wins,
            "losses": new_state.losses,
            "last_outcome_id": new_state.last_outcome_id,
            "version": version,
        }
        marks = [
            OutcomeFold(
                outcome_id=outcome_id,
                player_id=player_id,
                group_id=group_id,
                season_key=key,
                state_version=version,
            )
            for outcome_id in folded
        ]
        with self._storage("write_current_state"), self._database.session() as db:
            if expected_prior.version == 0:
                db.add(StreakRecord(player_id=player_id, group_id=group_id, season_key=key, **values))
            else:
                updated = (
                    db.query(StreakRecord)
                    .filter(
                        StreakRecord.player_id == player_id,
                        StreakRecord.group_id == group_id,
                        StreakRecord.season_key == key,
                        StreakRecord.version == expected_prior.version,
                    )
                    .update(values, synchronize_session=False)
                )
                if updated != 1:
                    db.rollback()
                    return CasResult.conflict
            db.add_all(marks)
            try:
                db.commit()
            except IntegrityError:
                # a concurrent insert of the state row, or an outcome folded twice
                db.rollback()
                return CasResult.conflict
        return CasResult.success

    def list_states(self, group_id: str, season_id: Optional[str] = None) -> list[TripleRecord]:
        """State rows of a group, all seasons unless `season_id` is given."""
        with self._storage("list_states"), self._database.session() as db:
            q = (
                db.query(StreakRecord, Player.display_name)
                .outerjoin(Player, Player.id == StreakRecord.player_id)
                .filter(StreakRecord.group_id == group_id)
            )
            if season_id is not None:
                q = q.filter(StreakRecord.season_key == season_id)
            rows = q.all()
            return [
                TripleRecord(
                    player_id=record.player_id,
                    group_id=record.group_id,
                    season_id=_season_from_key(record.season_key),
                    state=_to_state(record),
                    display_name=display_name,
                )
                for record, display_name in rows
            ]
