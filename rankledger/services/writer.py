"""
Ledger writer — the only mutator of streak state.

Protocol for one reported outcome
---------------------------------
  1. Append the outcome. If this fails the match is not recorded and
     `StorageUnavailable` propagates unchanged.
  2. Read the triple's stored state (fresh from the backend).
  3. List the triple's outcomes that carry no fold mark yet, in id order.
     If ours is not among them a concurrent writer already folded it in.
  4. Fold them through the streak calculator and compare-and-set the
     result against the state read in step 2, marking them folded in the
     same transaction.
  5. On conflict go back to 2.
  6. After `max_attempts` conflicts raise `RankingUpdateContention`. The
     outcome stays in the ledger and the next successful write for the
     triple (or a repair pass) folds it in.

Once step 1 has succeeded the outcome is recorded, so a backend failure in
steps 2-5 surfaces as `StateUpdateDeferred`, never as `StorageUnavailable`.

Which outcomes a state includes is read from the fold marks, not inferred
from ids: on backends that hand out ids before commit (Postgres sequences)
a lower id can become visible after a higher one was already folded.

No in-process lock is taken; correctness rests on the CAS alone.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from rankledger.core.errors import RankingUpdateContention, StateUpdateDeferred, StorageUnavailable
from rankledger.core.logging import get_logger
from rankledger.services.ledger import (
    CasResult,
    LedgerState,
    Outcome,
    OutcomeReport,
    RecordLedger,
)
from rankledger.services.streaks import StreakState

log = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


class StateConflict(Exception):
    """Internal: the CAS write lost to a concurrent writer."""


class LedgerWriter:
    def __init__(
        self,
        ledger: RecordLedger,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_jitter: float = 0.05,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.ledger = ledger
        self.max_attempts = max_attempts
        self.retry_jitter = retry_jitter

    def record_outcome(
        self,
        player_id: str,
        group_id: str,
        season_id: Optional[str],
        won: bool,
        occurred_at: Optional[datetime] = None,
    ) -> StreakState:
        """
        Record one outcome and return the triple's streak state once it is
        folded in. Raises `StorageUnavailable` if nothing was recorded and a
        `StateUpdatePending` subclass if only the state update is pending.
        """
        outcome = self.ledger.append(
            OutcomeReport(
                player_id=player_id,
                group_id=group_id,
                season_id=season_id,
                won=won,
                occurred_at=occurred_at,
            )
        )
        state = self.apply_outcome(outcome)
        return state.streak

    def apply_outcome(self, outcome: Outcome) -> LedgerState:
        """Fold an already-appended outcome into its triple's state."""
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_random(0, self.retry_jitter),
            retry=retry_if_exception_type(StateConflict),
            reraise=False,
        )
        try:
            for attempt in retrying:
                with attempt:
                    return self._fold_pending(outcome)
        except RetryError:
            log.warning(
                "ranking_update_contention",
                outcome_id=outcome.id,
                player_id=outcome.player_id,
                group_id=outcome.group_id,
                season_id=outcome.season_id,
                attempts=self.max_attempts,
            )
            raise RankingUpdateContention(outcome_id=outcome.id, attempts=self.max_attempts)
        except StorageUnavailable as exc:
            log.warning(
                "streak_state_deferred",
                outcome_id=outcome.id,
                player_id=outcome.player_id,
                group_id=outcome.group_id,
                season_id=outcome.season_id,
                operation=exc.operation,
            )
            raise StateUpdateDeferred(outcome_id=outcome.id, operation=exc.operation) from exc

    def _fold_pending(self, outcome: Outcome) -> LedgerState:
        prior = self.ledger.read_current_state(
            outcome.player_id, outcome.group_id, outcome.season_id
        )
        pending = self.ledger.list_unfolded_outcomes(
            outcome.player_id, outcome.group_id, outcome.season_id
        )
        if all(item.id != outcome.id for item in pending):
            # Folded by a concurrent writer; its state may be newer than `prior`.
            return self.ledger.read_current_state(
                outcome.player_id, outcome.group_id, outcome.season_id
            )

        new_state = prior
        for item in pending:
            new_state = new_state.apply(item)

        result = self.ledger.write_current_state(
            outcome.player_id,
            outcome.group_id,
            outcome.season_id,
            new_state,
            expected_prior=prior,
            folded=[item.id for item in pending],
        )
        if result is CasResult.conflict:
            log.debug(
                "streak_state_conflict",
                outcome_id=outcome.id,
                player_id=outcome.player_id,
                group_id=outcome.group_id,
                expected_version=prior.version,
            )
            raise StateConflict()

        log.info(
            "streak_state_updated",
            outcome_id=outcome.id,
            player_id=outcome.player_id,
            group_id=outcome.group_id,
            season_id=outcome.season_id,
            folded=len(pending),
            current_streak=new_state.streak.current_streak,
            best_streak=new_state.streak.best_streak,
        )
        return new_state
