"""
Repair-from-history: rebuild derived streak state by replaying outcomes.

The stored state is a cache of a fold over the triple's outcomes, so it
can always be discarded and recomputed in id order. The rebuilt state is
written with the same compare-and-set as the ledger writer, marking the
replayed outcomes that were still pending; if a live writer commits in
between, the replay starts over from a fresh read.

Usage:
    python -m rankledger.services.repair --group GROUP_ID [--dry-run]
"""
from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Optional

from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt

from rankledger.core.config import settings
from rankledger.core.errors import RankingUpdateContention
from rankledger.core.logging import get_logger, setup_logging
from rankledger.db.base import Database
from rankledger.services.ledger import CasResult, LedgerState, RecordLedger
from rankledger.services.writer import StateConflict

log = get_logger(__name__)

REPAIR_MAX_ATTEMPTS = 10


@dataclass
class RepairResult:
    player_id: str
    group_id: str
    season_id: Optional[str]
    before: LedgerState
    after: LedgerState
    written: bool

    @property
    def drifted(self) -> bool:
        b, a = self.before, self.after
        return (b.streak, b.wins, b.losses, b.last_outcome_id) != (
            a.streak, a.wins, a.losses, a.last_outcome_id
        )


def rebuild_state(
    ledger: RecordLedger,
    player_id: str,
    group_id: str,
    season_id: Optional[str],
) -> LedgerState:
    """Fold the full history of one triple from the zero state."""
    return _fold_history(ledger.list_triple_outcomes(player_id, group_id, season_id))


def _fold_history(outcomes) -> LedgerState:
    state = LedgerState()
    for outcome in outcomes:
        state = state.apply(outcome)
    return state


def _repair_once(
    ledger: RecordLedger,
    player_id: str,
    group_id: str,
    season_id: Optional[str],
    dry_run: bool,
) -> RepairResult:
    before = ledger.read_current_state(player_id, group_id, season_id)
    history = ledger.list_triple_outcomes(player_id, group_id, season_id)
    after = _fold_history(history)
    result = RepairResult(player_id, group_id, season_id, before, after, written=False)
    if dry_run or not result.drifted:
        return result
    # outcomes appended after the history read stay pending for the next writer
    replayed = {outcome.id for outcome in history}
    folded = [
        outcome.id
        for outcome in ledger.list_unfolded_outcomes(player_id, group_id, season_id)
        if outcome.id in replayed
    ]
    result_cas = ledger.write_current_state(
        player_id, group_id, season_id, after, before, folded=folded
    )
    if result_cas is CasResult.conflict:
        raise StateConflict()
    result.written = True
    return result


def repair_triple(
    ledger: RecordLedger,
    player_id: str,
    group_id: str,
    season_id: Optional[str],
    dry_run: bool = False,
    max_attempts: int = REPAIR_MAX_ATTEMPTS,
) -> RepairResult:
    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        retry=retry_if_exception_type(StateConflict),
        reraise=False,
    )
    try:
        for attempt in retrying:
            with attempt:
                result = _repair_once(ledger, player_id, group_id, season_id, dry_run)
    except RetryError:
        last = ledger.read_current_state(player_id, group_id, season_id)
        raise RankingUpdateContention(outcome_id=last.last_outcome_id, attempts=max_attempts)

    if result.written:
        log.info(
            "streak_state_repaired",
            player_id=player_id,
            group_id=group_id,
            season_id=season_id,
            before=result.before.streak.current_streak,
            after=result.after.streak.current_streak,
            outcomes=result.after.games_played,
        )
    elif result.drifted:
        log.info("streak_state_drift_detected", player_id=player_id, group_id=group_id, season_id=season_id)
    return result


def repair_group(ledger: RecordLedger, group_id: str, dry_run: bool = False) -> list[RepairResult]:
    """Repair every triple with history in the group."""
    results = [
        repair_triple(ledger, player_id, group_id, season_id, dry_run=dry_run)
        for player_id, season_id in ledger.list_triples(group_id)
    ]
    log.info(
        "group_repaired",
        group_id=group_id,
        triples=len(results),
        drifted=sum(1 for r in results if r.drifted),
        dry_run=dry_run,
    )
    return results


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Rebuild streak state from outcome history")
    parser.add_argument("--group", required=True, help="Group id to repair")
    parser.add_argument("--dry-run", action="store_true", help="Report drift without writing")
    parser.add_argument("--database-url", default=settings.DATABASE_URL, help="Backend URL")
    args = parser.parse_args(argv)

    setup_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    with Database(args.database_url, busy_timeout=settings.SQLITE_BUSY_TIMEOUT) as database:
        results = repair_group(RecordLedger(database), args.group, dry_run=args.dry_run)

    for r in results:
        if r.drifted:
            verb = "would fix" if args.dry_run else "fixed"
            print(
                f"{verb} {r.player_id} season={r.season_id or '-'}: "
                f"{r.before.streak.current_streak}/{r.before.streak.best_streak} -> "
                f"{r.after.streak.current_streak}/{r.after.streak.best_streak}"
            )
    print(f"{len(results)} triples checked, {sum(1 for r in results if r.drifted)} drifted")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
