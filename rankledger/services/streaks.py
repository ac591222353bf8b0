"""
Streak calculator — pure bookkeeping of consecutive results.

`current_streak` is signed: +n after n straight wins, -n after n straight
losses, 0 only before the first outcome. `best_streak` is the highest
value `current_streak` has ever reached, so it only ever reflects a
winning run; losing runs never raise it.

No I/O, no shared state.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class StreakState:
    current_streak: int = 0
    best_streak: int = 0


ZERO_STATE = StreakState()


def update_streak(prior: StreakState, won: bool) -> StreakState:
    """Apply one outcome to `prior` and return the new state."""
    if won:
        current = prior.current_streak + 1 if prior.current_streak > 0 else 1
    else:
        current = prior.current_streak - 1 if prior.current_streak < 0 else -1
    return StreakState(current_streak=current, best_streak=max(prior.best_streak, current))


def fold_streak(results: Iterable[bool], start: StreakState = ZERO_STATE) -> StreakState:
    """Fold `update_streak` over an ordered sequence of win/loss flags."""
    state = start
    for won in results:
        state = update_streak(state, won)
    return state
