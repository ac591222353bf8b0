"""
Tests for the pure streak calculator.

Covered:
  - the four single-step transitions (win/loss after win/loss/zero)
  - best streak only tracks winning runs
  - determinism, monotonic best, sign/magnitude of the trailing run and
    no zero after history, checked over every win/loss sequence up to
    length 8
"""
from itertools import product

from rankledger.services.streaks import (
    StreakState,
    ZERO_STATE,
    fold_streak,
    update_streak,
)

W, L = True, False


def _all_sequences(max_len: int = 8):
    for n in range(1, max_len + 1):
        yield from product((W, L), repeat=n)


def _trailing_run(seq) -> int:
    last = seq[-1]
    n = 0
    for won in reversed(seq):
        if won != last:
            break
        n += 1
    return n


class TestUpdateStreak:
    def test_first_win_from_zero(self):
        assert update_streak(ZERO_STATE, W) == StreakState(1, 1)

    def test_first_loss_from_zero(self):
        assert update_streak(ZERO_STATE, L) == StreakState(-1, 0)

    def test_win_extends_winning_run(self):
        assert update_streak(StreakState(3, 5), W) == StreakState(4, 5)

    def test_win_past_best_raises_best(self):
        assert update_streak(StreakState(5, 5), W) == StreakState(6, 6)

    def test_loss_extends_losing_run(self):
        # starting from a 4-loss run with best 2
        assert update_streak(StreakState(-4, 2), L) == StreakState(-5, 2)

    def test_win_resets_losing_run(self):
        assert update_streak(StreakState(-4, 2), W) == StreakState(1, 2)

    def test_loss_resets_winning_run(self):
        assert update_streak(StreakState(3, 3), L) == StreakState(-1, 3)

    def test_losing_run_never_raises_best(self):
        state = fold_streak([L] * 10)
        assert state == StreakState(-10, 0)

    def test_prior_is_not_mutated(self):
        prior = StreakState(2, 2)
        update_streak(prior, L)
        assert prior == StreakState(2, 2)


class TestFoldScenarios:
    def test_win_win_loss_win_win_win(self):
        assert fold_streak([W, W, L, W, W, W]) == StreakState(3, 3)

    def test_best_survives_a_loss(self):
        assert fold_streak([W, W, W, L]) == StreakState(-1, 3)

    def test_empty_sequence_is_zero_state(self):
        assert fold_streak([]) == ZERO_STATE

    def test_fold_from_non_zero_start(self):
        assert fold_streak([W, W], start=StreakState(-4, 2)) == StreakState(2, 2)


class TestProperties:
    def test_fold_is_deterministic(self):
        for seq in _all_sequences():
            assert fold_streak(seq) == fold_streak(seq)
            assert fold_streak(iter(seq)) == fold_streak(list(seq))

    def test_best_never_decreases(self):
        for seq in _all_sequences():
            state = ZERO_STATE
            for won in seq:
                nxt = update_streak(state, won)
                assert nxt.best_streak >= state.best_streak
                state = nxt

    def test_sign_and_magnitude_follow_trailing_run(self):
        for seq in _all_sequences():
            state = fold_streak(seq)
            run = _trailing_run(seq)
            if seq[-1]:
                assert state.current_streak == run
            else:
                assert state.current_streak == -run

    def test_current_never_zero_after_history(self):
        for seq in _all_sequences():
            assert fold_streak(seq).current_streak != 0

    def test_best_is_longest_winning_run(self):
        for seq in _all_sequences():
            longest, run = 0, 0
            for won in seq:
                run = run + 1 if won else 0
                longest = max(longest, run)
            assert fold_streak(seq).best_streak == longest
