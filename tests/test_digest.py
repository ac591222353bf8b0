"""
Tests for the digest aggregator.
"""
from datetime import timedelta

from rankledger.services.digest import WinLoss, summarize_window, tally, weekly_digest
from rankledger.services.ledger import utcnow


class TestWinLoss:
    def test_add_and_net(self):
        wl = WinLoss()
        for won in (True, True, False):
            wl.add(won)
        assert (wl.wins, wl.losses, wl.net, wl.games) == (2, 1, 1, 3)


class TestWeeklyDigest:
    def test_window_counts_boundary_and_excludes_older(self, writer, ledger):
        since = utcnow() - timedelta(days=7)
        writer.record_outcome("p", "g1", None, True, occurred_at=since - timedelta(days=1))
        writer.record_outcome("p", "g1", None, True, occurred_at=since)
        writer.record_outcome("p", "g1", None, False, occurred_at=since + timedelta(days=3))

        digest = weekly_digest(ledger, "g1", since)
        assert digest == {"p": WinLoss(wins=1, losses=1)}

    def test_players_without_outcomes_are_absent(self, writer, ledger):
        since = utcnow() - timedelta(days=7)
        writer.record_outcome("old", "g1", None, True, occurred_at=since - timedelta(days=2))
        writer.record_outcome("new", "g1", None, False, occurred_at=since + timedelta(hours=1))
        digest = weekly_digest(ledger, "g1", since)
        assert set(digest) == {"new"}

    def test_seasons_are_aggregated_together(self, writer, ledger):
        since = utcnow() - timedelta(days=1)
        writer.record_outcome("p", "g1", "s1", True, occurred_at=since + timedelta(minutes=1))
        writer.record_outcome("p", "g1", "s2", True, occurred_at=since + timedelta(minutes=2))
        writer.record_outcome("p", "g1", None, False, occurred_at=since + timedelta(minutes=3))
        assert weekly_digest(ledger, "g1", since) == {"p": WinLoss(wins=2, losses=1)}

    def test_other_groups_are_ignored(self, writer, ledger):
        since = utcnow() - timedelta(days=1)
        writer.record_outcome("p", "g2", None, True, occurred_at=since + timedelta(minutes=1))
        assert weekly_digest(ledger, "g1", since) == {}

    def test_explicit_until_is_exclusive(self, writer, ledger):
        since = utcnow() - timedelta(days=3)
        until = since + timedelta(days=1)
        writer.record_outcome("p", "g1", None, True, occurred_at=until - timedelta(seconds=1))
        writer.record_outcome("p", "g1", None, True, occurred_at=until)
        assert weekly_digest(ledger, "g1", since, until) == {"p": WinLoss(wins=1, losses=0)}

    def test_tally_of_plain_iterable(self, writer, ledger):
        since = utcnow() - timedelta(hours=1)
        writer.record_outcome("a", "g1", None, True, occurred_at=since)
        writer.record_outcome("b", "g1", None, False, occurred_at=since)
        result = tally(list(ledger.list_outcomes("g1", since)))
        assert result == {"a": WinLoss(1, 0), "b": WinLoss(0, 1)}


class TestSummarizeWindow:
    def test_summary_highlights(self, writer, ledger):
        since = utcnow() - timedelta(days=7)
        t = since + timedelta(hours=1)
        # carol's earlier wins fall outside the window and must not count
        for i in range(3):
            writer.record_outcome("carol", "g1", None, True, occurred_at=since - timedelta(hours=i + 1))
        for i, won in enumerate((True, True, True, False)):
            writer.record_outcome("alice", "g1", None, won, occurred_at=t + timedelta(minutes=i))
        for i, won in enumerate((True, False, True, False, False)):
            writer.record_outcome("bob", "g1", None, won, occurred_at=t + timedelta(minutes=10 + i))
        writer.record_outcome("carol", "g1", None, True, occurred_at=t + timedelta(minutes=30))

        s = summarize_window(ledger, "g1", since)
        assert s.outcome_count == 10
        assert s.most_active.player_id == "bob"
        assert s.most_active.count == 5
        assert s.longest_streak.player_id == "alice"
        assert s.longest_streak.count == 3
        assert s.players["carol"] == WinLoss(1, 0)

    def test_single_wins_are_not_a_streak(self, writer, ledger):
        since = utcnow() - timedelta(days=1)
        writer.record_outcome("a", "g1", None, True, occurred_at=since + timedelta(minutes=1))
        writer.record_outcome("a", "g1", None, False, occurred_at=since + timedelta(minutes=2))
        s = summarize_window(ledger, "g1", since)
        assert s.longest_streak is None
        assert s.most_active.player_id == "a"

    def test_ties_resolve_to_smallest_player_id(self, writer, ledger):
        since = utcnow() - timedelta(days=1)
        for player in ("zed", "amy"):
            for i in range(2):
                writer.record_outcome(player, "g1", None, True, occurred_at=since + timedelta(minutes=i))
        s = summarize_window(ledger, "g1", since)
        assert s.most_active.player_id == "amy"
        assert s.longest_streak.player_id == "amy"

    def test_empty_window(self, ledger):
        s = summarize_window(ledger, "g1", utcnow() - timedelta(days=7))
        assert s.outcome_count == 0
        assert s.players == {}
        assert s.most_active is None
        assert s.longest_streak is None
