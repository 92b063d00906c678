"""
Tests for strategy performance aggregation.

Unit stake per settled ticket; PENDING tickets never count.
"""
from decimal import Decimal

from footalert.core import PerformanceStats, PerformanceTally, fold, tally
from footalert.storage.models import TicketStatus

WON = TicketStatus.WON
LOST = TicketStatus.LOST
PENDING = TicketStatus.PENDING


def _history(make_ticket, entries):
    return [
        make_ticket(match_id=f"m{i}", status=status, odds=odds)
        for i, (status, odds) in enumerate(entries)
    ]


class TestFold:
    """Tests for folding a full history."""

    def test_empty_history_is_all_zero(self):
        """No division by zero when nothing has settled."""
        stats = fold([])
        assert stats == PerformanceStats()
        assert stats.strike_rate == 0.0
        assert stats.roi == Decimal("0")
        assert stats.avg_odds == Decimal("0")

    def test_only_pending_is_all_zero(self, make_ticket):
        stats = fold(_history(make_ticket, [(PENDING, "2.00"), (PENDING, "3.00")]))
        assert stats.total_settled == 0
        assert stats.roi == Decimal("0")

    def test_mixed_history(self, make_ticket):
        """2 wins @2.00 and 2.50, 1 loss @1.80, 1 pending."""
        history = _history(make_ticket, [
            (WON, "2.00"),
            (LOST, "1.80"),
            (WON, "2.50"),
            (PENDING, "5.00"),
        ])
        stats = fold(history)

        assert stats.wins == 2
        assert stats.total_settled == 3
        assert stats.strike_rate == 66.7
        # (4.50 - 3) / 3 * 100 = 50.00
        assert stats.roi == Decimal("50.00")
        # (2.00 + 1.80 + 2.50) / 3 = 2.10
        assert stats.avg_odds == Decimal("2.10")

    def test_all_lost(self, make_ticket):
        stats = fold(_history(make_ticket, [(LOST, "1.90"), (LOST, "2.10")]))
        assert stats.strike_rate == 0.0
        assert stats.roi == Decimal("-100.00")
        assert stats.avg_odds == Decimal("2.00")

    def test_rounding_is_half_up(self, make_ticket):
        """1 of 8 = 12.5% exactly; roi (1.85 - 8) / 8 = -76.875 -> -76.88."""
        entries = [(WON, "1.85")] + [(LOST, "1.90")] * 7
        stats = fold(_history(make_ticket, entries))
        assert stats.strike_rate == 12.5
        assert stats.roi == Decimal("-76.88")


class TestIncremental:
    """Tests that incremental tallying matches a full fold."""

    def test_incremental_equals_fold(self, make_ticket):
        history = _history(make_ticket, [
            (WON, "1.65"), (LOST, "2.20"), (WON, "3.10"),
            (LOST, "1.95"), (PENDING, "2.00"), (WON, "1.72"),
        ])

        running = PerformanceTally()
        for ticket in history:
            running = running.add(ticket)

        assert running.stats == fold(history)
        assert running == tally(history)

    def test_pending_is_ignored(self, make_ticket):
        base = PerformanceTally()
        assert base.add(make_ticket(status=PENDING)) is base


class TestApply:
    """Tests for copying stats onto a strategy."""

    def test_apply_to_returns_copy(self, make_strategy, make_ticket):
        strategy = make_strategy()
        stats = fold(_history(make_ticket, [(WON, "2.00"), (LOST, "2.00")]))

        updated = stats.apply_to(strategy)

        assert updated.wins == 1
        assert updated.total_settled == 2
        assert updated.strike_rate == 50.0
        assert updated.roi == Decimal("0.00")
        assert strategy.total_settled == 0

    def test_of_reads_strategy_fields(self, make_strategy):
        strategy = make_strategy(wins=3, total_settled=4, strike_rate=75.0,
                                 roi=Decimal("12.50"), avg_odds=Decimal("1.90"))
        stats = PerformanceStats.of(strategy)
        assert stats == PerformanceStats(3, 4, 75.0, Decimal("12.50"), Decimal("1.90"))
