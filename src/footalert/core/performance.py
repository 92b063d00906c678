"""
Strategy performance aggregation.

Unit-stake model: every settled ticket costs 1 unit; a WON ticket returns
its decimal odds.

    wins          = count(WON)
    total_settled = count(WON) + count(LOST)
    strike_rate   = wins / total_settled * 100          (1 dp)
    roi           = (sum(odds of WON) - total_settled)
                    / total_settled * 100                (2 dp)
    avg_odds      = sum(odds of settled) / total_settled (2 dp)

All three are 0 when nothing has settled. PENDING tickets are ignored.

The running tally holds unrounded sums, so folding a full history and
adding tickets one by one produce identical stats.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from footalert.storage.models import BetTicket, Strategy, TicketStatus

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_TENTH = Decimal("0.1")
_CENT = Decimal("0.01")


@dataclass(frozen=True)
class PerformanceStats:
    """Derived performance of one strategy."""

    wins: int = 0
    total_settled: int = 0
    strike_rate: float = 0.0
    roi: Decimal = _ZERO
    avg_odds: Decimal = _ZERO

    def apply_to(self, strategy: Strategy) -> Strategy:
        """Copy of the strategy with these performance fields."""
        return strategy.model_copy(
            update={
                "wins": self.wins,
                "total_settled": self.total_settled,
                "strike_rate": self.strike_rate,
                "roi": self.roi,
                "avg_odds": self.avg_odds,
            }
        )

    @classmethod
    def of(cls, strategy: Strategy) -> "PerformanceStats":
        return cls(
            wins=strategy.wins,
            total_settled=strategy.total_settled,
            strike_rate=strategy.strike_rate,
            roi=Decimal(strategy.roi),
            avg_odds=Decimal(strategy.avg_odds),
        )


@dataclass(frozen=True)
class PerformanceTally:
    """Unrounded running sums over settled tickets."""

    wins: int = 0
    settled: int = 0
    won_odds: Decimal = _ZERO
    total_odds: Decimal = _ZERO

    def add(self, ticket: BetTicket) -> "PerformanceTally":
        """Tally including one more ticket; PENDING tickets are ignored."""
        if ticket.status == TicketStatus.PENDING:
            return self
        odds = Decimal(ticket.odds_at_trigger)
        won = ticket.status == TicketStatus.WON
        return PerformanceTally(
            wins=self.wins + (1 if won else 0),
            settled=self.settled + 1,
            won_odds=self.won_odds + (odds if won else _ZERO),
            total_odds=self.total_odds + odds,
        )

    @property
    def stats(self) -> PerformanceStats:
        if self.settled == 0:
            return PerformanceStats()

        settled = Decimal(self.settled)
        strike_rate = (Decimal(self.wins) / settled * _HUNDRED).quantize(
            _TENTH, rounding=ROUND_HALF_UP
        )
        roi = ((self.won_odds - settled) / settled * _HUNDRED).quantize(
            _CENT, rounding=ROUND_HALF_UP
        )
        avg_odds = (self.total_odds / settled).quantize(_CENT, rounding=ROUND_HALF_UP)
        return PerformanceStats(
            wins=self.wins,
            total_settled=self.settled,
            strike_rate=float(strike_rate),
            roi=roi,
            avg_odds=avg_odds,
        )


def tally(tickets: Iterable[BetTicket]) -> PerformanceTally:
    result = PerformanceTally()
    for ticket in tickets:
        result = result.add(ticket)
    return result


def fold(tickets: Iterable[BetTicket]) -> PerformanceStats:
    """Performance stats recomputed from a full ticket history."""
    return tally(tickets).stats

