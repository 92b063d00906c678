"""
Ticket factory.

Turns a trigger (strategy + snapshot) into a PENDING BetTicket:
    - initial score: current goals of both sides (each may be unknown)
    - odds at trigger: the live-odds market for the target outcome, or the
      configured fallback when that market is missing or non-positive
    - stats snapshot: the whole snapshot, for audit display
"""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from footalert.ingestion.models import MatchSnapshot
from footalert.storage.models import (
    BetTicket,
    ScoreLine,
    Strategy,
    TicketStatus,
    ticket_id_for,
)
from footalert.strategies.metrics import odds_price
from footalert.strategies.outcomes import TargetOutcome

DEFAULT_FALLBACK_ODDS = Decimal("1.90")

ODDS_SOURCE_LIVE = "live"
ODDS_SOURCE_FALLBACK = "fallback"

_CENT = Decimal("0.01")


class TicketFactory:
    """
    Builds tickets for new triggers.

    Args:
        fallback_odds: Odds recorded when no live market matches the outcome
    """

    def __init__(self, fallback_odds: Decimal = DEFAULT_FALLBACK_ODDS) -> None:
        if fallback_odds <= 0:
            raise ValueError(f"fallback_odds must be positive, got {fallback_odds}")
        self.fallback_odds = Decimal(fallback_odds)

    def odds_for(
        self, outcome: TargetOutcome, snapshot: MatchSnapshot
    ) -> tuple[Decimal, str]:
        """
        Resolve odds at trigger for an outcome.

        Returns:
            (odds, source) where source is "live" or "fallback"
        """
        market = outcome.spec.odds_market
        price = odds_price(snapshot.live_odds, market) if market else None
        if price is None:
            return self.fallback_odds, ODDS_SOURCE_FALLBACK
        odds = Decimal(str(price)).quantize(_CENT, rounding=ROUND_HALF_UP)
        return odds, ODDS_SOURCE_LIVE

    def create(
        self,
        strategy: Strategy,
        snapshot: MatchSnapshot,
        now: Optional[datetime] = None,
    ) -> BetTicket:
        odds, source = self.odds_for(strategy.target_outcome, snapshot)
        return BetTicket(
            id=ticket_id_for(strategy.id, snapshot.match_id),
            strategy_id=strategy.id,
            strategy_name=strategy.name,
            match_id=snapshot.match_id,
            home_team=snapshot.home_team,
            away_team=snapshot.away_team,
            league=snapshot.league,
            target_outcome=strategy.target_outcome,
            trigger_time=now or datetime.now(timezone.utc),
            trigger_minute=snapshot.minute,
            initial_score=ScoreLine(home=snapshot.home.goals, away=snapshot.away.goals),
            odds_at_trigger=odds,
            odds_source=source,
            status=TicketStatus.PENDING,
            stats_snapshot=snapshot.to_dict(),
            pre_match_odds=(
                asdict(snapshot.pre_match_odds) if snapshot.pre_match_odds else None
            ),
        )
