"""
Core layer test fixtures.

Core tests verify orchestration logic, so the stores are in-memory fakes
that can be told to fail, and the notifier records its calls.
"""
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from footalert.ingestion.models import (
    MatchOdds,
    MatchPhase,
    MatchSnapshot,
    TeamStats,
)
from footalert.storage.models import (
    STRATEGY_PERFORMANCE_FIELDS,
    BetTicket,
    Criterion,
    ScoreLine,
    Strategy,
    TicketStatus,
    ticket_id_for,
)
from footalert.strategies import TargetOutcome


# =============================================================================
# Builders
# =============================================================================


def build_snapshot(
    match_id="m1",
    phase=MatchPhase.LIVE,
    minute=60,
    home=None,
    away=None,
    live_odds=None,
    pre_match_odds=None,
):
    return MatchSnapshot(
        match_id=match_id,
        home_team="Arsenal",
        away_team="Chelsea",
        phase=phase,
        minute=minute,
        league="Premier League",
        home=TeamStats(**(home or {})),
        away=TeamStats(**(away or {})),
        live_odds=MatchOdds(**live_odds) if live_odds is not None else None,
        pre_match_odds=MatchOdds(**pre_match_odds) if pre_match_odds is not None else None,
    )


def build_strategy(
    strategy_id="s1",
    target=TargetOutcome.OVER_2_5_GOALS,
    criteria=None,
    **fields,
):
    if criteria is None:
        criteria = [{"metric": "da_total", "operator": ">", "value": 30}]
    return Strategy(
        id=strategy_id,
        user_id=fields.pop("user_id", "u1"),
        name=fields.pop("name", f"Strategy {strategy_id}"),
        criteria=[Criterion(**c) for c in criteria],
        target_outcome=target,
        **fields,
    )


def build_ticket(
    strategy_id="s1",
    match_id="m1",
    target=TargetOutcome.OVER_2_5_GOALS,
    status=TicketStatus.PENDING,
    odds="2.00",
    initial=(0, 0),
):
    return BetTicket(
        id=ticket_id_for(strategy_id, match_id),
        strategy_id=strategy_id,
        strategy_name=f"Strategy {strategy_id}",
        match_id=match_id,
        home_team="Arsenal",
        away_team="Chelsea",
        target_outcome=target,
        trigger_time=datetime(2026, 1, 1, 15, 30, tzinfo=timezone.utc),
        trigger_minute=30,
        initial_score=ScoreLine(home=initial[0], away=initial[1]),
        odds_at_trigger=Decimal(odds),
        status=status,
    )


# =============================================================================
# In-memory stores
# =============================================================================


class FakeStrategyStore:
    """StrategyStore keeping rows in a dict; set fail=True to make writes raise."""

    def __init__(self, strategies=()):
        self.rows = {s.id: s for s in strategies}
        self.fail = False
        self.updates = []

    async def get_all(self):
        return list(self.rows.values())

    async def get_by_user(self, user_id):
        return [s for s in self.rows.values() if s.user_id == user_id]

    async def update_performance(self, strategy):
        if self.fail:
            raise ConnectionError("strategy store unavailable")
        self.updates.append(strategy)
        current = self.rows.get(strategy.id)
        if current is None:
            return False
        self.rows[strategy.id] = current.model_copy(
            update={field: getattr(strategy, field) for field in STRATEGY_PERFORMANCE_FIELDS}
        )
        return True


class FakeTicketStore:
    """TicketStore with the repository's idempotent create and terminal-safe update."""

    def __init__(self, tickets=()):
        self.rows = {t.id: t for t in tickets}
        self.fail = False
        self.creates = []
        self.updates = []

    async def get_pending(self):
        return [t for t in self.rows.values() if t.status == TicketStatus.PENDING]

    async def get_by_strategy(self, strategy_id):
        return [t for t in self.rows.values() if t.strategy_id == strategy_id]

    async def create(self, ticket):
        if self.fail:
            raise ConnectionError("ticket store unavailable")
        self.creates.append(ticket)
        return self.rows.setdefault(ticket.id, ticket)

    async def update(self, ticket):
        if self.fail:
            raise ConnectionError("ticket store unavailable")
        self.updates.append(ticket)
        current = self.rows.get(ticket.id)
        if current is None or current.status != TicketStatus.PENDING:
            return False
        self.rows[ticket.id] = ticket
        return True


class RecordingNotifier:
    """Synchronous notifier that records every call; set fail=True to make it raise."""

    def __init__(self):
        self.triggered = []
        self.settled = []
        self.fail = False

    def notify_triggered(self, strategy, ticket, snapshot):
        if self.fail:
            raise RuntimeError("telegram down")
        self.triggered.append((strategy, ticket, snapshot))

    def notify_settled(self, strategy, ticket):
        if self.fail:
            raise RuntimeError("telegram down")
        self.settled.append((strategy, ticket))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def make_snapshot():
    return build_snapshot


@pytest.fixture
def make_strategy():
    return build_strategy


@pytest.fixture
def make_ticket():
    return build_ticket


@pytest.fixture
def strategy_store():
    return FakeStrategyStore([build_strategy()])


@pytest.fixture
def ticket_store():
    return FakeTicketStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def hot_snapshot():
    """Live match at minute 60 that satisfies da_total > 30."""
    return build_snapshot(
        home={"goals": 0, "dangerous_attacks": 25, "corners": 3},
        away={"goals": 0, "dangerous_attacks": 15, "corners": 2},
        live_odds={"over25": 2.4},
    )


@pytest.fixture
def make_strategy_store():
    """Factory for in-memory strategy stores."""
    return FakeStrategyStore
