"""
Monitoring layer test fixtures.
"""
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from footalert.ingestion.models import MatchPhase, MatchSnapshot
from footalert.monitoring.alerting import AlertManager
from footalert.storage.models import (
    BetTicket,
    Criterion,
    ScoreLine,
    Strategy,
    TicketStatus,
)
from footalert.strategies import TargetOutcome


@pytest.fixture
def mock_telegram_api():
    """Mock Telegram Bot API."""
    api = MagicMock()
    api.send_message = MagicMock(return_value={"ok": True})
    return api


@pytest.fixture
def alert_manager(mock_telegram_api):
    """AlertManager with mocked Telegram."""
    return AlertManager(
        telegram_bot_token="test_token",
        telegram_chat_id="test_chat",
        _telegram_api=mock_telegram_api,
    )


@pytest.fixture
def strategy():
    return Strategy(
        id="s1",
        user_id="u1",
        name="Late Pressure",
        criteria=[Criterion(metric="da_total", operator=">", value=30)],
        target_outcome=TargetOutcome.OVER_2_5_GOALS,
        wins=3,
        total_settled=4,
        strike_rate=75.0,
        avg_odds=Decimal("2.10"),
        roi=Decimal("57.50"),
    )


@pytest.fixture
def ticket():
    return BetTicket(
        id="t-1",
        strategy_id="s1",
        strategy_name="Late Pressure",
        match_id="m1",
        home_team="Arsenal",
        away_team="Chelsea",
        target_outcome=TargetOutcome.OVER_2_5_GOALS,
        trigger_time=datetime(2026, 1, 1, 15, 30, tzinfo=timezone.utc),
        trigger_minute=62,
        initial_score=ScoreLine(home=1, away=0),
        odds_at_trigger=Decimal("2.40"),
    )


@pytest.fixture
def won_ticket(ticket):
    return ticket.model_copy(
        update={"status": TicketStatus.WON, "ht_score": "1-0", "ft_score": "2-1"}
    )


@pytest.fixture
def snapshot():
    return MatchSnapshot(
        match_id="m1",
        home_team="Arsenal",
        away_team="Chelsea",
        phase=MatchPhase.LIVE,
        minute=62,
        league="Premier League",
    )
