"""
Storage layer test fixtures.

Repository tests run against a mocked Database; records are plain dicts
shaped like asyncpg rows (JSONB columns arrive as text).
"""
import json
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest


@pytest.fixture
def mock_db():
    """Mock database for unit tests."""
    db = AsyncMock()
    db.execute = AsyncMock(return_value="UPDATE 1")
    db.fetch = AsyncMock(return_value=[])
    db.fetchrow = AsyncMock(return_value=None)
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def strategy_record():
    """A strategies row as asyncpg returns it."""
    return {
        "id": "s1",
        "user_id": "u1",
        "name": "Late Pressure",
        "active": True,
        "criteria": json.dumps([
            {"id": "c1", "metric": "da_total", "operator": ">", "value": 30},
            {"id": "c2", "metric": "time", "operator": ">=", "value": 60},
        ]),
        "target_outcome": "OVER_2_5_GOALS",
        "triggered_matches": json.dumps(["m1", "m2"]),
        "wins": 1,
        "total_settled": 2,
        "strike_rate": 50.0,
        "avg_odds": Decimal("2.10"),
        "roi": Decimal("5.00"),
        "is_public": False,
        "price": None,
        "description": None,
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 1, 2, tzinfo=timezone.utc),
    }


@pytest.fixture
def ticket_record():
    """A bet_tickets row as asyncpg returns it."""
    return {
        "id": "t1",
        "strategy_id": "s1",
        "strategy_name": "Late Pressure",
        "match_id": "m1",
        "home_team": "Arsenal",
        "away_team": "Chelsea",
        "league": "Premier League",
        "target_outcome": "OVER_2_5_GOALS",
        "trigger_time": datetime(2026, 1, 1, 15, 30, tzinfo=timezone.utc),
        "trigger_minute": 62,
        "initial_score": json.dumps({"home": 1, "away": 0}),
        "odds_at_trigger": Decimal("2.40"),
        "odds_source": "live",
        "status": "PENDING",
        "result_time": None,
        "ht_score": None,
        "ft_score": None,
        "stats_snapshot": json.dumps({"match_id": "m1", "minute": 62}),
        "pre_match_odds": None,
    }
