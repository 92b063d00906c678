"""
Strategies layer test fixtures.

Strategies are pure logic, so fixtures are plain snapshots and
strategies built in memory.
"""
import pytest

from footalert.ingestion.models import (
    MatchOdds,
    MatchPhase,
    MatchSnapshot,
    PreMatchTeamStats,
    TeamStats,
)
from footalert.storage.models import Criterion, Strategy
from footalert.strategies import TargetOutcome


def build_snapshot(
    match_id="m1",
    phase=MatchPhase.LIVE,
    minute=60,
    home=None,
    away=None,
    pre_home=None,
    pre_away=None,
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
        pre_home=PreMatchTeamStats(**(pre_home or {})),
        pre_away=PreMatchTeamStats(**(pre_away or {})),
        live_odds=MatchOdds(**live_odds) if live_odds is not None else None,
        pre_match_odds=MatchOdds(**pre_match_odds) if pre_match_odds is not None else None,
    )


def build_strategy(criteria, target=TargetOutcome.OVER_2_5_GOALS, strategy_id="s1"):
    return Strategy(
        id=strategy_id,
        user_id="u1",
        name="Test Strategy",
        criteria=[Criterion(**c) for c in criteria],
        target_outcome=target,
    )


@pytest.fixture
def make_snapshot():
    """Factory for snapshots; stat blocks are given as dicts."""
    return build_snapshot


@pytest.fixture
def make_strategy():
    """Factory for strategies; criteria are given as dicts."""
    return build_strategy


@pytest.fixture
def busy_snapshot():
    """A live match at minute 60 with every live stat populated."""
    return build_snapshot(
        home={
            "goals": 1, "corners": 4, "shots_on_target": 5, "shots_off_target": 3,
            "attacks": 50, "dangerous_attacks": 25, "possession": 58.0,
            "yellow_cards": 1, "red_cards": 0, "expected_goals": 1.4,
        },
        away={
            "goals": 0, "corners": 2, "shots_on_target": 2, "shots_off_target": 4,
            "attacks": 35, "dangerous_attacks": 15, "possession": 42.0,
            "yellow_cards": 2, "red_cards": 1, "expected_goals": 0.6,
        },
        live_odds={"home_win": 1.6, "draw": 3.8, "away_win": 6.0, "over25": 2.1},
    )
