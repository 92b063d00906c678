"""
Ingestion Layer - Match data sources.

This module provides per-tick match snapshots:
    - MatchSnapshot and its blocks (TeamStats, PreMatchTeamStats, MatchOdds)
    - ApiFootballClient: live fixtures, statistics and season aggregates
    - DemoMatchFeed: seeded match simulator for demo mode

Every statistic is independently nullable; a value the provider did not
supply stays None all the way to evaluation.

Usage:
    from footalert.ingestion import ApiFootballClient, DemoMatchFeed

    async with ApiFootballClient(api_key) as client:
        snapshots = await client.fetch_snapshots()

    snapshots = await DemoMatchFeed(seed=7).fetch_snapshots()
"""

# Models
from .models import (
    FINISHED_PHASES,
    MatchOdds,
    MatchPhase,
    MatchSnapshot,
    PreMatchTeamStats,
    TeamStats,
)

# REST Client
from .client import (
    ApiFootballClient,
    FootballAPIError,
    RateLimitError,
    parse_fixture,
    parse_stat_value,
    parse_team_statistics,
    parse_team_stats,
)

# Demo feed
from .demo import DemoMatchFeed

__all__ = [
    # Models
    "MatchPhase",
    "FINISHED_PHASES",
    "MatchSnapshot",
    "TeamStats",
    "PreMatchTeamStats",
    "MatchOdds",
    # Client
    "ApiFootballClient",
    "FootballAPIError",
    "RateLimitError",
    "parse_fixture",
    "parse_stat_value",
    "parse_team_stats",
    "parse_team_statistics",
    # Demo
    "DemoMatchFeed",
]
