"""
Data models for the ingestion layer.

These models represent one poll-cycle read of a football match:
- Match phase (scheduled, live, half-time, finished variants)
- Per-side live statistics
- Per-side pre-match (historical) aggregates
- Live and pre-match odds

Every statistic is independently nullable. A missing value is never
coerced to zero: the provider simply did not supply it, and downstream
evaluation treats it as "unknown".

Snapshots are immutable. Each tick produces a fresh batch that replaces
the previous one, keyed by match_id.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class MatchPhase(str, Enum):
    """Phase of a match as reported by the data provider."""

    SCHEDULED = "SCHEDULED"
    LIVE = "LIVE"
    HALF_TIME = "HALF_TIME"
    FULL_TIME = "FULL_TIME"
    EXTRA_TIME = "EXTRA_TIME"  # Finished after extra time (AET)
    PENALTIES = "PENALTIES"  # Finished on penalties
    POSTPONED = "POSTPONED"

    @property
    def is_finished(self) -> bool:
        return self in FINISHED_PHASES

    @classmethod
    def from_provider_code(
        cls, code: Optional[str], minute: Optional[int] = None
    ) -> "MatchPhase":
        """
        Map an API-Football short status code to a phase.

        Unknown codes fall back to LIVE when a minute is being reported,
        otherwise SCHEDULED.
        """
        phase = _PROVIDER_CODES.get((code or "").upper())
        if phase is not None:
            return phase
        return cls.LIVE if minute else cls.SCHEDULED


FINISHED_PHASES = frozenset(
    [MatchPhase.FULL_TIME, MatchPhase.EXTRA_TIME, MatchPhase.PENALTIES]
)

_PROVIDER_CODES = {
    "TBD": MatchPhase.SCHEDULED,
    "NS": MatchPhase.SCHEDULED,
    "SCHEDULED": MatchPhase.SCHEDULED,
    "1H": MatchPhase.LIVE,
    "2H": MatchPhase.LIVE,
    "ET": MatchPhase.LIVE,
    "BT": MatchPhase.LIVE,
    "P": MatchPhase.LIVE,
    "LIVE": MatchPhase.LIVE,
    "HT": MatchPhase.HALF_TIME,
    "FT": MatchPhase.FULL_TIME,
    "AET": MatchPhase.EXTRA_TIME,
    "PEN": MatchPhase.PENALTIES,
    "PST": MatchPhase.POSTPONED,
    "CANC": MatchPhase.POSTPONED,
    "ABD": MatchPhase.POSTPONED,
    "SUSP": MatchPhase.POSTPONED,
    "INT": MatchPhase.POSTPONED,
}


@dataclass(frozen=True)
class TeamStats:
    """Live statistics for one side of a match."""

    goals: Optional[int] = None
    goals_first_half: Optional[int] = None
    corners: Optional[int] = None
    corners_first_half: Optional[int] = None
    shots_on_target: Optional[int] = None
    shots_off_target: Optional[int] = None
    attacks: Optional[int] = None
    dangerous_attacks: Optional[int] = None
    possession: Optional[float] = None  # Percent, 0-100
    yellow_cards: Optional[int] = None
    red_cards: Optional[int] = None
    expected_goals: Optional[float] = None


@dataclass(frozen=True)
class PreMatchTeamStats:
    """Historical (pre-match) aggregates for one side."""

    avg_goals_scored: Optional[float] = None
    avg_goals_conceded: Optional[float] = None
    avg_corners: Optional[float] = None
    btts_percentage: Optional[float] = None
    over25_percentage: Optional[float] = None
    last5_form: Optional[str] = None

    ppg: Optional[float] = None
    league_position: Optional[int] = None
    clean_sheet_percentage: Optional[float] = None
    failed_to_score_percentage: Optional[float] = None

    avg_first_half_goals_for: Optional[float] = None
    avg_second_half_goals_for: Optional[float] = None
    avg_first_half_goals_against: Optional[float] = None
    avg_second_half_goals_against: Optional[float] = None

    avg_time_first_goal_scored: Optional[float] = None
    avg_time_first_goal_conceded: Optional[float] = None


@dataclass(frozen=True)
class MatchOdds:
    """
    Decimal odds keyed by market.

    Any market may be missing; a missing or non-positive price means
    the market is unavailable.
    """

    home_win: Optional[float] = None
    draw: Optional[float] = None
    away_win: Optional[float] = None
    over25: Optional[float] = None
    under25: Optional[float] = None
    btts_yes: Optional[float] = None


@dataclass(frozen=True)
class MatchSnapshot:
    """
    Immutable per-tick read of one match.

    Attributes:
        match_id: Provider fixture identifier (stable across ticks)
        phase: Current match phase
        minute: Elapsed minutes (None before kick-off if unknown)
        home / away: Live statistics per side
        pre_home / pre_away: Historical aggregates per side
        live_odds / pre_match_odds: Optional odds blocks
    """

    match_id: str
    home_team: str
    away_team: str
    phase: MatchPhase
    minute: Optional[int] = None
    league: str = ""
    country: str = ""
    start_time: Optional[datetime] = None
    home: TeamStats = field(default_factory=TeamStats)
    away: TeamStats = field(default_factory=TeamStats)
    pre_home: PreMatchTeamStats = field(default_factory=PreMatchTeamStats)
    pre_away: PreMatchTeamStats = field(default_factory=PreMatchTeamStats)
    live_odds: Optional[MatchOdds] = None
    pre_match_odds: Optional[MatchOdds] = None
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_finished(self) -> bool:
        """Whether the match has reached full time, extra time or penalties."""
        return self.phase.is_finished

    @property
    def is_half_time(self) -> bool:
        return self.phase == MatchPhase.HALF_TIME

    @property
    def score(self) -> tuple[Optional[int], Optional[int]]:
        return self.home.goals, self.away.goals

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly dict used for ticket stats snapshots."""
        data = asdict(self)
        data["phase"] = self.phase.value
        data["start_time"] = self.start_time.isoformat() if self.start_time else None
        data["fetched_at"] = self.fetched_at.isoformat()
        return data
