"""
Demo match feed.

Simulates a handful of matches that progress a few minutes per fetch, so
strategies trigger and tickets settle without an API key. Seeded, so a
given seed always produces the same sequence of snapshots.

Finished matches stay in the feed for one more fetch (so their tickets
settle) and are then replaced by a fresh kick-off.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .models import (
    MatchOdds,
    MatchPhase,
    MatchSnapshot,
    PreMatchTeamStats,
    TeamStats,
)

LEAGUES = {
    "Premier League": ["Arsenal", "Chelsea", "Liverpool", "Man City", "Man Utd", "Spurs", "Newcastle", "Aston Villa"],
    "La Liga": ["Real Madrid", "Barcelona", "Atletico", "Sevilla", "Valencia", "Villarreal", "Betis", "Sociedad"],
    "Serie A": ["Inter", "Milan", "Juventus", "Napoli", "Roma", "Lazio", "Atalanta", "Fiorentina"],
    "Bundesliga": ["Bayern", "Dortmund", "Leipzig", "Leverkusen", "Frankfurt", "Wolfsburg", "Freiburg", "Gladbach"],
}


@dataclass
class _Side:
    goals: int = 0
    goals_first_half: Optional[int] = None
    corners: int = 0
    corners_first_half: Optional[int] = None
    shots_on: int = 0
    shots_off: int = 0
    attacks: int = 0
    dangerous_attacks: int = 0
    yellow: int = 0
    red: int = 0
    xg: float = 0.0


@dataclass
class _SimMatch:
    match_id: str
    league: str
    home_team: str
    away_team: str
    start_time: datetime
    minute: int = 0
    phase: MatchPhase = MatchPhase.SCHEDULED
    home: _Side = field(default_factory=_Side)
    away: _Side = field(default_factory=_Side)
    pre_home: PreMatchTeamStats = field(default_factory=PreMatchTeamStats)
    pre_away: PreMatchTeamStats = field(default_factory=PreMatchTeamStats)
    pre_match_odds: Optional[MatchOdds] = None
    finished_fetches: int = 0


class DemoMatchFeed:
    """
    Seeded, in-memory match simulator implementing MatchFeed.

    Usage:
        feed = DemoMatchFeed(seed=42)
        snapshots = await feed.fetch_snapshots()
    """

    def __init__(
        self,
        match_count: int = 8,
        minutes_per_fetch: int = 3,
        seed: Optional[int] = None,
    ) -> None:
        if match_count < 1:
            raise ValueError("match_count must be at least 1")
        self._rng = random.Random(seed)
        self._minutes_per_fetch = minutes_per_fetch
        self._next_id = 0
        self._matches = [self._new_match(staggered=True) for _ in range(match_count)]

    # =========================================================================
    # Generation
    # =========================================================================

    def _pre_match_stats(self) -> PreMatchTeamStats:
        rng = self._rng
        scored = round(rng.uniform(0.5, 3.0), 2)
        conceded = round(rng.uniform(0.5, 2.5), 2)
        form = "".join(rng.choice("WDL") for _ in range(5))
        return PreMatchTeamStats(
            avg_goals_scored=scored,
            avg_goals_conceded=conceded,
            avg_corners=round(rng.uniform(3.0, 8.0), 1),
            btts_percentage=float(rng.randint(20, 80)),
            over25_percentage=float(rng.randint(20, 80)),
            last5_form=form,
            ppg=round(rng.uniform(0.5, 3.0), 2),
            league_position=rng.randint(1, 18),
            clean_sheet_percentage=float(rng.randint(10, 60)),
            failed_to_score_percentage=float(rng.randint(5, 45)),
            avg_first_half_goals_for=round(scored * 0.4, 2),
            avg_second_half_goals_for=round(scored * 0.6, 2),
            avg_first_half_goals_against=round(conceded * 0.45, 2),
            avg_second_half_goals_against=round(conceded * 0.55, 2),
            avg_time_first_goal_scored=float(rng.randint(10, 60)),
            avg_time_first_goal_conceded=float(rng.randint(10, 60)),
        )

    def _odds(self) -> MatchOdds:
        rng = self._rng
        return MatchOdds(
            home_win=round(rng.uniform(1.2, 4.2), 2),
            draw=round(rng.uniform(2.5, 4.5), 2),
            away_win=round(rng.uniform(1.5, 5.5), 2),
            over25=round(rng.uniform(1.4, 2.4), 2),
            under25=round(rng.uniform(1.6, 2.6), 2),
            btts_yes=round(rng.uniform(1.5, 2.5), 2),
        )

    def _new_match(self, staggered: bool = False) -> _SimMatch:
        league = self._rng.choice(list(LEAGUES))
        home, away = self._rng.sample(LEAGUES[league], 2)
        self._next_id += 1
        match = _SimMatch(
            match_id=f"demo-{self._next_id}",
            league=league,
            home_team=home,
            away_team=away,
            start_time=datetime.now(timezone.utc),
            pre_home=self._pre_match_stats(),
            pre_away=self._pre_match_stats(),
            pre_match_odds=self._odds(),
        )
        if staggered:
            for _ in range(self._rng.randint(0, 25)):
                self._advance(match)
        return match

    # =========================================================================
    # Simulation
    # =========================================================================

    def _play_minute(self, side: _Side, strength: float) -> None:
        rng = self._rng
        side.attacks += rng.randint(0, 2)
        if rng.random() < 0.35 * strength:
            side.dangerous_attacks += 1
        if rng.random() < 0.12 * strength:
            side.shots_off += 1
        if rng.random() < 0.09 * strength:
            side.shots_on += 1
            side.xg = round(side.xg + rng.uniform(0.05, 0.35), 2)
            if rng.random() < 0.3:
                side.goals += 1
        if rng.random() < 0.05 * strength:
            side.corners += 1
        if rng.random() < 0.02:
            side.yellow += 1
        if rng.random() < 0.002:
            side.red += 1

    def _advance(self, match: _SimMatch) -> None:
        if match.phase.is_finished:
            match.finished_fetches += 1
            return

        if match.phase == MatchPhase.HALF_TIME:
            match.phase = MatchPhase.LIVE
            match.minute = 46
            return

        if match.phase == MatchPhase.SCHEDULED:
            match.phase = MatchPhase.LIVE

        for _ in range(self._minutes_per_fetch):
            match.minute += 1
            self._play_minute(match.home, 1.1)
            self._play_minute(match.away, 0.9)

            if match.minute >= 45 and match.home.goals_first_half is None:
                for side in (match.home, match.away):
                    side.goals_first_half = side.goals
                    side.corners_first_half = side.corners
                match.minute = 45
                match.phase = MatchPhase.HALF_TIME
                return

            if match.minute >= 90:
                match.minute = 90
                match.phase = MatchPhase.FULL_TIME
                return

    def _live_odds(self, match: _SimMatch) -> Optional[MatchOdds]:
        if match.phase not in (MatchPhase.LIVE, MatchPhase.HALF_TIME):
            return None
        return self._odds()

    @staticmethod
    def _team_stats(side: _Side, possession: float) -> TeamStats:
        return TeamStats(
            goals=side.goals,
            goals_first_half=side.goals_first_half,
            corners=side.corners,
            corners_first_half=side.corners_first_half,
            shots_on_target=side.shots_on,
            shots_off_target=side.shots_off,
            attacks=side.attacks,
            dangerous_attacks=side.dangerous_attacks,
            possession=possession,
            yellow_cards=side.yellow,
            red_cards=side.red,
            expected_goals=side.xg,
        )

    def _snapshot(self, match: _SimMatch) -> MatchSnapshot:
        possession = float(self._rng.randint(35, 65))
        return MatchSnapshot(
            match_id=match.match_id,
            home_team=match.home_team,
            away_team=match.away_team,
            phase=match.phase,
            minute=match.minute,
            league=match.league,
            country="International",
            start_time=match.start_time,
            home=self._team_stats(match.home, possession),
            away=self._team_stats(match.away, 100.0 - possession),
            pre_home=match.pre_home,
            pre_away=match.pre_away,
            live_odds=self._live_odds(match),
            pre_match_odds=match.pre_match_odds,
        )

    async def fetch_snapshots(self) -> list[MatchSnapshot]:
        """Advance every simulated match and return the new snapshots."""
        self._matches = [
            self._new_match() if m.finished_fetches >= 1 else m for m in self._matches
        ]
        for match in self._matches:
            self._advance(match)
        return [self._snapshot(m) for m in self._matches]
