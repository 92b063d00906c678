"""
Target outcome catalogue.

Each strategy targets one betting outcome. Outcomes are grouped into
families that share settlement semantics (see core/settlement.py):

    GOALS_OVER / CORNERS_OVER   - win as soon as the live total crosses the line
    GOALS_UNDER / CORNERS_UNDER - lose as soon as the line is breached,
                                  win at a finished phase if still under
    BTTS                        - win once both sides have scored
    MATCH_RESULT                - decided only at a finished phase
    NEXT_GOAL                   - decided by the first goal after the trigger
    HT_*                        - decided only while the phase is HALF_TIME
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OutcomeFamily(str, Enum):
    """Settlement family of a target outcome."""

    GOALS_OVER = "goals_over"
    GOALS_UNDER = "goals_under"
    BTTS = "btts"
    MATCH_RESULT = "match_result"
    NEXT_GOAL = "next_goal"
    CORNERS_OVER = "corners_over"
    CORNERS_UNDER = "corners_under"
    HT_RESULT = "ht_result"
    HT_GOALS_OVER = "ht_goals_over"
    HT_GOALS_UNDER = "ht_goals_under"
    HT_CORNERS_OVER = "ht_corners_over"
    HT_CORNERS_UNDER = "ht_corners_under"

    @property
    def is_half_time(self) -> bool:
        return self in _HT_FAMILIES


_HT_FAMILIES = frozenset(
    [
        OutcomeFamily.HT_RESULT,
        OutcomeFamily.HT_GOALS_OVER,
        OutcomeFamily.HT_GOALS_UNDER,
        OutcomeFamily.HT_CORNERS_OVER,
        OutcomeFamily.HT_CORNERS_UNDER,
    ]
)


class TargetOutcome(str, Enum):
    """Betting outcomes a strategy can target."""

    HOME_WIN = "HOME_WIN"
    AWAY_WIN = "AWAY_WIN"
    DRAW = "DRAW"

    HT_HOME_WIN = "HT_HOME_WIN"
    HT_DRAW = "HT_DRAW"
    HT_AWAY_WIN = "HT_AWAY_WIN"
    HT_OVER_0_5 = "HT_OVER_0_5"
    HT_OVER_1_5 = "HT_OVER_1_5"
    HT_UNDER_0_5 = "HT_UNDER_0_5"
    HT_UNDER_1_5 = "HT_UNDER_1_5"

    OVER_0_5_GOALS = "OVER_0_5_GOALS"
    OVER_1_5_GOALS = "OVER_1_5_GOALS"
    OVER_2_5_GOALS = "OVER_2_5_GOALS"

    UNDER_1_5_GOALS = "UNDER_1_5_GOALS"
    UNDER_2_5_GOALS = "UNDER_2_5_GOALS"
    UNDER_3_5_GOALS = "UNDER_3_5_GOALS"

    BTTS_YES = "BTTS_YES"
    HOME_NEXT_GOAL = "HOME_NEXT_GOAL"
    AWAY_NEXT_GOAL = "AWAY_NEXT_GOAL"

    OVER_8_5_CORNERS = "OVER_8_5_CORNERS"
    OVER_9_5_CORNERS = "OVER_9_5_CORNERS"
    UNDER_10_5_CORNERS = "UNDER_10_5_CORNERS"

    HT_OVER_0_5_CORNERS = "HT_OVER_0_5_CORNERS"
    HT_OVER_1_5_CORNERS = "HT_OVER_1_5_CORNERS"
    HT_OVER_2_5_CORNERS = "HT_OVER_2_5_CORNERS"
    HT_OVER_3_5_CORNERS = "HT_OVER_3_5_CORNERS"
    HT_OVER_4_5_CORNERS = "HT_OVER_4_5_CORNERS"
    HT_UNDER_2_5_CORNERS = "HT_UNDER_2_5_CORNERS"
    HT_UNDER_3_5_CORNERS = "HT_UNDER_3_5_CORNERS"
    HT_UNDER_4_5_CORNERS = "HT_UNDER_4_5_CORNERS"

    @property
    def spec(self) -> "OutcomeSpec":
        return OUTCOMES[self]

    @property
    def family(self) -> OutcomeFamily:
        return OUTCOMES[self].family

    @property
    def label(self) -> str:
        return OUTCOMES[self].label


@dataclass(frozen=True)
class OutcomeSpec:
    """
    Settlement parameters of one outcome.

    Attributes:
        family: Settlement family
        label: Display label
        line: Goal/corner line for over/under families
        side: "home", "away" or "draw" for result and next-goal families
        odds_market: MatchOdds field used for odds-at-trigger, if any
    """

    family: OutcomeFamily
    label: str
    line: Optional[float] = None
    side: Optional[str] = None
    odds_market: Optional[str] = None


T = TargetOutcome
F = OutcomeFamily

OUTCOMES: dict[TargetOutcome, OutcomeSpec] = {
    T.HOME_WIN: OutcomeSpec(F.MATCH_RESULT, "Home Win (FT)", side="home", odds_market="home_win"),
    T.AWAY_WIN: OutcomeSpec(F.MATCH_RESULT, "Away Win (FT)", side="away", odds_market="away_win"),
    T.DRAW: OutcomeSpec(F.MATCH_RESULT, "Draw (FT)", side="draw", odds_market="draw"),
    T.HT_HOME_WIN: OutcomeSpec(F.HT_RESULT, "Home Win (HT)", side="home"),
    T.HT_DRAW: OutcomeSpec(F.HT_RESULT, "Draw (HT)", side="draw"),
    T.HT_AWAY_WIN: OutcomeSpec(F.HT_RESULT, "Away Win (HT)", side="away"),
    T.HT_OVER_0_5: OutcomeSpec(F.HT_GOALS_OVER, "Over 0.5 Goals (HT)", line=0.5),
    T.HT_OVER_1_5: OutcomeSpec(F.HT_GOALS_OVER, "Over 1.5 Goals (HT)", line=1.5),
    T.HT_UNDER_0_5: OutcomeSpec(F.HT_GOALS_UNDER, "Under 0.5 Goals (HT)", line=0.5),
    T.HT_UNDER_1_5: OutcomeSpec(F.HT_GOALS_UNDER, "Under 1.5 Goals (HT)", line=1.5),
    T.OVER_0_5_GOALS: OutcomeSpec(F.GOALS_OVER, "Over 0.5 Goals", line=0.5),
    T.OVER_1_5_GOALS: OutcomeSpec(F.GOALS_OVER, "Over 1.5 Goals", line=1.5),
    T.OVER_2_5_GOALS: OutcomeSpec(F.GOALS_OVER, "Over 2.5 Goals", line=2.5, odds_market="over25"),
    T.UNDER_1_5_GOALS: OutcomeSpec(F.GOALS_UNDER, "Under 1.5 Goals", line=1.5),
    T.UNDER_2_5_GOALS: OutcomeSpec(F.GOALS_UNDER, "Under 2.5 Goals", line=2.5, odds_market="under25"),
    T.UNDER_3_5_GOALS: OutcomeSpec(F.GOALS_UNDER, "Under 3.5 Goals", line=3.5),
    T.BTTS_YES: OutcomeSpec(F.BTTS, "Both Teams To Score", odds_market="btts_yes"),
    T.HOME_NEXT_GOAL: OutcomeSpec(F.NEXT_GOAL, "Next Goal: Home", side="home"),
    T.AWAY_NEXT_GOAL: OutcomeSpec(F.NEXT_GOAL, "Next Goal: Away", side="away"),
    T.OVER_8_5_CORNERS: OutcomeSpec(F.CORNERS_OVER, "Over 8.5 Corners", line=8.5),
    T.OVER_9_5_CORNERS: OutcomeSpec(F.CORNERS_OVER, "Over 9.5 Corners", line=9.5),
    T.UNDER_10_5_CORNERS: OutcomeSpec(F.CORNERS_UNDER, "Under 10.5 Corners", line=10.5),
    T.HT_OVER_0_5_CORNERS: OutcomeSpec(F.HT_CORNERS_OVER, "HT Corners Over 0.5", line=0.5),
    T.HT_OVER_1_5_CORNERS: OutcomeSpec(F.HT_CORNERS_OVER, "HT Corners Over 1.5", line=1.5),
    T.HT_OVER_2_5_CORNERS: OutcomeSpec(F.HT_CORNERS_OVER, "HT Corners Over 2.5", line=2.5),
    T.HT_OVER_3_5_CORNERS: OutcomeSpec(F.HT_CORNERS_OVER, "HT Corners Over 3.5", line=3.5),
    T.HT_OVER_4_5_CORNERS: OutcomeSpec(F.HT_CORNERS_OVER, "HT Corners Over 4.5", line=4.5),
    T.HT_UNDER_2_5_CORNERS: OutcomeSpec(F.HT_CORNERS_UNDER, "HT Corners Under 2.5", line=2.5),
    T.HT_UNDER_3_5_CORNERS: OutcomeSpec(F.HT_CORNERS_UNDER, "HT Corners Under 3.5", line=3.5),
    T.HT_UNDER_4_5_CORNERS: OutcomeSpec(F.HT_CORNERS_UNDER, "HT Corners Under 4.5", line=4.5),
}

if set(OUTCOMES) != set(TargetOutcome):
    raise RuntimeError("Outcome catalogue out of sync with TargetOutcome")
