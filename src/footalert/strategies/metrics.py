"""
Metric catalogue and resolver.

Every metric a criterion can reference is declared here with a label,
a category, and a resolver function. Resolution is a plain lookup:

    resolve_metric(Metric.DA_TOTAL, snapshot) -> 40.0 | None

Rules:
    - Direct reads return None when the provider did not supply the field.
    - Derived values (totals, differences, ANY/max) are None if ANY operand
      is None. Nulls never become zero.
    - Odds that are missing or non-positive resolve to None.

The resolver is phase-agnostic. Half-time scoped metrics are flagged
(ht_scoped=True) and gated by the matcher, not here.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from footalert.ingestion.models import MatchOdds, MatchSnapshot


Resolver = Callable[[MatchSnapshot], Optional[float]]


class MetricCategory(str, Enum):
    """Formula family of a metric."""

    LIVE = "live"  # Direct live stat
    LIVE_DERIVED = "live_derived"  # Total / difference of live stats
    PRE_MATCH = "pre_match"  # Historical aggregate (per side or ANY)
    ODDS = "odds"  # Live or pre-match odds


class Metric(str, Enum):
    """Identifiers of every metric a criterion can reference."""

    # Live
    TIME = "time"

    GOALS_HOME = "goals_home"
    GOALS_AWAY = "goals_away"
    GOALS_TOTAL = "goals_total"
    GOAL_DIFF = "goal_diff"

    ODDS_HOME_WIN = "odds_home_win"
    ODDS_AWAY_WIN = "odds_away_win"
    ODDS_DRAW = "odds_draw"
    ODDS_OVER_25 = "odds_over_25"

    XG_HOME = "xg_home"
    XG_AWAY = "xg_away"
    XG_TOTAL = "xg_total"

    CORNERS_HOME = "corners_home"
    CORNERS_AWAY = "corners_away"
    CORNERS_TOTAL = "corners_total"

    SHOTS_ON_HOME = "shots_on_home"
    SHOTS_ON_AWAY = "shots_on_away"
    SHOTS_ON_TOTAL = "shots_on_total"
    SHOTS_OFF_HOME = "shots_off_home"
    SHOTS_OFF_AWAY = "shots_off_away"
    SHOTS_OFF_TOTAL = "shots_off_total"

    ATTACKS_HOME = "attacks_home"
    ATTACKS_AWAY = "attacks_away"
    ATTACKS_TOTAL = "attacks_total"
    DA_HOME = "da_home"
    DA_AWAY = "da_away"
    DA_TOTAL = "da_total"
    POSSESSION_HOME = "possession_home"
    POSSESSION_AWAY = "possession_away"

    YELLOW_HOME = "yellow_home"
    YELLOW_AWAY = "yellow_away"
    YELLOW_TOTAL = "yellow_total"
    RED_HOME = "red_home"
    RED_AWAY = "red_away"
    RED_TOTAL = "red_total"

    # Half-time scoped
    HT_GOALS_HOME = "ht_goals_home"
    HT_GOALS_AWAY = "ht_goals_away"
    HT_GOALS_TOTAL = "ht_goals_total"
    HT_CORNERS_HOME = "ht_corners_home"
    HT_CORNERS_AWAY = "ht_corners_away"
    HT_CORNERS_TOTAL = "ht_corners_total"

    # Pre-match odds
    PRE_ODDS_HOME_WIN = "pre_odds_home_win"
    PRE_ODDS_AWAY_WIN = "pre_odds_away_win"
    PRE_ODDS_OVER_25 = "pre_odds_over_25"

    # Pre-match aggregates
    PRE_AVG_GOALS_SCORED_HOME = "pre_avg_goals_scored_home"
    PRE_AVG_GOALS_SCORED_AWAY = "pre_avg_goals_scored_away"
    PRE_AVG_GOALS_SCORED_ANY = "pre_avg_goals_scored_any"

    PRE_AVG_GOALS_CONCEDED_HOME = "pre_avg_goals_conceded_home"
    PRE_AVG_GOALS_CONCEDED_AWAY = "pre_avg_goals_conceded_away"
    PRE_AVG_GOALS_CONCEDED_ANY = "pre_avg_goals_conceded_any"

    PRE_PPG_HOME = "pre_ppg_home"
    PRE_PPG_AWAY = "pre_ppg_away"
    PRE_LEAGUE_POS_HOME = "pre_league_pos_home"
    PRE_LEAGUE_POS_AWAY = "pre_league_pos_away"
    PRE_CLEAN_SHEET_HOME = "pre_clean_sheet_home"
    PRE_CLEAN_SHEET_AWAY = "pre_clean_sheet_away"
    PRE_FAILED_SCORE_HOME = "pre_failed_score_home"
    PRE_FAILED_SCORE_AWAY = "pre_failed_score_away"

    PRE_BTTS_HOME = "pre_btts_home"
    PRE_BTTS_AWAY = "pre_btts_away"
    PRE_BTTS_ANY = "pre_btts_any"

    PRE_OVER25_HOME = "pre_over25_home"
    PRE_OVER25_AWAY = "pre_over25_away"
    PRE_OVER25_ANY = "pre_over25_any"

    PRE_AVG_1ST_HALF_GOALS_FOR_HOME = "pre_avg_1h_goals_for_home"
    PRE_AVG_1ST_HALF_GOALS_FOR_AWAY = "pre_avg_1h_goals_for_away"
    PRE_AVG_1ST_HALF_GOALS_FOR_ANY = "pre_avg_1h_goals_for_any"

    PRE_AVG_2ND_HALF_GOALS_FOR_HOME = "pre_avg_2h_goals_for_home"
    PRE_AVG_2ND_HALF_GOALS_FOR_AWAY = "pre_avg_2h_goals_for_away"
    PRE_AVG_2ND_HALF_GOALS_FOR_ANY = "pre_avg_2h_goals_for_any"

    PRE_AVG_1ST_HALF_GOALS_AGAINST_HOME = "pre_avg_1h_goals_against_home"
    PRE_AVG_1ST_HALF_GOALS_AGAINST_AWAY = "pre_avg_1h_goals_against_away"
    PRE_AVG_1ST_HALF_GOALS_AGAINST_ANY = "pre_avg_1h_goals_against_any"

    PRE_AVG_2ND_HALF_GOALS_AGAINST_HOME = "pre_avg_2h_goals_against_home"
    PRE_AVG_2ND_HALF_GOALS_AGAINST_AWAY = "pre_avg_2h_goals_against_away"
    PRE_AVG_2ND_HALF_GOALS_AGAINST_ANY = "pre_avg_2h_goals_against_any"

    PRE_AVG_TIME_1ST_GOAL_HOME = "pre_avg_time_1st_goal_home"
    PRE_AVG_TIME_1ST_GOAL_AWAY = "pre_avg_time_1st_goal_away"

    PRE_AVG_CORNERS_HOME = "pre_avg_corners_home"
    PRE_AVG_CORNERS_AWAY = "pre_avg_corners_away"
    PRE_AVG_CORNERS_ANY = "pre_avg_corners_any"


@dataclass(frozen=True)
class MetricDefinition:
    """Label, category and resolver for one metric."""

    metric: Metric
    label: str
    category: MetricCategory
    resolver: Resolver
    ht_scoped: bool = False


# =============================================================================
# RESOLVER BUILDERS
# =============================================================================


def _num(value) -> Optional[float]:
    return None if value is None else float(value)


def _read(block: str, attr: str) -> Resolver:
    def resolve(snapshot: MatchSnapshot) -> Optional[float]:
        return _num(getattr(getattr(snapshot, block), attr))
    return resolve


def _live_total(attr: str) -> Resolver:
    def resolve(snapshot: MatchSnapshot) -> Optional[float]:
        home = getattr(snapshot.home, attr)
        away = getattr(snapshot.away, attr)
        if home is None or away is None:
            return None
        return float(home + away)
    return resolve


def _live_diff(attr: str) -> Resolver:
    def resolve(snapshot: MatchSnapshot) -> Optional[float]:
        home = getattr(snapshot.home, attr)
        away = getattr(snapshot.away, attr)
        if home is None or away is None:
            return None
        return float(home - away)
    return resolve


def _pre_any(attr: str) -> Resolver:
    def resolve(snapshot: MatchSnapshot) -> Optional[float]:
        home = getattr(snapshot.pre_home, attr)
        away = getattr(snapshot.pre_away, attr)
        if home is None or away is None:
            return None
        return float(max(home, away))
    return resolve


def odds_price(odds: Optional[MatchOdds], market: str) -> Optional[float]:
    """Read one market from an odds block; None if unavailable."""
    if odds is None:
        return None
    price = getattr(odds, market, None)
    if price is None or price <= 0:
        return None
    return float(price)


def _odds(block: str, market: str) -> Resolver:
    def resolve(snapshot: MatchSnapshot) -> Optional[float]:
        return odds_price(getattr(snapshot, block), market)
    return resolve


def _minute(snapshot: MatchSnapshot) -> Optional[float]:
    return _num(snapshot.minute)


# =============================================================================
# CATALOGUE
# =============================================================================

M = Metric
LIVE = MetricCategory.LIVE
DERIVED = MetricCategory.LIVE_DERIVED
PRE = MetricCategory.PRE_MATCH
ODDS = MetricCategory.ODDS

_DEFINITIONS = [
    MetricDefinition(M.TIME, "Time (Minute)", LIVE, _minute),
    MetricDefinition(M.GOALS_HOME, "Live Home Goals", LIVE, _read("home", "goals")),
    MetricDefinition(M.GOALS_AWAY, "Live Away Goals", LIVE, _read("away", "goals")),
    MetricDefinition(M.GOALS_TOTAL, "Live Total Goals", DERIVED, _live_total("goals")),
    MetricDefinition(M.GOAL_DIFF, "Live Goal Difference", DERIVED, _live_diff("goals")),
    MetricDefinition(M.ODDS_HOME_WIN, "Live Odds: Home Win", ODDS, _odds("live_odds", "home_win")),
    MetricDefinition(M.ODDS_AWAY_WIN, "Live Odds: Away Win", ODDS, _odds("live_odds", "away_win")),
    MetricDefinition(M.ODDS_DRAW, "Live Odds: Draw", ODDS, _odds("live_odds", "draw")),
    MetricDefinition(M.ODDS_OVER_25, "Live Odds: Over 2.5", ODDS, _odds("live_odds", "over25")),
    MetricDefinition(M.XG_HOME, "Live Home xG", LIVE, _read("home", "expected_goals")),
    MetricDefinition(M.XG_AWAY, "Live Away xG", LIVE, _read("away", "expected_goals")),
    MetricDefinition(M.XG_TOTAL, "Live Total xG", DERIVED, _live_total("expected_goals")),
    MetricDefinition(M.CORNERS_HOME, "Live Home Corners", LIVE, _read("home", "corners")),
    MetricDefinition(M.CORNERS_AWAY, "Live Away Corners", LIVE, _read("away", "corners")),
    MetricDefinition(M.CORNERS_TOTAL, "Live Total Corners", DERIVED, _live_total("corners")),
    MetricDefinition(M.SHOTS_ON_HOME, "Live Home Shots On Target", LIVE, _read("home", "shots_on_target")),
    MetricDefinition(M.SHOTS_ON_AWAY, "Live Away Shots On Target", LIVE, _read("away", "shots_on_target")),
    MetricDefinition(M.SHOTS_ON_TOTAL, "Live Total Shots On Target", DERIVED, _live_total("shots_on_target")),
    MetricDefinition(M.SHOTS_OFF_HOME, "Live Home Shots Off Target", LIVE, _read("home", "shots_off_target")),
    MetricDefinition(M.SHOTS_OFF_AWAY, "Live Away Shots Off Target", LIVE, _read("away", "shots_off_target")),
    MetricDefinition(M.SHOTS_OFF_TOTAL, "Live Total Shots Off Target", DERIVED, _live_total("shots_off_target")),
    MetricDefinition(M.ATTACKS_HOME, "Live Home Attacks", LIVE, _read("home", "attacks")),
    MetricDefinition(M.ATTACKS_AWAY, "Live Away Attacks", LIVE, _read("away", "attacks")),
    MetricDefinition(M.ATTACKS_TOTAL, "Live Total Attacks", DERIVED, _live_total("attacks")),
    MetricDefinition(M.DA_HOME, "Live Home Dangerous Attacks", LIVE, _read("home", "dangerous_attacks")),
    MetricDefinition(M.DA_AWAY, "Live Away Dangerous Attacks", LIVE, _read("away", "dangerous_attacks")),
    MetricDefinition(M.DA_TOTAL, "Live Total Dangerous Attacks", DERIVED, _live_total("dangerous_attacks")),
    MetricDefinition(M.POSSESSION_HOME, "Live Home Possession %", LIVE, _read("home", "possession")),
    MetricDefinition(M.POSSESSION_AWAY, "Live Away Possession %", LIVE, _read("away", "possession")),
    MetricDefinition(M.YELLOW_HOME, "Live Home Yellow Cards", LIVE, _read("home", "yellow_cards")),
    MetricDefinition(M.YELLOW_AWAY, "Live Away Yellow Cards", LIVE, _read("away", "yellow_cards")),
    MetricDefinition(M.YELLOW_TOTAL, "Live Total Yellow Cards", DERIVED, _live_total("yellow_cards")),
    MetricDefinition(M.RED_HOME, "Live Home Red Cards", LIVE, _read("home", "red_cards")),
    MetricDefinition(M.RED_AWAY, "Live Away Red Cards", LIVE, _read("away", "red_cards")),
    MetricDefinition(M.RED_TOTAL, "Live Total Red Cards", DERIVED, _live_total("red_cards")),
    # Half-time scoped
    MetricDefinition(M.HT_GOALS_HOME, "Home Goals (HT)", LIVE, _read("home", "goals_first_half"), ht_scoped=True),
    MetricDefinition(M.HT_GOALS_AWAY, "Away Goals (HT)", LIVE, _read("away", "goals_first_half"), ht_scoped=True),
    MetricDefinition(M.HT_GOALS_TOTAL, "Total Goals (HT)", DERIVED, _live_total("goals_first_half"), ht_scoped=True),
    MetricDefinition(M.HT_CORNERS_HOME, "Home Corners (HT)", LIVE, _read("home", "corners_first_half"), ht_scoped=True),
    MetricDefinition(M.HT_CORNERS_AWAY, "Away Corners (HT)", LIVE, _read("away", "corners_first_half"), ht_scoped=True),
    MetricDefinition(M.HT_CORNERS_TOTAL, "Total Corners (HT)", DERIVED, _live_total("corners_first_half"), ht_scoped=True),
    # Pre-match odds
    MetricDefinition(M.PRE_ODDS_HOME_WIN, "Pre-Odds: Home Win", ODDS, _odds("pre_match_odds", "home_win")),
    MetricDefinition(M.PRE_ODDS_AWAY_WIN, "Pre-Odds: Away Win", ODDS, _odds("pre_match_odds", "away_win")),
    MetricDefinition(M.PRE_ODDS_OVER_25, "Pre-Odds: Over 2.5", ODDS, _odds("pre_match_odds", "over25")),
    # Pre-match aggregates
    MetricDefinition(M.PRE_AVG_GOALS_SCORED_HOME, "Pre: Avg Goals Scored (Home)", PRE, _read("pre_home", "avg_goals_scored")),
    MetricDefinition(M.PRE_AVG_GOALS_SCORED_AWAY, "Pre: Avg Goals Scored (Away)", PRE, _read("pre_away", "avg_goals_scored")),
    MetricDefinition(M.PRE_AVG_GOALS_SCORED_ANY, "Pre: Avg Goals Scored (ANY)", PRE, _pre_any("avg_goals_scored")),
    MetricDefinition(M.PRE_AVG_GOALS_CONCEDED_HOME, "Pre: Avg Goals Conceded (Home)", PRE, _read("pre_home", "avg_goals_conceded")),
    MetricDefinition(M.PRE_AVG_GOALS_CONCEDED_AWAY, "Pre: Avg Goals Conceded (Away)", PRE, _read("pre_away", "avg_goals_conceded")),
    MetricDefinition(M.PRE_AVG_GOALS_CONCEDED_ANY, "Pre: Avg Goals Conceded (ANY)", PRE, _pre_any("avg_goals_conceded")),
    MetricDefinition(M.PRE_PPG_HOME, "Pre: PPG (Home)", PRE, _read("pre_home", "ppg")),
    MetricDefinition(M.PRE_PPG_AWAY, "Pre: PPG (Away)", PRE, _read("pre_away", "ppg")),
    MetricDefinition(M.PRE_LEAGUE_POS_HOME, "Pre: League Position (Home)", PRE, _read("pre_home", "league_position")),
    MetricDefinition(M.PRE_LEAGUE_POS_AWAY, "Pre: League Position (Away)", PRE, _read("pre_away", "league_position")),
    MetricDefinition(M.PRE_CLEAN_SHEET_HOME, "Pre: Clean Sheet % (Home)", PRE, _read("pre_home", "clean_sheet_percentage")),
    MetricDefinition(M.PRE_CLEAN_SHEET_AWAY, "Pre: Clean Sheet % (Away)", PRE, _read("pre_away", "clean_sheet_percentage")),
    MetricDefinition(M.PRE_FAILED_SCORE_HOME, "Pre: Failed to Score % (Home)", PRE, _read("pre_home", "failed_to_score_percentage")),
    MetricDefinition(M.PRE_FAILED_SCORE_AWAY, "Pre: Failed to Score % (Away)", PRE, _read("pre_away", "failed_to_score_percentage")),
    MetricDefinition(M.PRE_BTTS_HOME, "Pre: BTTS % (Home)", PRE, _read("pre_home", "btts_percentage")),
    MetricDefinition(M.PRE_BTTS_AWAY, "Pre: BTTS % (Away)", PRE, _read("pre_away", "btts_percentage")),
    MetricDefinition(M.PRE_BTTS_ANY, "Pre: BTTS % (ANY)", PRE, _pre_any("btts_percentage")),
    MetricDefinition(M.PRE_OVER25_HOME, "Pre: Over 2.5 % (Home)", PRE, _read("pre_home", "over25_percentage")),
    MetricDefinition(M.PRE_OVER25_AWAY, "Pre: Over 2.5 % (Away)", PRE, _read("pre_away", "over25_percentage")),
    MetricDefinition(M.PRE_OVER25_ANY, "Pre: Over 2.5 % (ANY)", PRE, _pre_any("over25_percentage")),
    MetricDefinition(M.PRE_AVG_1ST_HALF_GOALS_FOR_HOME, "Pre: Avg 1H Goals For (Home)", PRE, _read("pre_home", "avg_first_half_goals_for")),
    MetricDefinition(M.PRE_AVG_1ST_HALF_GOALS_FOR_AWAY, "Pre: Avg 1H Goals For (Away)", PRE, _read("pre_away", "avg_first_half_goals_for")),
    MetricDefinition(M.PRE_AVG_1ST_HALF_GOALS_FOR_ANY, "Pre: Avg 1H Goals For (ANY)", PRE, _pre_any("avg_first_half_goals_for")),
    MetricDefinition(M.PRE_AVG_2ND_HALF_GOALS_FOR_HOME, "Pre: Avg 2H Goals For (Home)", PRE, _read("pre_home", "avg_second_half_goals_for")),
    MetricDefinition(M.PRE_AVG_2ND_HALF_GOALS_FOR_AWAY, "Pre: Avg 2H Goals For (Away)", PRE, _read("pre_away", "avg_second_half_goals_for")),
    MetricDefinition(M.PRE_AVG_2ND_HALF_GOALS_FOR_ANY, "Pre: Avg 2H Goals For (ANY)", PRE, _pre_any("avg_second_half_goals_for")),
    MetricDefinition(M.PRE_AVG_1ST_HALF_GOALS_AGAINST_HOME, "Pre: Avg 1H Goals Agst (Home)", PRE, _read("pre_home", "avg_first_half_goals_against")),
    MetricDefinition(M.PRE_AVG_1ST_HALF_GOALS_AGAINST_AWAY, "Pre: Avg 1H Goals Agst (Away)", PRE, _read("pre_away", "avg_first_half_goals_against")),
    MetricDefinition(M.PRE_AVG_1ST_HALF_GOALS_AGAINST_ANY, "Pre: Avg 1H Goals Agst (ANY)", PRE, _pre_any("avg_first_half_goals_against")),
    MetricDefinition(M.PRE_AVG_2ND_HALF_GOALS_AGAINST_HOME, "Pre: Avg 2H Goals Agst (Home)", PRE, _read("pre_home", "avg_second_half_goals_against")),
    MetricDefinition(M.PRE_AVG_2ND_HALF_GOALS_AGAINST_AWAY, "Pre: Avg 2H Goals Agst (Away)", PRE, _read("pre_away", "avg_second_half_goals_against")),
    MetricDefinition(M.PRE_AVG_2ND_HALF_GOALS_AGAINST_ANY, "Pre: Avg 2H Goals Agst (ANY)", PRE, _pre_any("avg_second_half_goals_against")),
    MetricDefinition(M.PRE_AVG_TIME_1ST_GOAL_HOME, "Pre: Avg Min 1st Goal (Home)", PRE, _read("pre_home", "avg_time_first_goal_scored")),
    MetricDefinition(M.PRE_AVG_TIME_1ST_GOAL_AWAY, "Pre: Avg Min 1st Goal (Away)", PRE, _read("pre_away", "avg_time_first_goal_scored")),
    MetricDefinition(M.PRE_AVG_CORNERS_HOME, "Pre: Avg Corners (Home)", PRE, _read("pre_home", "avg_corners")),
    MetricDefinition(M.PRE_AVG_CORNERS_AWAY, "Pre: Avg Corners (Away)", PRE, _read("pre_away", "avg_corners")),
    MetricDefinition(M.PRE_AVG_CORNERS_ANY, "Pre: Avg Corners (ANY)", PRE, _pre_any("avg_corners")),
]

METRICS: dict[Metric, MetricDefinition] = {d.metric: d for d in _DEFINITIONS}

# Every Metric member must have exactly one definition
_missing = set(Metric) - set(METRICS)
if _missing or len(METRICS) != len(_DEFINITIONS):
    raise RuntimeError(
        f"Metric catalogue out of sync: missing={sorted(m.value for m in _missing)}"
    )

HT_SCOPED_METRICS = frozenset(d.metric for d in _DEFINITIONS if d.ht_scoped)


# =============================================================================
# PUBLIC API
# =============================================================================


def parse_metric(metric_id: Union[str, Metric]) -> Optional[Metric]:
    """
    Parse a stored metric identifier.

    Returns None for unknown identifiers instead of raising; a corrupted
    strategy definition must not break the tick.
    """
    if isinstance(metric_id, Metric):
        return metric_id
    try:
        return Metric(metric_id)
    except ValueError:
        return None


def get_definition(metric: Metric) -> MetricDefinition:
    return METRICS[metric]


def is_ht_scoped(metric: Metric) -> bool:
    return metric in HT_SCOPED_METRICS


def resolve_metric(
    metric_id: Union[str, Metric], snapshot: MatchSnapshot
) -> Optional[float]:
    """
    Resolve a metric against a snapshot.

    Args:
        metric_id: Metric enum or its stored string id
        snapshot: Current match snapshot

    Returns:
        The numeric value, or None if unknown metric or missing data
    """
    metric = parse_metric(metric_id)
    if metric is None:
        return None
    return METRICS[metric].resolver(snapshot)
