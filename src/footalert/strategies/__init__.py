"""
Strategies Layer - Declarative match criteria.

This module provides:
    - Metric catalogue: every metric id, its label, category and resolver
    - Criteria evaluation: fail-closed (metric, operator, threshold) tests
    - Target outcomes: bet types grouped into settlement families
    - StrategyMatcher: AND of a strategy's criteria with half-time gating

Design Principle:
    Strategies are PURE LOGIC - no database access, no API calls.
    They receive a MatchSnapshot and return a boolean.
    A missing value never satisfies a criterion.
"""

from .criteria import EQUALITY_TOLERANCE, Operator, evaluate, parse_operator
from .matcher import CriterionCheck, MatchEvaluation, StrategyMatcher
from .metrics import (
    HT_SCOPED_METRICS,
    METRICS,
    Metric,
    MetricCategory,
    MetricDefinition,
    get_definition,
    is_ht_scoped,
    odds_price,
    parse_metric,
    resolve_metric,
)
from .outcomes import OUTCOMES, OutcomeFamily, OutcomeSpec, TargetOutcome

__all__ = [
    # Metrics
    "Metric",
    "MetricCategory",
    "MetricDefinition",
    "METRICS",
    "HT_SCOPED_METRICS",
    "get_definition",
    "is_ht_scoped",
    "odds_price",
    "parse_metric",
    "resolve_metric",
    # Criteria
    "Operator",
    "EQUALITY_TOLERANCE",
    "evaluate",
    "parse_operator",
    # Outcomes
    "TargetOutcome",
    "OutcomeFamily",
    "OutcomeSpec",
    "OUTCOMES",
    # Matcher
    "StrategyMatcher",
    "MatchEvaluation",
    "CriterionCheck",
]
