"""
Strategy matcher.

A strategy matches a snapshot when EVERY criterion holds (conjunction).
Each criterion is resolved with the metric catalogue and compared with
the fail-closed evaluator, so one unknown value fails the whole AND.

Half-time gating:
    Criteria on half-time scoped metrics are satisfied only while the
    snapshot phase is HALF_TIME. Outside the interval they evaluate False.
    They are never treated specially otherwise: the AND with the other
    criteria always applies.

Data quality:
    Unknown metric ids or operators make the criterion unsatisfiable and
    are logged once per (strategy, criterion) as a WARNING.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from footalert.ingestion.models import MatchSnapshot

from .criteria import evaluate, parse_operator
from .metrics import is_ht_scoped, parse_metric, resolve_metric

if TYPE_CHECKING:
    from footalert.storage.models import Criterion, Strategy

logger = logging.getLogger(__name__)


@dataclass
class CriterionCheck:
    """Outcome of evaluating one criterion (useful for debugging/UI)."""

    criterion_id: str
    metric: str
    operator: str
    threshold: float
    value: Optional[float]
    passed: bool
    reason: str = ""


@dataclass
class MatchEvaluation:
    """Result of evaluating a strategy against one snapshot."""

    strategy_id: str
    match_id: str
    matched: bool
    checks: list[CriterionCheck] = field(default_factory=list)

    @property
    def failed(self) -> list[CriterionCheck]:
        return [c for c in self.checks if not c.passed]


class StrategyMatcher:
    """
    Evaluates strategies against match snapshots.

    Stateless apart from the set of data-quality problems already
    reported, which only suppresses repeated warnings.

    Usage:
        matcher = StrategyMatcher()
        if matcher.matches(strategy, snapshot):
            ...
    """

    def __init__(self) -> None:
        self._reported: set[tuple[str, str]] = set()
        self.data_quality_warnings = 0

    def matches(self, strategy: "Strategy", snapshot: MatchSnapshot) -> bool:
        """True if every criterion of the strategy holds for the snapshot."""
        if not strategy.criteria:
            return False
        return all(
            self._check(strategy.id, criterion, snapshot).passed
            for criterion in strategy.criteria
        )

    def evaluate(
        self, strategy: "Strategy", snapshot: MatchSnapshot
    ) -> MatchEvaluation:
        """
        Evaluate every criterion (no short-circuit) and report each result.

        Args:
            strategy: Strategy to evaluate
            snapshot: Current match snapshot

        Returns:
            MatchEvaluation with per-criterion checks
        """
        checks = [
            self._check(strategy.id, criterion, snapshot)
            for criterion in strategy.criteria
        ]
        matched = bool(checks) and all(c.passed for c in checks)
        return MatchEvaluation(
            strategy_id=strategy.id,
            match_id=snapshot.match_id,
            matched=matched,
            checks=checks,
        )

    def _check(
        self, strategy_id: str, criterion: "Criterion", snapshot: MatchSnapshot
    ) -> CriterionCheck:
        metric = parse_metric(criterion.metric)
        operator = parse_operator(criterion.operator)

        def result(value: Optional[float], passed: bool, reason: str = "") -> CriterionCheck:
            return CriterionCheck(
                criterion_id=criterion.id,
                metric=str(criterion.metric),
                operator=str(criterion.operator),
                threshold=criterion.value,
                value=value,
                passed=passed,
                reason=reason,
            )

        if metric is None:
            self._report(strategy_id, criterion, f"unknown metric {criterion.metric!r}")
            return result(None, False, "unknown metric")
        if operator is None:
            self._report(strategy_id, criterion, f"unknown operator {criterion.operator!r}")
            return result(None, False, "unknown operator")

        if is_ht_scoped(metric) and not snapshot.is_half_time:
            return result(None, False, "half-time metric outside HALF_TIME")

        value = resolve_metric(metric, snapshot)
        if value is None:
            logger.debug(
                f"Strategy {strategy_id}: {metric.value} unknown for match {snapshot.match_id}"
            )
            return result(None, False, "missing data")

        passed = evaluate(value, operator, criterion.value)
        return result(value, passed)

    def _report(self, strategy_id: str, criterion: "Criterion", problem: str) -> None:
        key = (strategy_id, criterion.id)
        if key in self._reported:
            return
        self._reported.add(key)
        self.data_quality_warnings += 1
        logger.warning(
            f"Data quality: strategy {strategy_id} criterion {criterion.id} has {problem}; "
            f"treating as unsatisfied"
        )
