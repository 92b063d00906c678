"""
Criterion evaluation.

A criterion is a single (metric, operator, threshold) test. Evaluation is
FAIL-CLOSED: if the resolved metric value is None the criterion is not
satisfied, whatever the operator. The engine must never trigger or settle
on incomplete data.
"""
from __future__ import annotations

import math
from enum import Enum
from typing import Optional, Union


# Tolerance for "=" so float stats (xG, possession) compare sanely
EQUALITY_TOLERANCE = 1e-9


class Operator(str, Enum):
    """Comparison operators available to criteria."""

    GREATER_THAN = ">"
    LESS_THAN = "<"
    EQUALS = "="
    GREATER_EQUAL = ">="
    LESS_EQUAL = "<="


_ALIASES = {
    "==": Operator.EQUALS,
    "≥": Operator.GREATER_EQUAL,
    "≤": Operator.LESS_EQUAL,
}


def parse_operator(value: Union[str, Operator]) -> Optional[Operator]:
    """Parse a stored operator; None if unrecognised."""
    if isinstance(value, Operator):
        return value
    if not isinstance(value, str):
        return None
    value = value.strip()
    if value in _ALIASES:
        return _ALIASES[value]
    try:
        return Operator(value)
    except ValueError:
        return None


def evaluate(
    value: Optional[float],
    operator: Union[str, Operator],
    threshold: float,
) -> bool:
    """
    Evaluate one comparison.

    Args:
        value: Resolved metric value (None when unknown)
        operator: Operator enum or its stored symbol
        threshold: Numeric threshold from the criterion

    Returns:
        True only if value is known and the comparison holds.
        Unknown operators evaluate to False.
    """
    if value is None:
        return False

    op = parse_operator(operator)
    if op is None:
        return False

    if op == Operator.GREATER_THAN:
        return value > threshold
    if op == Operator.LESS_THAN:
        return value < threshold
    if op == Operator.EQUALS:
        return math.isclose(value, threshold, rel_tol=0.0, abs_tol=EQUALITY_TOLERANCE)
    if op == Operator.GREATER_EQUAL:
        return value >= threshold
    if op == Operator.LESS_EQUAL:
        return value <= threshold
    return False
