"""
Trigger tracker for at-most-once triggering.

A strategy fires only the FIRST time its criteria hold for a match. Each
strategy owns an append-only record of triggered match ids: a set for
O(1) membership and a list that keeps first-trigger order for storage.
Match ids are never removed.
"""
from __future__ import annotations

from typing import Iterable


class TriggerTracker:
    """
    Tracks which (strategy, match) pairs have already fired.

    Usage:
        tracker = TriggerTracker()
        tracker.seed(strategy.id, strategy.triggered_matches)

        if not tracker.has_triggered(strategy.id, match_id):
            tracker.record(strategy.id, match_id)
    """

    def __init__(self) -> None:
        self._seen: dict[str, set[str]] = {}
        self._order: dict[str, list[str]] = {}

    def seed(self, strategy_id: str, match_ids: Iterable[str]) -> None:
        """
        Load previously persisted triggers for a strategy.

        Merges with anything already tracked; nothing is forgotten.
        """
        for match_id in match_ids:
            self.record(strategy_id, match_id)

    def has_triggered(self, strategy_id: str, match_id: str) -> bool:
        return match_id in self._seen.get(strategy_id, ())

    def record(self, strategy_id: str, match_id: str) -> bool:
        """
        Mark a match as triggered for a strategy.

        Returns:
            True if newly recorded, False if it had already triggered
        """
        seen = self._seen.setdefault(strategy_id, set())
        if match_id in seen:
            return False
        seen.add(match_id)
        self._order.setdefault(strategy_id, []).append(match_id)
        return True

    def triggered_matches(self, strategy_id: str) -> list[str]:
        """Triggered match ids in first-trigger order (a copy)."""
        return list(self._order.get(strategy_id, ()))

    def count(self, strategy_id: str) -> int:
        return len(self._order.get(strategy_id, ()))

    def __contains__(self, key: tuple[str, str]) -> bool:
        strategy_id, match_id = key
        return self.has_triggered(strategy_id, match_id)
