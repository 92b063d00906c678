"""
Strategy repository.

Strategies belong to their owner: the owner creates, edits and deletes
them. The engine only ever writes the columns it derives (triggered
matches and performance) through update_performance(), which never
inserts a row and never touches name, active, criteria or target.

Rows that fail validation (e.g. an empty criteria list or an unknown
target outcome) are skipped with a warning instead of failing the load.
"""
from __future__ import annotations

from datetime import datetime, timezone

from footalert.storage.models import Strategy
from footalert.storage.repositories.base import BaseRepository, to_json

_INSERT = """
    INSERT INTO strategies
    (id, user_id, name, active, criteria, target_outcome, triggered_matches,
     wins, total_settled, strike_rate, avg_odds, roi,
     is_public, price, description, created_at, updated_at)
    VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7::jsonb,
            $8, $9, $10, $11, $12,
            $13, $14, $15, $16, $17)
    ON CONFLICT (id) DO NOTHING
    RETURNING *
"""

_UPDATE_DEFINITION = """
    UPDATE strategies
    SET name = $2, active = $3, criteria = $4::jsonb, target_outcome = $5,
        is_public = $6, price = $7, description = $8, updated_at = $9
    WHERE id = $1
"""

_UPDATE_PERFORMANCE = """
    UPDATE strategies
    SET triggered_matches = $2::jsonb, wins = $3, total_settled = $4,
        strike_rate = $5, avg_odds = $6, roi = $7, updated_at = $8
    WHERE id = $1
"""


def _changed(status: str) -> bool:
    return status != "UPDATE 0"


class StrategyRepository(BaseRepository[Strategy]):
    """Repository for user strategies."""

    table_name = "strategies"
    model_class = Strategy

    async def get_all(self) -> list[Strategy]:
        query = "SELECT * FROM strategies ORDER BY created_at"
        return self._to_models(await self.db.fetch(query), skip_invalid=True)

    async def get_by_user(self, user_id: str) -> list[Strategy]:
        query = "SELECT * FROM strategies WHERE user_id = $1 ORDER BY created_at"
        return self._to_models(await self.db.fetch(query, user_id), skip_invalid=True)

    async def create(self, strategy: Strategy) -> Strategy:
        """
        Insert a new strategy.

        An existing row with the same id is left as is and returned.
        """
        now = datetime.now(timezone.utc)
        record = await self.db.fetchrow(
            _INSERT,
            strategy.id,
            strategy.user_id,
            strategy.name,
            strategy.active,
            to_json([c.model_dump() for c in strategy.criteria]),
            strategy.target_outcome.value,
            to_json(strategy.triggered_matches),
            strategy.wins,
            strategy.total_settled,
            strategy.strike_rate,
            strategy.avg_odds,
            strategy.roi,
            strategy.is_public,
            strategy.price,
            strategy.description,
            strategy.created_at or now,
            now,
        )
        if record is not None:
            return self._to_model(record)
        return await self.get_by_id(strategy.id) or strategy

    async def update(self, strategy: Strategy) -> bool:
        """
        Save an owner's edit of a strategy's definition.

        Performance columns are left alone.

        Returns:
            True if the row exists and was updated
        """
        status = await self.db.execute(
            _UPDATE_DEFINITION,
            strategy.id,
            strategy.name,
            strategy.active,
            to_json([c.model_dump() for c in strategy.criteria]),
            strategy.target_outcome.value,
            strategy.is_public,
            strategy.price,
            strategy.description,
            datetime.now(timezone.utc),
        )
        return _changed(status)

    async def update_performance(self, strategy: Strategy) -> bool:
        """
        Save the engine-derived columns of a strategy.

        A strategy deleted by its owner stays deleted: nothing is inserted.

        Returns:
            True if the row exists and was updated
        """
        status = await self.db.execute(
            _UPDATE_PERFORMANCE,
            strategy.id,
            to_json(strategy.triggered_matches),
            strategy.wins,
            strategy.total_settled,
            strategy.strike_rate,
            strategy.avg_odds,
            strategy.roi,
            datetime.now(timezone.utc),
        )
        return _changed(status)
