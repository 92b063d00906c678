"""
Tests for StrategyRepository.

Owner edits and engine performance writes touch disjoint columns;
rows that fail validation are skipped.
"""
import json
import logging

from footalert.storage.models import Strategy
from footalert.storage.repositories import StrategyRepository


class TestReads:
    """Tests for loading strategies."""

    async def test_get_all(self, mock_db, strategy_record):
        mock_db.fetch.return_value = [strategy_record]
        repo = StrategyRepository(mock_db)

        strategies = await repo.get_all()

        assert [s.id for s in strategies] == ["s1"]
        assert "FROM strategies" in mock_db.fetch.call_args[0][0]

    async def test_get_by_user_passes_user_id(self, mock_db, strategy_record):
        mock_db.fetch.return_value = [strategy_record]
        repo = StrategyRepository(mock_db)

        await repo.get_by_user("u1")

        assert mock_db.fetch.call_args[0][1] == "u1"

    async def test_skips_invalid_rows(self, mock_db, strategy_record, caplog):
        broken = dict(strategy_record, id="s2", target_outcome="NOT_AN_OUTCOME")
        mock_db.fetch.return_value = [strategy_record, broken]
        repo = StrategyRepository(mock_db)

        with caplog.at_level(logging.WARNING):
            strategies = await repo.get_all()

        assert [s.id for s in strategies] == ["s1"]
        assert "s2" in caplog.text

    async def test_get_by_id_missing(self, mock_db):
        repo = StrategyRepository(mock_db)
        assert await repo.get_by_id("nope") is None


class TestWrites:
    """Tests for inserts and the two kinds of update."""

    async def test_create_inserts_without_overwriting(self, mock_db, strategy_record):
        strategy = Strategy(**strategy_record)
        mock_db.fetchrow.return_value = strategy_record
        repo = StrategyRepository(mock_db)

        saved = await repo.create(strategy)

        query, *params = mock_db.fetchrow.call_args[0]
        assert "ON CONFLICT (id) DO NOTHING" in query
        assert params[0] == "s1"
        assert params[5] == "OVER_2_5_GOALS"
        assert json.loads(params[4])[0]["metric"] == "da_total"
        assert json.loads(params[6]) == ["m1", "m2"]
        assert params[15] == strategy.created_at
        assert saved.id == "s1"

    async def test_create_returns_existing_row_on_conflict(self, mock_db, strategy_record):
        strategy = Strategy(**dict(strategy_record, name="Resubmitted"))
        mock_db.fetchrow.side_effect = [None, strategy_record]
        repo = StrategyRepository(mock_db)

        saved = await repo.create(strategy)

        assert saved.name == "Late Pressure"

    async def test_update_performance_only_touches_derived_columns(self, mock_db, strategy_record):
        strategy = Strategy(**strategy_record)
        repo = StrategyRepository(mock_db)

        assert await repo.update_performance(strategy) is True

        query, *params = mock_db.execute.call_args[0]
        assert "INSERT" not in query
        assert "WHERE id = $1" in query
        for owner_column in ("name", "active", "criteria", "target_outcome"):
            assert f"{owner_column} =" not in query
        assert params[0] == "s1"
        assert json.loads(params[1]) == ["m1", "m2"]
        assert params[2:7] == [1, 2, 50.0, strategy.avg_odds, strategy.roi]

    async def test_update_performance_of_deleted_row(self, mock_db, strategy_record):
        mock_db.execute.return_value = "UPDATE 0"
        repo = StrategyRepository(mock_db)

        assert await repo.update_performance(Strategy(**strategy_record)) is False

    async def test_update_leaves_performance_alone(self, mock_db, strategy_record):
        strategy = Strategy(**dict(strategy_record, active=False))
        repo = StrategyRepository(mock_db)

        assert await repo.update(strategy) is True

        query, *params = mock_db.execute.call_args[0]
        assert "INSERT" not in query
        for derived_column in ("triggered_matches", "wins", "roi"):
            assert f"{derived_column} =" not in query
        assert params[:3] == ["s1", "Late Pressure", False]
