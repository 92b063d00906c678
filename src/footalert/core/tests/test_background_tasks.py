"""
Tests for the polling loop.

Cycles never overlap and a failing cycle never stops the loop.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from footalert.core import PersistenceError, PollingConfig, PollingLoop


@pytest.fixture
def feed():
    feed = MagicMock()
    feed.fetch_snapshots = AsyncMock(return_value=[])
    return feed


@pytest.fixture
def engine():
    engine = MagicMock()
    engine.run_tick = AsyncMock(return_value="tick-result")
    engine.reload_strategies = AsyncMock()
    return engine


class TestRunOnce:
    """Tests for a single fetch -> tick cycle."""

    async def test_fetches_then_ticks(self, feed, engine):
        feed.fetch_snapshots.return_value = ["snap"]
        loop = PollingLoop(feed, engine)

        result = await loop.run_once()

        assert result == "tick-result"
        engine.run_tick.assert_awaited_once_with(["snap"])
        assert loop.stats.cycles == 1

    async def test_persistence_error_is_contained(self, feed, engine):
        engine.run_tick.side_effect = PersistenceError("1 write(s) failed")
        loop = PollingLoop(feed, engine)

        assert await loop.run_once() is None
        assert loop.stats.errors == 1
        assert "write" in loop.stats.last_error

    async def test_feed_error_is_contained(self, feed, engine):
        feed.fetch_snapshots.side_effect = RuntimeError("provider down")
        loop = PollingLoop(feed, engine)

        assert await loop.run_once() is None
        engine.run_tick.assert_not_awaited()
        assert loop.stats.last_error == "provider down"

    async def test_cancellation_propagates(self, feed, engine):
        feed.fetch_snapshots.side_effect = asyncio.CancelledError()
        loop = PollingLoop(feed, engine)

        with pytest.raises(asyncio.CancelledError):
            await loop.run_once()

    async def test_reloads_strategies_periodically(self, feed, engine):
        loop = PollingLoop(feed, engine, PollingConfig(reload_strategies_every=2))

        for _ in range(5):
            await loop.run_once()

        # Cycles 3 and 5
        assert engine.reload_strategies.await_count == 2

    async def test_reload_disabled(self, feed, engine):
        loop = PollingLoop(feed, engine, PollingConfig(reload_strategies_every=0))
        for _ in range(3):
            await loop.run_once()
        engine.reload_strategies.assert_not_awaited()


class TestLoop:
    """Tests for the background loop."""

    def test_rejects_non_positive_interval(self, feed, engine):
        with pytest.raises(ValueError):
            PollingLoop(feed, engine, PollingConfig(poll_interval_seconds=0))

    async def test_start_and_stop(self, feed, engine):
        loop = PollingLoop(feed, engine, PollingConfig(poll_interval_seconds=0.01))

        await loop.start()
        assert loop.is_running
        await asyncio.sleep(0.05)
        await loop.stop()

        assert not loop.is_running
        assert loop.stats.cycles >= 2

    async def test_keeps_running_after_errors(self, feed, engine):
        feed.fetch_snapshots.side_effect = RuntimeError("flaky")
        loop = PollingLoop(feed, engine, PollingConfig(poll_interval_seconds=0.01))

        await loop.start()
        await asyncio.sleep(0.05)
        await loop.stop()

        assert loop.stats.errors >= 2

    async def test_cycles_never_overlap(self, feed, engine):
        """A slow cycle defers the next one instead of running alongside it."""
        in_flight = 0
        max_in_flight = 0

        async def slow_fetch():
            nonlocal in_flight, max_in_flight
            in_flight += 1
            max_in_flight = max(max_in_flight, in_flight)
            await asyncio.sleep(0.03)
            in_flight -= 1
            return []

        feed.fetch_snapshots.side_effect = slow_fetch
        loop = PollingLoop(feed, engine, PollingConfig(poll_interval_seconds=0.01))

        await loop.start()
        await asyncio.sleep(0.12)
        await loop.stop()

        assert max_in_flight == 1
        assert loop.stats.deferred >= 1

    async def test_stop_cancels_in_flight_cycle(self, feed, engine):
        started = asyncio.Event()

        async def hanging_fetch():
            started.set()
            await asyncio.sleep(10)
            return []

        feed.fetch_snapshots.side_effect = hanging_fetch
        loop = PollingLoop(feed, engine, PollingConfig(poll_interval_seconds=60))

        await loop.start()
        await started.wait()
        await asyncio.wait_for(loop.stop(), timeout=1)

        engine.run_tick.assert_not_awaited()
