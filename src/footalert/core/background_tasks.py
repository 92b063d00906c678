"""
PollingLoop - Drives the engine on a fixed interval.

Each cycle fetches a snapshot batch from the match feed and runs one
engine tick over it. Cycles never overlap: a cycle that runs longer than
the interval pushes the next one back (counted as deferred) instead of
starting a second fetch alongside it.

Errors in a cycle are logged and the loop keeps going. stop() cancels the
in-flight cycle; the engine's compute-then-swap ticks leave no
half-applied state behind.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from .collaborators import MatchFeed, PersistenceError

if TYPE_CHECKING:
    from .engine import AlertEngine, TickResult

logger = logging.getLogger(__name__)


@dataclass
class PollingConfig:
    """Configuration for the polling loop."""

    poll_interval_seconds: float = 60.0

    # Re-read strategies every N cycles to pick up edits (0 = never)
    reload_strategies_every: int = 10


@dataclass
class PollingStats:
    """Runtime statistics for the polling loop."""

    cycles: int = 0
    errors: int = 0
    deferred: int = 0
    last_cycle_at: Optional[datetime] = None
    last_error: Optional[str] = None


class PollingLoop:
    """
    Runs fetch -> tick cycles until stopped.

    Usage:
        loop = PollingLoop(feed, engine, PollingConfig(poll_interval_seconds=60))
        await loop.start()
        # ... runs in the background ...
        await loop.stop()
    """

    def __init__(
        self,
        feed: MatchFeed,
        engine: "AlertEngine",
        config: Optional[PollingConfig] = None,
    ) -> None:
        self._feed = feed
        self._engine = engine
        self._config = config or PollingConfig()
        if self._config.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()
        self._stats = PollingStats()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stats(self) -> PollingStats:
        return self._stats

    async def start(self) -> None:
        if self._running:
            logger.warning("PollingLoop already running")
            return

        self._running = True
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name="polling_loop")
        logger.info(
            f"Polling loop started (interval={self._config.poll_interval_seconds}s)"
        )

    async def stop(self) -> None:
        """Stop the loop, cancelling any in-flight cycle."""
        if not self._running:
            return

        logger.info("Stopping polling loop...")
        self._running = False
        self._stop_event.set()

        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

        logger.info("Polling loop stopped")

    async def wait(self) -> None:
        """Block until the loop finishes (after stop())."""
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    async def run_once(self) -> Optional["TickResult"]:
        """
        One fetch -> tick cycle.

        Returns:
            The tick result, or None if the cycle failed
        """
        self._stats.cycles += 1
        self._stats.last_cycle_at = datetime.now(timezone.utc)

        try:
            every = self._config.reload_strategies_every
            if every and self._stats.cycles > 1 and (self._stats.cycles - 1) % every == 0:
                await self._engine.reload_strategies()

            snapshots = await self._feed.fetch_snapshots()
            logger.debug(f"Fetched {len(snapshots)} snapshots")
            return await self._engine.run_tick(snapshots)

        except asyncio.CancelledError:
            raise
        except PersistenceError as e:
            self._stats.errors += 1
            self._stats.last_error = str(e)
            logger.error(f"Cycle {self._stats.cycles}: persistence failed, retrying next cycle: {e}")
        except Exception as e:
            self._stats.errors += 1
            self._stats.last_error = str(e)
            logger.error(f"Cycle {self._stats.cycles} failed: {e}", exc_info=True)
        return None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        interval = self._config.poll_interval_seconds

        while self._running:
            try:
                started = loop.time()
                await self.run_once()
                elapsed = loop.time() - started

                remaining = interval - elapsed
                if remaining <= 0:
                    self._stats.deferred += 1
                    logger.warning(
                        f"Cycle took {elapsed:.1f}s (interval {interval}s); "
                        f"next cycle starts immediately"
                    )
                    continue

                # Wait for interval or stop
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=remaining)
                    break  # Stop requested
                except asyncio.TimeoutError:
                    pass

            except asyncio.CancelledError:
                break
