"""
Alert Engine - Orchestrator for strategy evaluation and settlement.

One tick, in order:
    0. Flush writes left over from a failed tick
    1. Settle PENDING tickets whose match is in the batch
    2. Re-fold performance for every strategy touched by a settlement
    3. Persist (must be durable before trigger detection starts)
    4. Detect triggers: every active strategy x every snapshot
    5. Create tickets for new triggers
    6. Persist
    7. Notify (triggered, settled WON)

Atomicity:
    Every pass computes its results on local copies and swaps them into
    engine state in one synchronous block, with no await in between. A
    cancelled or failed tick never leaves a half-applied pass.

Persistence:
    Changed tickets/strategies are marked dirty at swap time and written
    afterwards. Failed writes stay dirty and are retried at the start of
    the next tick; all store writes are idempotent. A failure is raised
    to the caller as PersistenceError; in-memory state is not rolled back.

Notifications:
    Queued in an outbox at swap time and delivered only once the writes
    of the same pass have succeeded. Notifier errors are logged and the
    event is dropped.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from footalert.ingestion.models import MatchSnapshot
from footalert.storage.models import BetTicket, Strategy, TicketStatus
from footalert.strategies.matcher import StrategyMatcher

from .collaborators import Notifier, PersistenceError, StrategyStore, TicketStore
from .performance import PerformanceStats, fold
from .settlement import Settlement, SettlementEngine
from .ticket_factory import DEFAULT_FALLBACK_ODDS, TicketFactory
from .trigger_tracker import TriggerTracker

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Configuration for the alert engine."""

    # Odds recorded when the live market for an outcome is unavailable
    fallback_odds: Decimal = DEFAULT_FALLBACK_ODDS

    # Restrict to one owner's strategies (None = all strategies)
    owner_id: Optional[str] = None


@dataclass
class EngineStats:
    """Runtime statistics for the engine."""

    ticks: int = 0
    triggers: int = 0
    tickets_won: int = 0
    tickets_lost: int = 0
    data_quality_warnings: int = 0
    persistence_errors: int = 0
    notification_errors: int = 0
    last_tick_at: Optional[datetime] = None


@dataclass
class TickResult:
    """What one tick changed."""

    settled: list[BetTicket] = field(default_factory=list)
    created: list[BetTicket] = field(default_factory=list)
    updated_strategies: list[str] = field(default_factory=list)
    flushed_writes: int = 0
    duration_ms: float = 0.0

    @property
    def won(self) -> list[BetTicket]:
        return [t for t in self.settled if t.status == TicketStatus.WON]


@dataclass(frozen=True)
class _Event:
    kind: str  # "triggered" or "settled"
    strategy_id: str
    ticket: BetTicket
    snapshot: Optional[MatchSnapshot] = None


class AlertEngine:
    """
    Owns strategies, tickets and trigger sets, and runs ticks over them.

    Usage:
        engine = AlertEngine(strategy_repo, ticket_repo, notifier=alerts)
        await engine.load()

        snapshots = await feed.fetch_snapshots()
        result = await engine.run_tick(snapshots)
    """

    def __init__(
        self,
        strategy_store: StrategyStore,
        ticket_store: TicketStore,
        notifier: Optional[Notifier] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self._strategy_store = strategy_store
        self._ticket_store = ticket_store
        self._notifier = notifier

        self._matcher = StrategyMatcher()
        self._factory = TicketFactory(self.config.fallback_odds)
        self._settlement = SettlementEngine()
        self._tracker = TriggerTracker()

        # Engine-owned state
        self._strategies: dict[str, Strategy] = {}
        self._tickets: dict[str, BetTicket] = {}
        self._pending_ids: set[str] = set()
        self._history: dict[str, list[str]] = {}  # strategy_id -> ticket ids

        # Outstanding writes and notifications
        self._dirty_tickets: set[str] = set()
        self._unsaved_tickets: set[str] = set()
        self._dirty_strategies: set[str] = set()
        self._outbox: list[_Event] = []

        self._tick_lock = asyncio.Lock()
        self._stats = EngineStats()

    # =========================================================================
    # READ-ONLY VIEWS
    # =========================================================================

    @property
    def stats(self) -> EngineStats:
        self._stats.data_quality_warnings = self._matcher.data_quality_warnings
        return self._stats

    @property
    def strategies(self) -> list[Strategy]:
        return list(self._strategies.values())

    def get_strategy(self, strategy_id: str) -> Optional[Strategy]:
        return self._strategies.get(strategy_id)

    def tickets_for(self, strategy_id: str) -> list[BetTicket]:
        return [self._tickets[tid] for tid in self._history.get(strategy_id, ())]

    @property
    def pending_tickets(self) -> list[BetTicket]:
        return [self._tickets[tid] for tid in self._pending_ids]

    @property
    def has_unflushed_writes(self) -> bool:
        return bool(self._dirty_tickets or self._dirty_strategies)

    # =========================================================================
    # LOADING
    # =========================================================================

    async def _fetch_strategies(self) -> list[Strategy]:
        if self.config.owner_id:
            return await self._strategy_store.get_by_user(self.config.owner_id)
        return await self._strategy_store.get_all()

    async def load(self) -> None:
        """
        Load strategies and their ticket history from the stores.

        Trigger sets are seeded from both the stored triggered_matches and
        the tickets themselves, and performance is re-folded from history.
        Strategies whose stored fields disagree are marked for rewrite.
        """
        async with self._tick_lock:
            strategies = await self._fetch_strategies()
            histories = {}
            for strategy in strategies:
                histories[strategy.id] = await self._ticket_store.get_by_strategy(strategy.id)

            tracker = TriggerTracker()
            loaded: dict[str, Strategy] = {}
            tickets: dict[str, BetTicket] = {}
            history_ids: dict[str, list[str]] = {}
            stale: set[str] = set()

            for strategy in strategies:
                history = histories[strategy.id]
                tracker.seed(strategy.id, strategy.triggered_matches)
                tracker.seed(strategy.id, (t.match_id for t in history))

                reconciled = fold(history).apply_to(strategy).model_copy(
                    update={"triggered_matches": tracker.triggered_matches(strategy.id)}
                )
                if reconciled != strategy:
                    stale.add(strategy.id)
                loaded[strategy.id] = reconciled
                history_ids[strategy.id] = [t.id for t in history]
                tickets.update((t.id, t) for t in history)

            self._tracker = tracker
            self._strategies = loaded
            self._tickets = tickets
            self._history = history_ids
            self._pending_ids = {tid for tid, t in tickets.items() if not t.is_settled}
            self._dirty_strategies |= stale

        logger.info(
            f"Engine loaded {len(loaded)} strategies, {len(tickets)} tickets "
            f"({len(self._pending_ids)} pending)"
        )
        if stale:
            logger.info(f"{len(stale)} strategies reconciled with ticket history")

    async def reload_strategies(self) -> None:
        """
        Pick up external strategy edits (criteria, name, active flag...).

        In-memory trigger sets and performance fields are kept for known
        strategies. New strategies get their history loaded. Strategies no
        longer in the store stop triggering; their tickets still settle.
        """
        async with self._tick_lock:
            stored = await self._fetch_strategies()
            new_histories = {}
            for strategy in stored:
                if strategy.id not in self._strategies:
                    new_histories[strategy.id] = await self._ticket_store.get_by_strategy(strategy.id)

            merged: dict[str, Strategy] = {}
            for strategy in stored:
                current = self._strategies.get(strategy.id)
                history = new_histories.get(strategy.id, [])
                self._tracker.seed(strategy.id, strategy.triggered_matches)
                self._tracker.seed(strategy.id, (t.match_id for t in history))
                stats = PerformanceStats.of(current) if current else fold(history)
                merged[strategy.id] = stats.apply_to(strategy).model_copy(
                    update={"triggered_matches": self._tracker.triggered_matches(strategy.id)}
                )
                if history:
                    self._history[strategy.id] = [t.id for t in history]
                    for ticket in history:
                        self._tickets[ticket.id] = ticket
                        if not ticket.is_settled:
                            self._pending_ids.add(ticket.id)

            dropped = set(self._strategies) - set(merged)
            self._strategies = merged
            self._dirty_strategies -= dropped

        logger.info(
            f"Strategies reloaded: {len(merged)} total, {len(new_histories)} new, "
            f"{len(dropped)} removed"
        )

    # =========================================================================
    # TICK
    # =========================================================================

    async def run_tick(self, snapshots: Iterable[MatchSnapshot]) -> TickResult:
        """
        Run one evaluation tick over a snapshot batch.

        Raises:
            PersistenceError: If writes could not be made durable. Engine
                state stays applied and the writes are retried next tick.
        """
        async with self._tick_lock:
            started = time.monotonic()
            result = TickResult()
            self._stats.ticks += 1
            self._stats.last_tick_at = datetime.now(timezone.utc)

            batch = self._index_batch(snapshots)

            result.flushed_writes = await self._flush()
            await self._deliver()

            now = datetime.now(timezone.utc)
            pending = [self._tickets[tid] for tid in self._pending_ids]
            settlements = self._settlement.settle_batch(pending, batch, now)
            if settlements:
                self._apply_settlements(settlements, result)
                result.flushed_writes += await self._flush()

            self._apply_triggers(batch, now, result)
            if result.created:
                result.flushed_writes += await self._flush()

            await self._deliver()

            result.duration_ms = (time.monotonic() - started) * 1000
            if result.settled or result.created:
                logger.info(
                    f"Tick {self._stats.ticks}: {len(batch)} matches, "
                    f"{len(result.settled)} settled ({len(result.won)} won), "
                    f"{len(result.created)} new tickets in {result.duration_ms:.0f}ms"
                )
            else:
                logger.debug(f"Tick {self._stats.ticks}: {len(batch)} matches, no changes")
            return result

    @staticmethod
    def _index_batch(snapshots: Iterable[MatchSnapshot]) -> dict[str, MatchSnapshot]:
        batch: dict[str, MatchSnapshot] = {}
        for snapshot in snapshots:
            if snapshot.match_id in batch:
                logger.debug(f"Duplicate snapshot for match {snapshot.match_id}; keeping latest")
            batch[snapshot.match_id] = snapshot
        return batch

    def _apply_settlements(self, settlements: list[Settlement], result: TickResult) -> None:
        """Compute performance for touched strategies, then swap."""
        settled = {s.ticket.id: s.ticket for s in settlements}

        updated: dict[str, Strategy] = {}
        for strategy_id in {t.strategy_id for t in settled.values()}:
            strategy = self._strategies.get(strategy_id)
            if strategy is None:
                continue
            history = [
                settled.get(tid) or self._tickets[tid]
                for tid in self._history.get(strategy_id, ())
            ]
            updated[strategy_id] = fold(history).apply_to(strategy)

        events = [
            _Event("settled", s.ticket.strategy_id, s.ticket)
            for s in settlements
            if s.won
        ]

        # Swap
        self._tickets.update(settled)
        self._pending_ids.difference_update(settled)
        self._dirty_tickets.update(settled)
        self._strategies.update(updated)
        self._dirty_strategies.update(updated)
        self._outbox.extend(events)

        won = sum(1 for s in settlements if s.won)
        self._stats.tickets_won += won
        self._stats.tickets_lost += len(settlements) - won
        result.settled.extend(settled.values())
        result.updated_strategies.extend(updated)

    def _apply_triggers(
        self, batch: dict[str, MatchSnapshot], now: datetime, result: TickResult
    ) -> None:
        """Detect new triggers and build tickets, then swap."""
        created: list[tuple[BetTicket, MatchSnapshot]] = []
        updated: dict[str, Strategy] = {}

        for strategy in self._strategies.values():
            if not strategy.active:
                continue
            fresh = []
            for snapshot in batch.values():
                if snapshot.is_finished:
                    continue
                if self._tracker.has_triggered(strategy.id, snapshot.match_id):
                    continue
                if not self._matcher.matches(strategy, snapshot):
                    continue
                fresh.append((self._factory.create(strategy, snapshot, now), snapshot))
            if fresh:
                created.extend(fresh)
                updated[strategy.id] = strategy.model_copy(
                    update={
                        "triggered_matches": strategy.triggered_matches
                        + [t.match_id for t, _ in fresh]
                    }
                )

        if not created:
            return

        # Swap
        for ticket, snapshot in created:
            self._tracker.record(ticket.strategy_id, ticket.match_id)
            self._tickets[ticket.id] = ticket
            self._pending_ids.add(ticket.id)
            self._history.setdefault(ticket.strategy_id, []).append(ticket.id)
            self._dirty_tickets.add(ticket.id)
            self._unsaved_tickets.add(ticket.id)
            self._outbox.append(_Event("triggered", ticket.strategy_id, ticket, snapshot))
            logger.info(
                f"Strategy '{updated[ticket.strategy_id].name}' triggered on "
                f"{ticket.home_team} vs {ticket.away_team} ({ticket.match_id}) "
                f"at {ticket.trigger_minute}' @ {ticket.odds_at_trigger} ({ticket.odds_source})"
            )
        self._strategies.update(updated)
        self._dirty_strategies.update(updated)

        self._stats.triggers += len(created)
        result.created.extend(t for t, _ in created)
        result.updated_strategies.extend(
            sid for sid in updated if sid not in result.updated_strategies
        )

    # =========================================================================
    # PERSISTENCE & NOTIFICATION
    # =========================================================================

    async def _flush(self) -> int:
        """
        Write every dirty ticket, then every dirty strategy.

        Returns:
            Number of records written

        Raises:
            PersistenceError: If any write failed (it stays dirty)
        """
        if not self.has_unflushed_writes:
            return 0

        failures: list[tuple[str, BaseException]] = []
        written = 0

        for ticket_id in sorted(self._dirty_tickets):
            ticket = self._tickets[ticket_id]
            try:
                if ticket_id in self._unsaved_tickets:
                    await self._ticket_store.create(ticket)
                    self._unsaved_tickets.discard(ticket_id)
                if ticket.is_settled:
                    await self._ticket_store.update(ticket)
            except Exception as e:
                failures.append((ticket_id, e))
                continue
            self._dirty_tickets.discard(ticket_id)
            written += 1

        for strategy_id in sorted(self._dirty_strategies):
            strategy = self._strategies.get(strategy_id)
            if strategy is None:
                self._dirty_strategies.discard(strategy_id)
                continue
            try:
                await self._strategy_store.update_performance(strategy)
            except Exception as e:
                failures.append((strategy_id, e))
                continue
            self._dirty_strategies.discard(strategy_id)
            written += 1

        if failures:
            self._stats.persistence_errors += len(failures)
            first_id, first_error = failures[0]
            logger.error(
                f"{len(failures)} write(s) failed, will retry next tick "
                f"(first: {first_id}: {first_error})"
            )
            raise PersistenceError(f"{len(failures)} write(s) failed", failures)

        return written

    async def _deliver(self) -> None:
        """Send queued notifications once their writes are durable."""
        if self.has_unflushed_writes or not self._outbox:
            return

        events, self._outbox = self._outbox, []
        if self._notifier is None:
            return

        for event in events:
            strategy = self._strategies.get(event.strategy_id)
            if strategy is None:
                continue
            try:
                if event.kind == "triggered":
                    outcome = self._notifier.notify_triggered(strategy, event.ticket, event.snapshot)
                else:
                    outcome = self._notifier.notify_settled(strategy, event.ticket)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                self._stats.notification_errors += 1
                logger.error(f"Notification '{event.kind}' for ticket {event.ticket.id} failed: {e}")
