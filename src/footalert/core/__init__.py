"""
Core Layer - Alert engine and orchestration.

This module provides:
    - AlertEngine: Tick orchestrator (settle -> aggregate -> trigger -> notify)
    - EngineConfig / EngineStats / TickResult: Engine configuration and reporting
    - TriggerTracker: At-most-once triggering per (strategy, match)
    - TicketFactory: Builds PENDING tickets with odds at trigger
    - SettlementEngine: PENDING -> WON/LOST state machine
    - Performance fold: strike rate, ROI and average odds from history
    - PollingLoop / PollingConfig: Non-overlapping fetch -> tick loop
    - Collaborator protocols: MatchFeed, StrategyStore, TicketStore, Notifier

Data Flow (one tick):
    1. Settle pending tickets against the snapshot batch
    2. Re-fold performance for touched strategies and persist
    3. Match active strategies against every snapshot
    4. Create and persist tickets for new triggers
    5. Notify
"""

# Engine
from .engine import AlertEngine, EngineConfig, EngineStats, TickResult

# Collaborators
from .collaborators import (
    MatchFeed,
    Notifier,
    PersistenceError,
    StrategyStore,
    TicketStore,
)

# Components
from .performance import PerformanceStats, PerformanceTally, fold, tally
from .settlement import Settlement, SettlementEngine, decide
from .ticket_factory import DEFAULT_FALLBACK_ODDS, TicketFactory
from .trigger_tracker import TriggerTracker

# Polling
from .background_tasks import PollingConfig, PollingLoop, PollingStats

__all__ = [
    # Engine
    "AlertEngine",
    "EngineConfig",
    "EngineStats",
    "TickResult",
    # Collaborators
    "MatchFeed",
    "StrategyStore",
    "TicketStore",
    "Notifier",
    "PersistenceError",
    # Components
    "TriggerTracker",
    "TicketFactory",
    "DEFAULT_FALLBACK_ODDS",
    "SettlementEngine",
    "Settlement",
    "decide",
    "PerformanceStats",
    "PerformanceTally",
    "fold",
    "tally",
    # Polling
    "PollingLoop",
    "PollingConfig",
    "PollingStats",
]
