"""
Collaborator interfaces the engine depends on.

    MatchFeed     - supplies snapshot batches (API-Football client, demo feed)
    StrategyStore - reads strategies, writes their derived fields (StrategyRepository)
    TicketStore   - reads/writes tickets (TicketRepository)
    Notifier      - receives "triggered" and "settled (WON)" events (AlertManager)

Notifier methods may be plain or async; the engine awaits results that
are awaitable.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from footalert.ingestion.models import MatchSnapshot
    from footalert.storage.models import BetTicket, Strategy


class PersistenceError(Exception):
    """One or more store writes failed; they will be retried next tick."""

    def __init__(self, message: str, failures: Optional[list[tuple[str, BaseException]]] = None) -> None:
        super().__init__(message)
        self.failures = failures or []


@runtime_checkable
class MatchFeed(Protocol):
    async def fetch_snapshots(self) -> list["MatchSnapshot"]:
        ...


@runtime_checkable
class StrategyStore(Protocol):
    async def get_all(self) -> list["Strategy"]:
        ...

    async def get_by_user(self, user_id: str) -> list["Strategy"]:
        ...

    async def update_performance(self, strategy: "Strategy") -> Any:
        """Write triggered matches and performance only; never insert."""
        ...


@runtime_checkable
class TicketStore(Protocol):
    async def get_pending(self) -> list["BetTicket"]:
        ...

    async def get_by_strategy(self, strategy_id: str) -> list["BetTicket"]:
        ...

    async def create(self, ticket: "BetTicket") -> Any:
        ...

    async def update(self, ticket: "BetTicket") -> Any:
        ...


@runtime_checkable
class Notifier(Protocol):
    def notify_triggered(
        self, strategy: "Strategy", ticket: "BetTicket", snapshot: "MatchSnapshot"
    ) -> Any:
        ...

    def notify_settled(self, strategy: "Strategy", ticket: "BetTicket") -> Any:
        ...
