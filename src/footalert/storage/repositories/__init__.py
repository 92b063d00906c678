"""
Repository exports.
"""
from footalert.storage.repositories.base import BaseRepository
from footalert.storage.repositories.strategy_repo import StrategyRepository
from footalert.storage.repositories.ticket_repo import TicketRepository

__all__ = [
    "BaseRepository",
    "StrategyRepository",
    "TicketRepository",
]
