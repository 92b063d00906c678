"""
Storage Layer - Async PostgreSQL database and repositories.

Built on asyncpg for async database access and pydantic for row models.

Public API:
    Database, DatabaseConfig - Connection pool management

    Models (matching storage/schema.sql):
        Strategy, Criterion
        BetTicket, ScoreLine, TicketStatus

    Repositories:
        StrategyRepository - strategies table (owner edits, engine performance writes)
        TicketRepository - bet_tickets table (terminal-safe updates)
"""
from footalert.storage.database import Database, DatabaseConfig
from footalert.storage.models import (
    BetTicket,
    Criterion,
    ScoreLine,
    STRATEGY_PERFORMANCE_FIELDS,
    Strategy,
    TicketAlreadySettledError,
    TicketStatus,
    ticket_id_for,
)
from footalert.storage.repositories import (
    BaseRepository,
    StrategyRepository,
    TicketRepository,
)

__all__ = [
    # Database
    "Database",
    "DatabaseConfig",
    # Models
    "Strategy",
    "Criterion",
    "STRATEGY_PERFORMANCE_FIELDS",
    "BetTicket",
    "ScoreLine",
    "TicketStatus",
    "TicketAlreadySettledError",
    "ticket_id_for",
    # Repositories
    "BaseRepository",
    "StrategyRepository",
    "TicketRepository",
]
