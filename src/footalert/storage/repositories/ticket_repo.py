"""
Bet ticket repository.

CRITICAL: Settled tickets are terminal. Updates only ever apply to rows
that are still PENDING, so a replayed or stale write can never flip a
WON ticket to LOST (or back to PENDING).

Ticket ids are deterministic per (strategy, match), which makes create()
an idempotent write: retrying it after a lost acknowledgement is a no-op.
Tickets are never deleted.
"""
from __future__ import annotations

from typing import Optional

from footalert.storage.models import BetTicket, TicketStatus
from footalert.storage.repositories.base import BaseRepository, to_json


class TicketRepository(BaseRepository[BetTicket]):
    """Repository for bet tickets."""

    table_name = "bet_tickets"
    model_class = BetTicket

    async def create(self, ticket: BetTicket) -> BetTicket:
        """
        Insert a ticket.

        Uses ON CONFLICT DO NOTHING: if the ticket already exists the
        stored row is returned unchanged.
        """
        query = """
            INSERT INTO bet_tickets
            (id, strategy_id, strategy_name, match_id, home_team, away_team,
             league, target_outcome, trigger_time, trigger_minute, initial_score,
             odds_at_trigger, odds_source, status, result_time, ht_score,
             ft_score, stats_snapshot, pre_match_odds)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11::jsonb,
                    $12, $13, $14, $15, $16, $17, $18::jsonb, $19::jsonb)
            ON CONFLICT (id) DO NOTHING
            RETURNING *
        """
        record = await self.db.fetchrow(
            query,
            ticket.id,
            ticket.strategy_id,
            ticket.strategy_name,
            ticket.match_id,
            ticket.home_team,
            ticket.away_team,
            ticket.league,
            ticket.target_outcome.value,
            ticket.trigger_time,
            ticket.trigger_minute,
            to_json(ticket.initial_score),
            ticket.odds_at_trigger,
            ticket.odds_source,
            ticket.status.value,
            ticket.result_time,
            ticket.ht_score,
            ticket.ft_score,
            to_json(ticket.stats_snapshot),
            to_json(ticket.pre_match_odds),
        )
        if record is not None:
            return self._to_model(record)

        existing = await self.get_by_id(ticket.id)
        return existing or ticket

    async def update(self, ticket: BetTicket) -> bool:
        """
        Write a ticket's settlement.

        Only rows still PENDING are updated.

        Returns:
            True if a row changed, False if it was already settled or missing
        """
        query = """
            UPDATE bet_tickets
            SET status = $2, result_time = $3, ht_score = $4, ft_score = $5
            WHERE id = $1 AND status = 'PENDING'
        """
        result = await self.db.execute(
            query,
            ticket.id,
            ticket.status.value,
            ticket.result_time,
            ticket.ht_score,
            ticket.ft_score,
        )
        return result != "UPDATE 0"

    async def get_pending(self) -> list[BetTicket]:
        query = "SELECT * FROM bet_tickets WHERE status = $1 ORDER BY trigger_time"
        records = await self.db.fetch(query, TicketStatus.PENDING.value)
        return self._to_models(records)

    async def get_by_strategy(
        self, strategy_id: str, status: Optional[TicketStatus] = None
    ) -> list[BetTicket]:
        """All tickets of a strategy, optionally filtered by status."""
        if status is None:
            query = "SELECT * FROM bet_tickets WHERE strategy_id = $1 ORDER BY trigger_time"
            records = await self.db.fetch(query, strategy_id)
        else:
            query = """
                SELECT * FROM bet_tickets
                WHERE strategy_id = $1 AND status = $2
                ORDER BY trigger_time
            """
            records = await self.db.fetch(query, strategy_id, status.value)
        return self._to_models(records)
