"""
Pydantic models matching the PostgreSQL schema (storage/schema.sql).

Table names and field names match the database.

IMPORTANT: Monetary fields (odds, ROI, average odds) use Decimal for precision.
Non-monetary fields (criterion thresholds, strike rate) use float.

JSON columns (criteria, stats_snapshot, pre_match_odds, scores) arrive from
asyncpg as text; validators decode them so models load straight from records.
"""
from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from footalert.strategies.outcomes import TargetOutcome

# Namespace for deterministic ticket ids
TICKET_NAMESPACE = uuid.UUID("6f1c2a54-3b7e-4c1d-9a4f-2e8d5b0c7a13")


def ticket_id_for(strategy_id: str, match_id: str) -> str:
    """Deterministic ticket id for a (strategy, match) trigger."""
    return str(uuid.uuid5(TICKET_NAMESPACE, f"{strategy_id}:{match_id}"))


def _decode_json(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return value


class TicketAlreadySettledError(Exception):
    """Raised when settling a ticket that is already WON or LOST."""

    def __init__(self, ticket_id: str, status: "TicketStatus") -> None:
        self.ticket_id = ticket_id
        self.status = status
        super().__init__(f"Ticket {ticket_id} already settled as {status.value}")


# =============================================================================
# STRATEGIES
# =============================================================================


class Criterion(BaseModel):
    """
    One (metric, operator, threshold) test.

    metric and operator are kept as raw strings so that a strategy with an
    unknown metric or operator still loads; the matcher treats those
    criteria as unsatisfiable.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])
    metric: str
    operator: str
    value: float  # Threshold, not monetary


# Columns the engine derives and writes; everything else belongs to the owner
STRATEGY_PERFORMANCE_FIELDS = (
    "triggered_matches",
    "wins",
    "total_settled",
    "strike_rate",
    "avg_odds",
    "roi",
)


class Strategy(BaseModel):
    """User-defined alert strategy with accumulated performance."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    user_id: str
    name: str
    active: bool = True
    criteria: list[Criterion] = Field(min_length=1)
    target_outcome: TargetOutcome

    # Append-only list of match ids this strategy has fired on
    triggered_matches: list[str] = Field(default_factory=list)

    # Derived performance (re-foldable from settled tickets)
    wins: int = 0
    total_settled: int = 0
    strike_rate: float = 0.0
    avg_odds: Decimal = Decimal("0")
    roi: Decimal = Decimal("0")

    # Marketplace descriptors, stored but not used by the engine
    is_public: bool = False
    price: Optional[Decimal] = None
    description: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("criteria", "triggered_matches", mode="before")
    @classmethod
    def _decode_lists(cls, value: Any) -> Any:
        return _decode_json(value) if value is not None else []


# =============================================================================
# TICKETS
# =============================================================================


class TicketStatus(str, Enum):
    """Ticket lifecycle: PENDING -> WON | LOST, both terminal."""

    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"

    @property
    def is_terminal(self) -> bool:
        return self != TicketStatus.PENDING


class ScoreLine(BaseModel):
    """Score with independently nullable sides."""

    model_config = ConfigDict(frozen=True)

    home: Optional[int] = None
    away: Optional[int] = None

    @property
    def is_known(self) -> bool:
        return self.home is not None and self.away is not None

    def as_text(self) -> Optional[str]:
        """Score as 'H-A' when both sides are known, otherwise None."""
        if not self.is_known:
            return None
        return f"{self.home}-{self.away}"


class BetTicket(BaseModel):
    """
    Record of one trigger, tracked to WON or LOST.

    Once status leaves PENDING the ticket never changes again. Use
    settle() to obtain the settled copy; it refuses terminal tickets.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    strategy_id: str
    strategy_name: str = ""
    match_id: str
    home_team: str = ""
    away_team: str = ""
    league: str = ""
    target_outcome: TargetOutcome

    trigger_time: datetime
    trigger_minute: Optional[int] = None
    initial_score: ScoreLine = Field(default_factory=ScoreLine)
    odds_at_trigger: Decimal
    odds_source: str = "live"  # 'live' or 'fallback'

    status: TicketStatus = TicketStatus.PENDING
    result_time: Optional[datetime] = None
    ht_score: Optional[str] = None
    ft_score: Optional[str] = None

    stats_snapshot: dict[str, Any] = Field(default_factory=dict)
    pre_match_odds: Optional[dict[str, Any]] = None

    @field_validator("initial_score", "stats_snapshot", "pre_match_odds", mode="before")
    @classmethod
    def _decode_json_columns(cls, value: Any) -> Any:
        return _decode_json(value)

    @property
    def is_settled(self) -> bool:
        return self.status.is_terminal

    def settle(
        self,
        status: TicketStatus,
        result_time: Optional[datetime] = None,
        ht_score: Optional[str] = None,
        ft_score: Optional[str] = None,
    ) -> "BetTicket":
        """
        Return a settled copy of this ticket.

        Raises:
            TicketAlreadySettledError: If this ticket is already terminal
            ValueError: If status is PENDING
        """
        if self.is_settled:
            raise TicketAlreadySettledError(self.id, self.status)
        if not status.is_terminal:
            raise ValueError("Settlement status must be WON or LOST")
        return self.model_copy(
            update={
                "status": status,
                "result_time": result_time or datetime.now(timezone.utc),
                "ht_score": ht_score,
                "ft_score": ft_score,
            }
        )
