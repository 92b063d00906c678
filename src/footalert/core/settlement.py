"""
Settlement state machine.

    PENDING -> WON   (terminal)
    PENDING -> LOST  (terminal)

For each PENDING ticket whose match is in the current batch:
    1. Apply the family rule for the ticket's target outcome. Rules may
       decide WON or LOST early (e.g. over-lines win mid-match, a breached
       under-line loses immediately).
    2. If nothing was decided and the match has finished, the ticket is
       LOST. No ticket survives a finished match as PENDING.

Unknown values never decide anything: a rule that needs a null counter
leaves the ticket PENDING until a later snapshot (or the finish fallback).
Tickets whose match is missing from the batch are left untouched.

Postponed, suspended, interrupted, cancelled and abandoned matches
(phase POSTPONED) never reach a finished phase, and there is no void
status. Rules that decide early still apply; otherwise the ticket stays PENDING, is reported once with a warning and
settles normally if the match is later played out.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from footalert.ingestion.models import MatchPhase, MatchSnapshot
from footalert.storage.models import BetTicket, TicketStatus
from footalert.strategies.outcomes import OutcomeFamily, OutcomeSpec

logger = logging.getLogger(__name__)

WON = TicketStatus.WON
LOST = TicketStatus.LOST


def _total(home: Optional[int], away: Optional[int]) -> Optional[int]:
    if home is None or away is None:
        return None
    return home + away


def _first_half(snapshot: MatchSnapshot, attr: str, live_attr: str) -> tuple[Optional[int], Optional[int]]:
    """
    First-half counters for both sides.

    Falls back to the live counter while the phase is HALF_TIME, where the
    two are equal.
    """
    home = getattr(snapshot.home, attr)
    away = getattr(snapshot.away, attr)
    if snapshot.is_half_time:
        if home is None:
            home = getattr(snapshot.home, live_attr)
        if away is None:
            away = getattr(snapshot.away, live_attr)
    return home, away


def _result_side(home: Optional[int], away: Optional[int]) -> Optional[str]:
    if home is None or away is None:
        return None
    if home > away:
        return "home"
    if away > home:
        return "away"
    return "draw"


def _over(total: Optional[int], line: float) -> Optional[TicketStatus]:
    if total is not None and total > line:
        return WON
    return None


def _under(total: Optional[int], line: float, finished: bool) -> Optional[TicketStatus]:
    if total is None:
        return None
    if total > line:
        return LOST
    if finished:
        return WON
    return None


def _next_goal(ticket: BetTicket, snapshot: MatchSnapshot, side: str) -> Optional[TicketStatus]:
    start_home, start_away = ticket.initial_score.home, ticket.initial_score.away
    home, away = snapshot.home.goals, snapshot.away.goals
    if None in (start_home, start_away, home, away):
        return None

    home_scored = home > start_home
    away_scored = away > start_away
    if not home_scored and not away_scored:
        return None
    if home_scored and away_scored:
        # Both scored between polls; the order is unknowable
        return LOST
    scorer = "home" if home_scored else "away"
    return WON if scorer == side else LOST


def _decide_half_time(spec: OutcomeSpec, snapshot: MatchSnapshot) -> Optional[TicketStatus]:
    if not snapshot.is_half_time:
        return None

    family = spec.family
    if family in (OutcomeFamily.HT_RESULT, OutcomeFamily.HT_GOALS_OVER, OutcomeFamily.HT_GOALS_UNDER):
        home, away = _first_half(snapshot, "goals_first_half", "goals")
    else:
        home, away = _first_half(snapshot, "corners_first_half", "corners")

    if family == OutcomeFamily.HT_RESULT:
        side = _result_side(home, away)
        if side is None:
            return None
        return WON if side == spec.side else LOST

    total = _total(home, away)
    if total is None:
        return None
    if family in (OutcomeFamily.HT_GOALS_OVER, OutcomeFamily.HT_CORNERS_OVER):
        return WON if total > spec.line else LOST
    return WON if total < spec.line else LOST


def decide(ticket: BetTicket, snapshot: MatchSnapshot) -> Optional[TicketStatus]:
    """
    Decide a PENDING ticket against a snapshot of its match.

    Returns:
        WON, LOST, or None if the ticket stays PENDING
    """
    spec = ticket.target_outcome.spec
    family = spec.family
    finished = snapshot.is_finished
    goals = _total(snapshot.home.goals, snapshot.away.goals)
    corners = _total(snapshot.home.corners, snapshot.away.corners)

    decision: Optional[TicketStatus] = None
    if family.is_half_time:
        decision = _decide_half_time(spec, snapshot)
    elif family == OutcomeFamily.GOALS_OVER:
        decision = _over(goals, spec.line)
    elif family == OutcomeFamily.GOALS_UNDER:
        decision = _under(goals, spec.line, finished)
    elif family == OutcomeFamily.CORNERS_OVER:
        decision = _over(corners, spec.line)
    elif family == OutcomeFamily.CORNERS_UNDER:
        decision = _under(corners, spec.line, finished)
    elif family == OutcomeFamily.BTTS:
        home, away = snapshot.home.goals, snapshot.away.goals
        if home is not None and away is not None and home >= 1 and away >= 1:
            decision = WON
    elif family == OutcomeFamily.MATCH_RESULT:
        if finished and _result_side(*snapshot.score) == spec.side:
            decision = WON
    elif family == OutcomeFamily.NEXT_GOAL:
        decision = _next_goal(ticket, snapshot, spec.side)

    if decision is None and finished:
        return LOST
    return decision


def half_time_score(snapshot: MatchSnapshot) -> Optional[str]:
    home, away = _first_half(snapshot, "goals_first_half", "goals")
    if home is None or away is None:
        return None
    return f"{home}-{away}"


def full_time_score(snapshot: MatchSnapshot) -> Optional[str]:
    home, away = snapshot.score
    if not snapshot.is_finished or home is None or away is None:
        return None
    return f"{home}-{away}"


@dataclass(frozen=True)
class Settlement:
    """A settled ticket together with the snapshot that settled it."""

    ticket: BetTicket
    snapshot: MatchSnapshot

    @property
    def won(self) -> bool:
        return self.ticket.status == WON


class SettlementEngine:
    """
    Advances PENDING tickets to WON/LOST.

    Pure computation: returns settled copies and never mutates its inputs.

    Usage:
        engine = SettlementEngine()
        settlements = engine.settle_batch(pending_tickets, snapshots_by_match)
    """

    def __init__(self) -> None:
        self._reported_postponed: set[str] = set()

    def settle(
        self,
        ticket: BetTicket,
        snapshot: MatchSnapshot,
        now: Optional[datetime] = None,
    ) -> Optional[BetTicket]:
        """
        Settle one ticket if the snapshot decides it.

        Returns:
            Settled copy of the ticket, or None if it stays PENDING
        """
        if ticket.is_settled or ticket.match_id != snapshot.match_id:
            return None

        status = decide(ticket, snapshot)
        if status is None:
            return None

        settled = ticket.settle(
            status,
            result_time=now or datetime.now(timezone.utc),
            ht_score=half_time_score(snapshot),
            ft_score=full_time_score(snapshot),
        )
        logger.info(
            f"Ticket {ticket.id} ({ticket.target_outcome.value}) "
            f"{ticket.home_team} vs {ticket.away_team}: {status.value}"
        )
        return settled

    def settle_batch(
        self,
        tickets: Iterable[BetTicket],
        snapshots: Mapping[str, MatchSnapshot],
        now: Optional[datetime] = None,
    ) -> list[Settlement]:
        """Settle every pending ticket whose match appears in the batch."""
        now = now or datetime.now(timezone.utc)
        settlements = []
        for ticket in tickets:
            snapshot = snapshots.get(ticket.match_id)
            if snapshot is None:
                continue
            settled = self.settle(ticket, snapshot, now)
            if settled is not None:
                settlements.append(Settlement(settled, snapshot))
            elif snapshot.phase == MatchPhase.POSTPONED and not ticket.is_settled:
                self._report_postponed(ticket)
        return settlements

    def _report_postponed(self, ticket: BetTicket) -> None:
        if ticket.id in self._reported_postponed:
            return
        self._reported_postponed.add(ticket.id)
        logger.warning(
            f"Ticket {ticket.id}: {ticket.home_team} vs {ticket.away_team} "
            f"({ticket.match_id}) is postponed or abandoned; ticket stays PENDING"
        )
