"""
Owner notifications over Telegram.

AlertManager is the engine's Notifier:
    notify_triggered - a strategy fired on a match
    notify_settled   - a ticket settled (only WON tickets are announced)

Both are coroutines; the blocking HTTP call runs in a worker thread.

Each alert may carry a dedup key; a key that was delivered inside its
cooldown window is dropped. With no bot credentials configured, alerts
go to the log instead.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

import requests

if TYPE_CHECKING:
    from footalert.ingestion.models import MatchSnapshot
    from footalert.storage.models import BetTicket, Strategy

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org"


@dataclass
class AlertRecord:
    """Delivery history for one dedup key."""

    key: str
    first_sent: float
    last_sent: float
    count: int = 1


def _lines(*rows: str) -> str:
    return "\n".join(rows)


class AlertManager:
    """
    Telegram notifier with per-key cooldowns.

    Usage:
        notifier = AlertManager(telegram_bot_token=token, telegram_chat_id=chat)
        engine = AlertEngine(strategy_repo, ticket_repo, notifier=notifier)
    """

    DEFAULT_COOLDOWN = 60 * 60

    def __init__(
        self,
        telegram_bot_token: Optional[str] = None,
        telegram_chat_id: Optional[str] = None,
        default_cooldown: int = DEFAULT_COOLDOWN,
        _telegram_api: Optional[Any] = None,
    ) -> None:
        # _telegram_api: any object with send_message(chat_id, text, parse_mode)
        self._token = telegram_bot_token
        self._chat = telegram_chat_id
        self._cooldown = default_cooldown
        self._client = _telegram_api
        self._history: Dict[str, AlertRecord] = {}

    @property
    def telegram_enabled(self) -> bool:
        return self._client is not None or bool(self._token and self._chat)

    def send_alert(
        self,
        title: str,
        message: str,
        dedup_key: Optional[str] = None,
        cooldown_seconds: Optional[int] = None,
    ) -> bool:
        """
        Deliver one alert.

        Returns True when the alert went out (or was logged), False when it
        was suppressed by its cooldown or delivery failed. Failed deliveries
        do not start a cooldown.
        """
        now = time.time()
        if dedup_key and not self._due(dedup_key, cooldown_seconds or self._cooldown, now):
            logger.debug(f"Suppressed repeat alert {dedup_key}")
            return False

        body = message.strip()
        if self.telegram_enabled:
            delivered = self._deliver(f"*{title}*\n\n{body}")
        else:
            logger.info(f"ALERT {title}: {' | '.join(body.splitlines())}")
            delivered = True

        if delivered and dedup_key:
            self._remember(dedup_key, now)
        return delivered

    # =========================================================================
    # Notifier interface
    # =========================================================================

    async def notify_triggered(
        self, strategy: "Strategy", ticket: "BetTicket", snapshot: "MatchSnapshot"
    ) -> bool:
        minute = "-" if ticket.trigger_minute is None else f"{ticket.trigger_minute}'"
        odds = str(ticket.odds_at_trigger)
        if ticket.odds_source != "live":
            odds += " (fallback)"

        text = _lines(
            f"Match: {ticket.home_team} vs {ticket.away_team}",
            f"League: {snapshot.league or '-'}",
            f"Minute: {minute}",
            f"Score: {ticket.initial_score.as_text() or '?-?'}",
            f"Bet: {ticket.target_outcome.label}",
            f"Odds: {odds}",
        )
        return await asyncio.to_thread(
            self.send_alert, f"🔔 {strategy.name}", text, dedup_key=f"trigger_{ticket.id}"
        )

    async def notify_settled(self, strategy: "Strategy", ticket: "BetTicket") -> bool:
        """Only wins are announced; any other status returns False."""
        if ticket.status.value != "WON":
            return False

        text = _lines(
            f"Match: {ticket.home_team} vs {ticket.away_team}",
            f"Bet: {ticket.target_outcome.label} @ {ticket.odds_at_trigger}",
            f"HT: {ticket.ht_score or '-'}  FT: {ticket.ft_score or '-'}",
            f"Strike rate: {strategy.strike_rate:.1f}% "
            f"({strategy.wins}/{strategy.total_settled})",
            f"ROI: {strategy.roi}%",
        )
        return await asyncio.to_thread(
            self.send_alert, f"✅ WON: {strategy.name}", text, dedup_key=f"won_{ticket.id}"
        )

    # =========================================================================
    # Dedup bookkeeping
    # =========================================================================

    def _due(self, key: str, cooldown: int, now: float) -> bool:
        record = self._history.get(key)
        return record is None or now - record.last_sent >= cooldown

    def _remember(self, key: str, now: float) -> None:
        record = self._history.get(key)
        if record is None:
            self._history[key] = AlertRecord(key=key, first_sent=now, last_sent=now)
        else:
            record.last_sent = now
            record.count += 1

    def clear_dedup_cache(self) -> None:
        self._history.clear()

    def get_alert_stats(self) -> Dict[str, int]:
        return {
            "unique_alerts": len(self._history),
            "total_sent": sum(record.count for record in self._history.values()),
        }

    # =========================================================================
    # Delivery
    # =========================================================================

    def _deliver(self, text: str) -> bool:
        if self._client is not None:
            return self._deliver_via_client(text)

        try:
            response = requests.post(
                f"{TELEGRAM_API}/bot{self._token}/sendMessage",
                json={"chat_id": self._chat, "text": text, "parse_mode": "Markdown"},
                timeout=10,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Telegram delivery failed: {e}")
            return False
        logger.info(f"Telegram alert delivered: {text.splitlines()[0]}")
        return True

    def _deliver_via_client(self, text: str) -> bool:
        try:
            self._client.send_message(chat_id=self._chat, text=text, parse_mode="Markdown")
        except Exception as e:
            logger.error(f"Telegram client error: {e}")
            return False
        return True
