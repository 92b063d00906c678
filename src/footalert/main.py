"""
footalert service entry point.

Each cycle fetches live matches, runs every active strategy against them,
issues a bet ticket when a strategy fires and settles pending tickets as
their matches progress.

Usage:
    python -m footalert.main                 # poll API-Football every 60s
    python -m footalert.main --demo          # simulated match feed
    python -m footalert.main --once          # one cycle, then exit
    python -m footalert.main --interval 30   # custom poll interval

Settings (environment, or a .env file in the working directory):
    DATABASE_URL              PostgreSQL DSN (required)
    API_FOOTBALL_KEY          API-Football key (required without --demo)
    USE_DEMO_DATA             "true" selects the simulated feed
    POLL_INTERVAL_SECONDS     seconds between cycles (default 60)
    FALLBACK_ODDS             odds stored when no live market matches (default 1.90)
    OWNER_ID                  restrict evaluation to one user's strategies
    TELEGRAM_BOT_TOKEN        Telegram bot token
    TELEGRAM_CHAT_ID          Telegram chat receiving alerts
    LOG_LEVEL                 DEBUG, INFO, WARNING or ERROR
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import math
import os
import signal
import sys
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Optional

logging.basicConfig(
    level=getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

from footalert.core import (  # noqa: E402
    AlertEngine,
    EngineConfig,
    MatchFeed,
    PollingConfig,
    PollingLoop,
)
from footalert.ingestion import ApiFootballClient, DemoMatchFeed  # noqa: E402
from footalert.monitoring import AlertManager  # noqa: E402
from footalert.storage import (  # noqa: E402
    Database,
    DatabaseConfig,
    StrategyRepository,
    TicketRepository,
)

TRUTHY = ("1", "true", "yes")


def _env(name: str) -> Optional[str]:
    """Environment value, with empty strings treated as unset."""
    return os.environ.get(name) or None


def _env_number(name: str, default: str, parse, invalid: list[str]):
    """Parse a numeric setting; a bad value is recorded and the default used."""
    raw = os.environ.get(name) or default
    try:
        value = parse(raw)
        if not math.isfinite(value):
            raise ValueError(raw)
        return value
    except (ValueError, InvalidOperation):
        invalid.append(f"{name} must be a number, got {raw!r}")
        return parse(default)


@dataclass
class AppConfig:
    """Service settings, normally read from the environment."""

    database_url: str = ""
    api_football_key: Optional[str] = None
    use_demo_data: bool = False
    poll_interval_seconds: float = 60.0
    fallback_odds: Decimal = Decimal("1.90")
    owner_id: Optional[str] = None
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None

    # Settings from the environment that could not be parsed
    invalid: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "AppConfig":
        invalid: list[str] = []
        return cls(
            database_url=os.environ.get("DATABASE_URL", ""),
            api_football_key=_env("API_FOOTBALL_KEY"),
            use_demo_data=os.environ.get("USE_DEMO_DATA", "").lower() in TRUTHY,
            poll_interval_seconds=_env_number("POLL_INTERVAL_SECONDS", "60", float, invalid),
            fallback_odds=_env_number("FALLBACK_ODDS", "1.90", Decimal, invalid),
            owner_id=_env("OWNER_ID"),
            telegram_bot_token=_env("TELEGRAM_BOT_TOKEN"),
            telegram_chat_id=_env("TELEGRAM_CHAT_ID"),
            invalid=invalid,
        )

    def problems(self) -> list[str]:
        """Settings that prevent startup."""
        found = list(self.invalid)
        if not self.poll_interval_seconds > 0:
            found.append("POLL_INTERVAL_SECONDS must be greater than 0")
        if not self.fallback_odds > 1:
            found.append("FALLBACK_ODDS must be greater than 1")
        if not self.database_url:
            found.append("DATABASE_URL environment variable is required")
        if not self.use_demo_data and not self.api_football_key:
            found.append("API_FOOTBALL_KEY is required (or run with --demo)")
        return found


class AlertService:
    """
    Owns the service's components and their lifetimes.

    Start order is database, feed, engine, polling loop; stop() releases
    them in reverse.
    """

    def __init__(self, config: AppConfig):
        self.config = config
        self._stopping = asyncio.Event()

        self._db: Optional[Database] = None
        self._feed: Optional[MatchFeed] = None
        self._engine: Optional[AlertEngine] = None
        self._loop: Optional[PollingLoop] = None

    async def start(self, once: bool = False) -> None:
        """Bring everything up, then poll until a shutdown is requested."""
        feed_name = "demo" if self.config.use_demo_data else "API-Football"
        logger.info(
            f"Starting football alert engine (feed={feed_name}, "
            f"interval={self.config.poll_interval_seconds}s)"
        )
        self._install_signal_handlers()

        try:
            await self._init_database()
            self._init_feed()
            await self._init_engine()
            self._loop = PollingLoop(
                self._feed,
                self._engine,
                PollingConfig(poll_interval_seconds=self.config.poll_interval_seconds),
            )

            if once:
                await self._single_cycle()
            else:
                await self._loop.start()
                await self._stopping.wait()
        finally:
            await self.stop()

    async def _single_cycle(self) -> None:
        result = await self._loop.run_once()
        if result is not None:
            logger.info(
                f"Cycle done: {len(result.created)} triggered, {len(result.settled)} settled"
            )

    async def stop(self) -> None:
        logger.info("Stopping football alert engine")

        closers = []
        if self._loop:
            closers.append(("polling loop", self._loop.stop))
        if isinstance(self._feed, ApiFootballClient):
            closers.append(("API client", self._feed.close))
        if self._db:
            closers.append(("database", self._db.close))

        for name, close in closers:
            try:
                await close()
            except Exception as e:
                logger.warning(f"Failed to close {name}: {e}")

        if self._engine:
            s = self._engine.stats
            logger.info(
                f"Totals: ticks={s.ticks} triggers={s.triggers} won={s.tickets_won} "
                f"lost={s.tickets_lost} persistence_errors={s.persistence_errors}"
            )
        logger.info("Stopped")

    def request_shutdown(self) -> None:
        self._stopping.set()

    async def _init_database(self) -> None:
        if not self.config.database_url:
            raise ValueError("DATABASE_URL environment variable is required")

        self._db = Database(DatabaseConfig(url=self.config.database_url))
        await self._db.initialize()
        await self._db.apply_schema()
        if not await self._db.health_check():
            raise RuntimeError("Database health check failed")
        logger.info("Database ready")

    def _init_feed(self) -> None:
        if self.config.use_demo_data:
            self._feed = DemoMatchFeed()
        elif self.config.api_football_key:
            self._feed = ApiFootballClient(self.config.api_football_key)
        else:
            raise ValueError("API_FOOTBALL_KEY is required unless USE_DEMO_DATA=true")
        logger.info(f"Feed: {type(self._feed).__name__}")

    async def _init_engine(self) -> None:
        notifier = AlertManager(
            telegram_bot_token=self.config.telegram_bot_token,
            telegram_chat_id=self.config.telegram_chat_id,
        )
        if not notifier.telegram_enabled:
            logger.info("Telegram not configured; alerts will only be logged")

        self._engine = AlertEngine(
            StrategyRepository(self._db),
            TicketRepository(self._db),
            notifier=notifier,
            config=EngineConfig(
                fallback_odds=self.config.fallback_odds,
                owner_id=self.config.owner_id,
            ),
        )
        await self._engine.load()
        logger.info(
            f"Engine loaded {len(self._engine.strategies)} strategies and "
            f"{len(self._engine.pending_tickets)} pending tickets"
        )

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except NotImplementedError:
                # not available on Windows event loops
                return

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info(f"Got {sig.name}, shutting down")
        self._stopping.set()


def load_env_file(path: str = ".env") -> None:
    """Copy KEY=value pairs from a .env file into os.environ without overriding."""
    env_path = Path(path)
    if not env_path.is_file():
        return

    logger.info(f"Reading settings from {env_path}")
    for raw in env_path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if sep:
            os.environ.setdefault(key.strip(), value.strip().strip("'\""))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="footalert",
        description="Football strategy alert engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--once", action="store_true", help="run one cycle and exit")
    parser.add_argument(
        "--demo", action="store_true", help="use the simulated feed instead of API-Football"
    )
    parser.add_argument(
        "--interval", type=float, help="seconds between cycles (overrides POLL_INTERVAL_SECONDS)"
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="log level override"
    )
    return parser.parse_args(argv)


async def main_async(args: argparse.Namespace) -> int:
    """Build the config from environment plus flags and run the service."""
    config = AppConfig.from_env()
    if args.demo:
        config.use_demo_data = True
    if args.interval is not None:
        config.poll_interval_seconds = args.interval

    problems = config.problems()
    for problem in problems:
        logger.error(problem)
    if problems:
        return 1

    try:
        await AlertService(config).start(once=args.once)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1
    return 0


def main() -> int:
    load_env_file()
    args = parse_args()
    if args.log_level:
        logging.getLogger().setLevel(args.log_level)

    try:
        return asyncio.run(main_async(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
