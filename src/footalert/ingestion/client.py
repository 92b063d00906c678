"""
REST client for API-Football (v3.football.api-sports.io).

Builds MatchSnapshot batches from three endpoints:
    /fixtures?live=all            live fixtures, score, phase, minute
    /fixtures?ids=a-b-c           matches that have left the live list
    /fixtures/statistics?fixture= per-side live statistics
    /teams/statistics             season aggregates (cached per team/league/season)

Following matches to the end:
    live=all only lists matches in play, so a match drops out of it the
    moment it finishes. Every match seen in play is remembered and, once
    it leaves the live list, fetched by id on each poll until the provider
    reports it closed (finished, postponed, cancelled or abandoned). The
    final snapshot is what settles its tickets.

First-half corners:
    The provider has no first-half corner count. The corner totals seen
    while the match is at HALF_TIME are kept and reported as
    corners_first_half for the rest of the match. A match first seen in
    the second half has no first-half corners.

Degradation:
    A failed statistics call leaves that match's stats null rather than
    dropping the match; a failed team-statistics call leaves the pre-match
    block null. Only a failure of the fixture list fails the whole fetch.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import aiohttp

from .models import MatchPhase, MatchSnapshot, PreMatchTeamStats, TeamStats

logger = logging.getLogger(__name__)


class FootballAPIError(Exception):
    """Base exception for API-Football errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(FootballAPIError):
    """Rate limit exceeded."""
    pass


# =============================================================================
# PARSING
# =============================================================================

# API-Football statistic "type" labels
_STAT_FIELDS = {
    "Corner Kicks": "corners",
    "Shots on Goal": "shots_on_target",
    "Shots off Goal": "shots_off_target",
    "Attacks": "attacks",
    "Dangerous Attacks": "dangerous_attacks",
    "Ball Possession": "possession",
    "Yellow Cards": "yellow_cards",
    "Red Cards": "red_cards",
    "expected_goals": "expected_goals",
}

_FLOAT_FIELDS = {"possession", "expected_goals"}

# Short status codes after which a match is no longer followed
CLOSED_STATUS_CODES = frozenset(["FT", "AET", "PEN", "PST", "CANC", "ABD", "AWD", "WO"])


def parse_stat_value(value: Any) -> Optional[float]:
    """
    Parse one statistic value.

    Numbers pass through, strings like "55%" or "1.23" are parsed, and
    anything else (None, "", garbage) is None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace("%", "").strip())
        except ValueError:
            return None
    return None


def _as_int(value: Optional[float]) -> Optional[int]:
    return None if value is None else int(value)


def parse_team_stats(
    statistics: Optional[list[dict]],
    goals: Optional[int],
    goals_first_half: Optional[int],
) -> TeamStats:
    """Build TeamStats from a fixtures/statistics entry (may be missing)."""
    values: dict[str, Any] = {}
    for entry in statistics or []:
        field_name = _STAT_FIELDS.get(entry.get("type"))
        if field_name is None:
            continue
        parsed = parse_stat_value(entry.get("value"))
        values[field_name] = parsed if field_name in _FLOAT_FIELDS else _as_int(parsed)
    return TeamStats(goals=goals, goals_first_half=goals_first_half, **values)


def _percentage(count: Any, total: Any) -> Optional[float]:
    if not isinstance(count, (int, float)) or not isinstance(total, (int, float)) or total <= 0:
        return None
    return round(count / total * 100, 1)


def parse_team_statistics(data: Optional[dict]) -> PreMatchTeamStats:
    """Build PreMatchTeamStats from a teams/statistics response body."""
    if not data:
        return PreMatchTeamStats()

    goals = data.get("goals") or {}
    played = ((data.get("fixtures") or {}).get("played") or {}).get("total")
    form = data.get("form")

    return PreMatchTeamStats(
        avg_goals_scored=parse_stat_value(
            ((goals.get("for") or {}).get("average") or {}).get("total")
        ),
        avg_goals_conceded=parse_stat_value(
            ((goals.get("against") or {}).get("average") or {}).get("total")
        ),
        last5_form=form[-5:] if form else None,
        clean_sheet_percentage=_percentage(
            (data.get("clean_sheet") or {}).get("total"), played
        ),
        failed_to_score_percentage=_percentage(
            (data.get("failed_to_score") or {}).get("total"), played
        ),
    )


def fixture_id_of(item: dict) -> Optional[int]:
    return (item.get("fixture") or {}).get("id")


def status_code_of(item: dict) -> str:
    return (((item.get("fixture") or {}).get("status") or {}).get("short") or "").upper()


def parse_fixture(
    item: dict,
    home_statistics: Optional[list[dict]] = None,
    away_statistics: Optional[list[dict]] = None,
    pre_home: Optional[PreMatchTeamStats] = None,
    pre_away: Optional[PreMatchTeamStats] = None,
) -> MatchSnapshot:
    """Build a MatchSnapshot from a /fixtures item plus optional extras."""
    fixture = item.get("fixture") or {}
    status = fixture.get("status") or {}
    league = item.get("league") or {}
    teams = item.get("teams") or {}
    goals = item.get("goals") or {}
    halftime = (item.get("score") or {}).get("halftime") or {}

    minute = status.get("elapsed")
    timestamp = fixture.get("timestamp")

    return MatchSnapshot(
        match_id=str(fixture.get("id")),
        home_team=(teams.get("home") or {}).get("name", ""),
        away_team=(teams.get("away") or {}).get("name", ""),
        phase=MatchPhase.from_provider_code(status.get("short"), minute),
        minute=minute,
        league=league.get("name", ""),
        country=league.get("country", ""),
        start_time=(
            datetime.fromtimestamp(timestamp, tz=timezone.utc) if timestamp else None
        ),
        home=parse_team_stats(home_statistics, goals.get("home"), halftime.get("home")),
        away=parse_team_stats(away_statistics, goals.get("away"), halftime.get("away")),
        pre_home=pre_home or PreMatchTeamStats(),
        pre_away=pre_away or PreMatchTeamStats(),
    )


# =============================================================================
# CLIENT
# =============================================================================


class ApiFootballClient:
    """
    Async REST client for API-Football.

    Features:
        - Rate limiting to avoid API throttling
        - Automatic retries with exponential backoff
        - Season statistics cached per (season, team, league)

    Usage:
        async with ApiFootballClient(api_key) as client:
            snapshots = await client.fetch_snapshots()
    """

    BASE_URL = "https://v3.football.api-sports.io"
    API_HOST = "v3.football.api-sports.io"
    IDS_PER_REQUEST = 20  # provider limit for /fixtures?ids=

    def __init__(
        self,
        api_key: str,
        session: Optional[aiohttp.ClientSession] = None,
        rate_limit: float = 4.0,  # requests per second
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        fetch_pre_match: bool = True,
    ):
        if not api_key:
            raise ValueError("API-Football key is required")
        self._api_key = api_key
        self._session = session
        self._owns_session = session is None
        self._rate_limit = rate_limit
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._fetch_pre_match = fetch_pre_match

        self._request_times: list[float] = []
        self._rate_lock = asyncio.Lock()
        self._team_cache: dict[tuple[int, int, int], PreMatchTeamStats] = {}

        # Matches seen in play and not yet closed
        self._followed: set[int] = set()
        self._first_half_corners: dict[int, tuple[Optional[int], Optional[int]]] = {}

    async def __aenter__(self) -> "ApiFootballClient":
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "x-apisports-key": self._api_key,
            "x-rapidapi-key": self._api_key,
            "x-rapidapi-host": self.API_HOST,
        }

    async def _rate_limit_wait(self) -> None:
        """Wait if necessary to respect rate limits."""
        async with self._rate_lock:
            now = time.time()
            self._request_times = [t for t in self._request_times if now - t < 1.0]

            if len(self._request_times) >= self._rate_limit:
                wait_time = 1.0 - (now - self._request_times[0])
                if wait_time > 0:
                    await asyncio.sleep(wait_time)

            self._request_times.append(time.time())

    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        """
        GET an endpoint with rate limiting and retries.

        Returns:
            The "response" member of the JSON body

        Raises:
            FootballAPIError: On API errors (including errors in a 200 body)
            RateLimitError: When still rate limited after retries
            asyncio.CancelledError: When task is cancelled (re-raised)
        """
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True

        url = f"{self.BASE_URL}{path}"
        last_error: Optional[Exception] = None

        for attempt in range(self._max_retries):
            try:
                await self._rate_limit_wait()

                async with self._session.get(url, params=params, headers=self._headers) as response:
                    if response.status == 429:
                        raise RateLimitError("Rate limit exceeded", status_code=429)

                    if 400 <= response.status < 500:
                        text = await response.text()
                        raise FootballAPIError(
                            f"API error: {response.status} - {text}",
                            status_code=response.status,
                        )

                    if response.status >= 500:
                        text = await response.text()
                        raise FootballAPIError(
                            f"Server error: {response.status} - {text}",
                            status_code=response.status,
                        )

                    data = await response.json()

                # API-Football reports quota/permission problems inside 200 bodies
                errors = data.get("errors") if isinstance(data, dict) else None
                if errors:
                    raise FootballAPIError(f"API error: {errors}", status_code=response.status)
                return data.get("response") if isinstance(data, dict) else data

            except RateLimitError as e:
                delay = self._retry_delay * (2 ** attempt) * 2
                logger.warning(f"Rate limited, waiting {delay}s before retry")
                await asyncio.sleep(delay)
                last_error = e

            except FootballAPIError as e:
                if e.status_code and e.status_code >= 500:
                    delay = self._retry_delay * (2 ** attempt)
                    logger.warning(
                        f"Server error {e.status_code}, retry {attempt + 1}/{self._max_retries}"
                    )
                    await asyncio.sleep(delay)
                    last_error = e
                else:
                    raise

            except asyncio.TimeoutError:
                delay = self._retry_delay * (2 ** attempt)
                logger.warning(f"Request timeout, retry {attempt + 1}/{self._max_retries}")
                await asyncio.sleep(delay)
                last_error = FootballAPIError("Request timed out")

            except asyncio.CancelledError:
                logger.debug("Request cancelled")
                raise

            except aiohttp.ClientError as e:
                delay = self._retry_delay * (2 ** attempt)
                logger.warning(f"Request failed: {e}, retry {attempt + 1}/{self._max_retries}")
                await asyncio.sleep(delay)
                last_error = FootballAPIError(str(e))

        raise last_error or FootballAPIError("Request failed after retries")

    # =========================================================================
    # Endpoints
    # =========================================================================

    async def get_live_fixtures(self) -> list[dict]:
        return await self._get("/fixtures", {"live": "all"}) or []

    async def get_fixtures_by_id(self, fixture_ids: Iterable[int]) -> list[dict]:
        ids = sorted(fixture_ids)
        items: list[dict] = []
        for start in range(0, len(ids), self.IDS_PER_REQUEST):
            chunk = ids[start:start + self.IDS_PER_REQUEST]
            params = {"ids": "-".join(str(i) for i in chunk)}
            items.extend(await self._get("/fixtures", params) or [])
        return items

    async def get_fixture_statistics(
        self, fixture_id: int, home_team_id: Optional[int], away_team_id: Optional[int]
    ) -> tuple[Optional[list[dict]], Optional[list[dict]]]:
        """Per-side statistics lists, matched to sides by team id."""
        entries = await self._get("/fixtures/statistics", {"fixture": fixture_id}) or []
        home = away = None
        for entry in entries:
            team_id = (entry.get("team") or {}).get("id")
            if team_id == home_team_id:
                home = entry.get("statistics")
            elif team_id == away_team_id:
                away = entry.get("statistics")
        return home, away

    async def get_team_statistics(
        self, team_id: int, league_id: int, season: int
    ) -> PreMatchTeamStats:
        key = (season, team_id, league_id)
        if key in self._team_cache:
            return self._team_cache[key]

        data = await self._get(
            "/teams/statistics", {"season": season, "team": team_id, "league": league_id}
        )
        stats = parse_team_statistics(data if isinstance(data, dict) else None)
        self._team_cache[key] = stats
        return stats

    async def _pre_match(
        self, team_id: Optional[int], league_id: Optional[int], season: Optional[int]
    ) -> PreMatchTeamStats:
        if not self._fetch_pre_match or None in (team_id, league_id, season):
            return PreMatchTeamStats()
        try:
            return await self.get_team_statistics(team_id, league_id, season)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Pre-match stats unavailable for team {team_id}: {e}")
            return PreMatchTeamStats()

    async def _build_snapshot(self, item: dict) -> MatchSnapshot:
        fixture_id = fixture_id_of(item)
        league = item.get("league") or {}
        teams = item.get("teams") or {}
        home_id = (teams.get("home") or {}).get("id")
        away_id = (teams.get("away") or {}).get("id")

        home_stats = away_stats = None
        try:
            home_stats, away_stats = await self.get_fixture_statistics(fixture_id, home_id, away_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Live stats unavailable for match {fixture_id}: {e}")

        pre_home = await self._pre_match(home_id, league.get("id"), league.get("season"))
        pre_away = await self._pre_match(away_id, league.get("id"), league.get("season"))

        return parse_fixture(item, home_stats, away_stats, pre_home, pre_away)

    async def _departed_fixtures(self, live_ids: set[int]) -> list[dict]:
        """Followed matches missing from the live list, fetched by id."""
        departed = self._followed - live_ids
        if not departed:
            return []
        try:
            items = await self.get_fixtures_by_id(departed)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Still followed; retried on the next poll
            logger.warning(f"Could not fetch {len(departed)} departed fixtures: {e}")
            return []

        for fixture_id in departed - {fixture_id_of(item) for item in items}:
            logger.warning(f"Fixture {fixture_id} no longer known to the provider, not following")
            self._stop_following(fixture_id)
        return items

    def _stop_following(self, fixture_id: int) -> None:
        self._followed.discard(fixture_id)
        self._first_half_corners.pop(fixture_id, None)

    def _follow(self, item: dict, snapshot: MatchSnapshot) -> MatchSnapshot:
        """Update follow state for a fixture and fill in first-half corners."""
        fixture_id = fixture_id_of(item)
        if fixture_id is None:
            return snapshot

        if snapshot.is_half_time:
            self._first_half_corners[fixture_id] = (snapshot.home.corners, snapshot.away.corners)
        home_ht, away_ht = self._first_half_corners.get(fixture_id, (None, None))
        if home_ht is not None or away_ht is not None:
            snapshot = replace(
                snapshot,
                home=replace(snapshot.home, corners_first_half=home_ht),
                away=replace(snapshot.away, corners_first_half=away_ht),
            )

        if status_code_of(item) in CLOSED_STATUS_CODES:
            self._stop_following(fixture_id)
        else:
            self._followed.add(fixture_id)
        return snapshot

    async def fetch_snapshots(self) -> list[MatchSnapshot]:
        """
        Fetch snapshots for every live fixture, plus the followed matches
        that have left the live list since the last poll.

        Raises:
            FootballAPIError: If the live fixture list cannot be fetched
        """
        fixtures = await self.get_live_fixtures()
        live_ids = {fixture_id_of(item) for item in fixtures}
        fixtures = fixtures + await self._departed_fixtures(live_ids)

        snapshots = []
        for item in fixtures:
            try:
                snapshot = await self._build_snapshot(item)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Skipping malformed fixture: {e}")
                continue
            snapshots.append(self._follow(item, snapshot))
        logger.debug(
            f"Built {len(snapshots)} snapshots from {len(fixtures)} fixtures "
            f"({len(self._followed)} followed)"
        )
        return snapshots
