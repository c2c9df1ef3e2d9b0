"""FPL API client with rate limiting for league statistics.

Three read operations feed the statistics pipeline: standings pages, manager
season history and gameweek picks. Every failure is raised as a FetchError
subclass so callers can choose to abort or degrade without knowing httpx.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from league_stats.services.player_names import PlayerNameCache, parse_player_names

logger = logging.getLogger(__name__)

FPL_BASE_URL = "https://fantasy.premierleague.com/api"

# Throttling (429) and gateway errors are retried; other 4xx are final
TRANSIENT_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
TRANSIENT_TRANSPORT_ERRORS = (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)
MAX_ATTEMPTS = 3

USER_AGENT = "fpl-league-stats/0.1"

SEASON_GAMEWEEKS = 38

T = TypeVar("T")


# =============================================================================
# Errors
# =============================================================================


class FetchError(Exception):
    """Base class for all failures reading from the FPL API."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class InvalidRequestError(FetchError):
    """Identifiers were rejected before any request was sent."""


class NoResponseError(FetchError):
    """Transport failure: timeout, refused connection, reset."""


class DecodeError(FetchError):
    """Response body was not JSON or did not have the expected shape."""


class UpstreamError(FetchError):
    """FPL API answered with a non-2xx status."""

    def __init__(self, status_code: int, path: str | None = None):
        super().__init__(f"FPL API returned {status_code} for {path}", path)
        self.status_code = status_code


class UnknownFetchError(FetchError):
    """Any other client failure. The original exception is the __cause__."""


# =============================================================================
# Helpers
# =============================================================================


def _as_int(value: Any, default: int = 0) -> int:
    """Lenient int for numeric fields the API sometimes sends as null or ''."""
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in TRANSIENT_STATUS_CODES
    return isinstance(exc, TRANSIENT_TRANSPORT_ERRORS)


def _require_positive(name: str, value: int) -> None:
    if value <= 0:
        raise InvalidRequestError(f"{name} must be a positive integer, got {value}")


# =============================================================================
# Response types
# =============================================================================


@dataclass(slots=True)
class StandingsEntry:
    """One row of a classic league standings page."""

    entry_id: int
    entry_name: str
    player_name: str
    event_total: int
    rank: int
    last_rank: int
    rank_sort: int
    total: int


@dataclass(slots=True)
class StandingsPage:
    """One page of classic league standings."""

    league_id: int
    league_name: str | None
    page: int
    results: list[StandingsEntry]
    has_next: bool


@dataclass(slots=True)
class GameweekHistoryEntry:
    """One gameweek from /entry/{id}/history/ `current`."""

    event: int
    points: int
    total_points: int
    rank: int
    rank_sort: int
    overall_rank: int
    bank: int
    value: int
    event_transfers: int
    event_transfers_cost: int
    points_on_bench: int


@dataclass(slots=True)
class ChipPlay:
    """A chip activation as reported by the API (no points breakdown)."""

    name: str  # "wildcard", "bboost", "3xc", "freehit"
    event: int
    time: str | None = None


@dataclass(slots=True)
class ManagerHistory:
    """A manager's current-season history and chip plays."""

    entry_id: int
    current: list[GameweekHistoryEntry]
    chips: list[ChipPlay]


@dataclass(slots=True)
class Pick:
    element: int  # Player id
    position: int
    multiplier: int
    is_captain: bool
    is_vice_captain: bool


@dataclass(slots=True)
class GameweekPicks:
    """A manager's squad for one gameweek."""

    entry_id: int
    gameweek: int
    picks: list[Pick]
    active_chip: str | None
    entry_history_points: int

    @property
    def captain(self) -> Pick | None:
        for pick in self.picks:
            if pick.is_captain:
                return pick
        return None


# =============================================================================
# Parsers
# =============================================================================


def _parse_standings_page(league_id: int, page: int, data: dict[str, Any]) -> StandingsPage:
    standings = data["standings"]
    results = []
    for entry in standings["results"]:
        entry_id = _as_int(entry.get("entry"))
        # Filter out invalid entries (entry_id=0 means parsing failed)
        if entry_id <= 0:
            logger.warning(f"Skipping invalid entry in league {league_id}: {entry}")
            continue

        results.append(
            StandingsEntry(
                entry_id=entry_id,
                entry_name=entry.get("entry_name") or "",
                player_name=entry.get("player_name") or "",
                event_total=_as_int(entry.get("event_total")),
                rank=_as_int(entry.get("rank")),
                last_rank=_as_int(entry.get("last_rank")),
                rank_sort=_as_int(entry.get("rank_sort")),
                total=_as_int(entry.get("total")),
            )
        )

    league_info = data.get("league") or {}
    return StandingsPage(
        league_id=league_id,
        league_name=league_info.get("name"),
        page=page,
        results=results,
        has_next=bool(standings.get("has_next", False)),
    )


def _parse_manager_history(entry_id: int, data: dict[str, Any]) -> ManagerHistory:
    current = [
        GameweekHistoryEntry(
            event=int(h["event"]),
            points=_as_int(h.get("points")),
            total_points=_as_int(h.get("total_points")),
            rank=_as_int(h.get("rank")),
            rank_sort=_as_int(h.get("rank_sort")),
            overall_rank=_as_int(h.get("overall_rank")),
            bank=_as_int(h.get("bank")),
            value=_as_int(h.get("value")),
            event_transfers=_as_int(h.get("event_transfers")),
            event_transfers_cost=_as_int(h.get("event_transfers_cost")),
            points_on_bench=_as_int(h.get("points_on_bench")),
        )
        for h in data["current"]
    ]

    chips = []
    for chip in data.get("chips") or []:
        name = chip.get("name", "")
        event = _as_int(chip.get("event"))
        if name and event > 0:
            chips.append(ChipPlay(name=name, event=event, time=chip.get("time")))

    return ManagerHistory(entry_id=entry_id, current=current, chips=chips)


def _parse_gameweek_picks(entry_id: int, gameweek: int, data: dict[str, Any]) -> GameweekPicks:
    picks = [
        Pick(
            element=int(p["element"]),
            position=_as_int(p.get("position")),
            multiplier=_as_int(p.get("multiplier"), default=1),
            is_captain=bool(p.get("is_captain", False)),
            is_vice_captain=bool(p.get("is_vice_captain", False)),
        )
        for p in data["picks"]
    ]
    entry_history = data.get("entry_history") or {}
    return GameweekPicks(
        entry_id=entry_id,
        gameweek=gameweek,
        picks=picks,
        active_chip=data.get("active_chip"),
        entry_history_points=_as_int(entry_history.get("points")),
    )


# =============================================================================
# Client
# =============================================================================


class FplApiClient:
    """
    Async reader for the public FPL API.

    Requests share one httpx connection pool and are throttled two ways:
    a semaphore caps how many are in flight, and each request takes the next
    free slot on a fixed interval. The API has no documented limits; in
    practice bursts beyond ~10 concurrent requests start returning 503.
    """

    def __init__(
        self,
        requests_per_second: float = 10.0,
        max_concurrent: int = 10,
        base_url: str = FPL_BASE_URL,
        timeout: float = 30.0,
        player_names: PlayerNameCache | None = None,
    ):
        """
        Args:
            requests_per_second: Request start rate (10.0 = one every 100ms)
            max_concurrent: Requests allowed in flight at once
            base_url: FPL API root; a trailing slash is optional
            timeout: Per-request timeout in seconds
            player_names: Cache for get_player_names (a fresh one if omitted)
        """
        if requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be positive, got {requests_per_second}")
        self.base_url = base_url.rstrip("/")
        self.interval = 1.0 / requests_per_second
        self.timeout = timeout
        self.player_names = player_names or PlayerNameCache()
        self._in_flight = asyncio.Semaphore(max_concurrent)
        self._next_slot = 0.0
        self._throttle_lock = asyncio.Lock()
        self._client_lock = asyncio.Lock()
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "FplApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _http(self) -> httpx.AsyncClient:
        """The shared httpx client, created on first use."""
        if self._client is None:
            async with self._client_lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        base_url=f"{self.base_url}/",
                        timeout=self.timeout,
                        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
                    )
        return self._client

    async def close(self) -> None:
        """Release the connection pool. The client can still be used afterwards."""
        async with self._client_lock:
            client, self._client = self._client, None
        if client is not None:
            await client.aclose()

    async def _throttle(self) -> None:
        """Wait for this request's start slot; slots are `interval` apart."""
        async with self._throttle_lock:
            now = time.monotonic()
            slot = max(now, self._next_slot)
            self._next_slot = slot + self.interval
        if slot > now:
            await asyncio.sleep(slot - now)

    @retry(
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        retry=retry_if_exception(_is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """One throttled GET returning decoded JSON; transient failures are retried."""
        async with self._in_flight:
            await self._throttle()
            client = await self._http()
            response = await client.get(path, params=params)
            response.raise_for_status()
            return response.json()

    async def _fetch(
        self,
        path: str,
        parse: Callable[[Any], T],
        params: dict[str, Any] | None = None,
    ) -> T:
        """GET `path` and parse the body, mapping every failure to FetchError."""
        try:
            data = await self._get(path, params)
        except httpx.HTTPStatusError as e:
            raise UpstreamError(e.response.status_code, path) from e
        except httpx.TransportError as e:
            raise NoResponseError(f"No response from FPL API for {path}: {e!r}", path) from e
        except ValueError as e:
            # response.json() raises json.JSONDecodeError, a ValueError
            raise DecodeError(f"Invalid JSON from FPL API for {path}: {e}", path) from e
        except httpx.HTTPError as e:
            raise UnknownFetchError(f"Request to {path} failed: {e!r}", path) from e

        try:
            return parse(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(
                f"Unexpected response shape for {path}: {type(e).__name__}: {e}", path
            ) from e

    async def get_standings_page(self, league_id: int, page: int) -> StandingsPage:
        """One page (up to 50 rows) of a classic league's standings."""
        _require_positive("league_id", league_id)
        _require_positive("page", page)
        return await self._fetch(
            f"leagues-classic/{league_id}/standings/",
            lambda data: _parse_standings_page(league_id, page, data),
            params={"page_standings": page},
        )

    async def get_manager_history(self, entry_id: int) -> ManagerHistory:
        """Current-season gameweeks and chip plays for one manager.

        The response's `past` (previous seasons summary) is ignored.
        """
        _require_positive("entry_id", entry_id)
        return await self._fetch(
            f"entry/{entry_id}/history/",
            lambda data: _parse_manager_history(entry_id, data),
        )

    async def get_gameweek_picks(self, entry_id: int, gameweek: int) -> GameweekPicks:
        """Fetch a manager's picks for one gameweek."""
        _require_positive("entry_id", entry_id)
        if not 1 <= gameweek <= SEASON_GAMEWEEKS:
            raise InvalidRequestError(
                f"gameweek must be between 1 and {SEASON_GAMEWEEKS}, got {gameweek}"
            )
        return await self._fetch(
            f"entry/{entry_id}/event/{gameweek}/picks/",
            lambda data: _parse_gameweek_picks(entry_id, gameweek, data),
        )

    async def get_player_names(self) -> dict[int, str]:
        """
        Map player id to web_name from bootstrap-static.

        Served from the client's PlayerNameCache so repeated league loads
        don't re-download the ~1.8MB player database.
        """
        return await self.player_names.get(
            lambda: self._fetch("bootstrap-static/", parse_player_names)
        )
