"""Tests for FPL API client with mocked HTTP responses."""

import httpx
import pytest
import respx
from httpx import Response
from tenacity import wait_none

from league_stats.services.fpl_client import (
    DecodeError,
    FplApiClient,
    GameweekPicks,
    InvalidRequestError,
    ManagerHistory,
    NoResponseError,
    StandingsPage,
    UpstreamError,
)
from tests.conftest import history_payload, picks_payload, standings_payload

BASE = "https://fantasy.premierleague.com/api"
STANDINGS_URL = f"{BASE}/leagues-classic/314/standings/?page_standings=1"
HISTORY_URL = f"{BASE}/entry/42/history/"


@pytest.fixture
def fpl_client():
    """Create FPL client for testing."""
    # Fast rate for tests (no waiting)
    return FplApiClient(requests_per_second=1000.0, max_concurrent=10)


@pytest.fixture
def no_retry_wait(monkeypatch: pytest.MonkeyPatch):
    """Skip tenacity backoff so retry tests run instantly."""
    monkeypatch.setattr(FplApiClient._get.retry, "wait", wait_none())


class TestFplClientStandings:
    """Tests for leagues-classic standings endpoint."""

    @respx.mock
    async def test_get_standings_page_parses_results(self, fpl_client: FplApiClient):
        """Should parse league name, members and pagination flag."""
        respx.get(STANDINGS_URL).mock(
            return_value=Response(200, json=standings_payload([11, 22], has_next=True))
        )

        result = await fpl_client.get_standings_page(314, 1)
        await fpl_client.close()

        assert isinstance(result, StandingsPage)
        assert result.league_name == "Test League"
        assert result.has_next is True
        assert [e.entry_id for e in result.results] == [11, 22]
        assert result.results[0].entry_name == "Team 11"
        assert result.results[0].player_name == "Manager 11"
        assert result.results[1].rank == 2
        assert result.results[1].last_rank == 3

    @respx.mock
    async def test_skips_entries_without_entry_id(self, fpl_client: FplApiClient):
        """Rows with a missing/zero entry id should be dropped."""
        payload = standings_payload([11, 22])
        payload["standings"]["results"][1]["entry"] = None
        respx.get(STANDINGS_URL).mock(return_value=Response(200, json=payload))

        result = await fpl_client.get_standings_page(314, 1)
        await fpl_client.close()

        assert [e.entry_id for e in result.results] == [11]

    @respx.mock
    async def test_missing_standings_is_decode_error(self, fpl_client: FplApiClient):
        """A body without standings should raise DecodeError."""
        respx.get(STANDINGS_URL).mock(return_value=Response(200, json={"league": {}}))

        with pytest.raises(DecodeError):
            await fpl_client.get_standings_page(314, 1)
        await fpl_client.close()

    async def test_rejects_non_positive_league_id(self, fpl_client: FplApiClient):
        """Invalid ids should fail before any request is made."""
        with pytest.raises(InvalidRequestError):
            await fpl_client.get_standings_page(0, 1)

        assert fpl_client._client is None


class TestFplClientManagerHistory:
    """Tests for entry history endpoint."""

    @respx.mock
    async def test_get_manager_history_parses_current_and_chips(self, fpl_client: FplApiClient):
        """Should parse gameweek history and chip plays."""
        respx.get(HISTORY_URL).mock(
            return_value=Response(
                200,
                json=history_payload(
                    [60, 45],
                    chips=[{"name": "bboost", "time": "2025-09-01T10:00:00Z", "event": 2}],
                    bench=[3, 17],
                ),
            )
        )

        result = await fpl_client.get_manager_history(42)
        await fpl_client.close()

        assert isinstance(result, ManagerHistory)
        assert [gw.event for gw in result.current] == [1, 2]
        assert result.current[1].points == 45
        assert result.current[1].total_points == 105
        assert result.current[1].points_on_bench == 17
        assert len(result.chips) == 1
        assert result.chips[0].name == "bboost"
        assert result.chips[0].event == 2

    @respx.mock
    async def test_null_numeric_fields_default_to_zero(self, fpl_client: FplApiClient):
        """Nulls in numeric fields (e.g. overall_rank early in GW) become 0."""
        payload = history_payload([50])
        payload["current"][0]["overall_rank"] = None
        payload["current"][0]["rank"] = ""
        respx.get(HISTORY_URL).mock(return_value=Response(200, json=payload))

        result = await fpl_client.get_manager_history(42)
        await fpl_client.close()

        assert result.current[0].overall_rank == 0
        assert result.current[0].rank == 0

    @respx.mock
    async def test_skips_invalid_chip_plays(self, fpl_client: FplApiClient):
        """Chip plays without a name or gameweek should be ignored."""
        payload = history_payload(
            [50],
            chips=[
                {"name": "", "time": None, "event": 1},
                {"name": "wildcard", "time": None, "event": None},
                {"name": "freehit", "time": None, "event": 1},
            ],
        )
        respx.get(HISTORY_URL).mock(return_value=Response(200, json=payload))

        result = await fpl_client.get_manager_history(42)
        await fpl_client.close()

        assert [c.name for c in result.chips] == ["freehit"]

    @respx.mock
    async def test_invalid_json_is_decode_error(self, fpl_client: FplApiClient):
        """A non-JSON body should raise DecodeError."""
        respx.get(HISTORY_URL).mock(return_value=Response(200, text="<html>maintenance</html>"))

        with pytest.raises(DecodeError):
            await fpl_client.get_manager_history(42)
        await fpl_client.close()


class TestFplClientPicks:
    """Tests for gameweek picks endpoint."""

    @respx.mock
    async def test_get_gameweek_picks_finds_captain(self, fpl_client: FplApiClient):
        """Should parse picks and expose the captain."""
        respx.get(f"{BASE}/entry/42/event/7/picks/").mock(
            return_value=Response(200, json=picks_payload(captain=105, points=92))
        )

        result = await fpl_client.get_gameweek_picks(42, 7)
        await fpl_client.close()

        assert isinstance(result, GameweekPicks)
        assert len(result.picks) == 15
        assert result.active_chip == "3xc"
        assert result.entry_history_points == 92
        assert result.captain is not None
        assert result.captain.element == 105
        assert result.captain.multiplier == 3

    @respx.mock
    async def test_captain_is_none_without_captain_pick(self, fpl_client: FplApiClient):
        respx.get(f"{BASE}/entry/42/event/7/picks/").mock(
            return_value=Response(200, json=picks_payload(captain=999))
        )

        result = await fpl_client.get_gameweek_picks(42, 7)
        await fpl_client.close()

        assert result.captain is None

    @pytest.mark.parametrize("gameweek", [0, 39])
    async def test_rejects_gameweek_outside_season(self, fpl_client: FplApiClient, gameweek: int):
        with pytest.raises(InvalidRequestError):
            await fpl_client.get_gameweek_picks(42, gameweek)


class TestFplClientPlayerNames:
    """Tests for bootstrap-static player name lookup."""

    @respx.mock
    async def test_get_player_names_maps_ids(self, fpl_client: FplApiClient):
        route = respx.get(f"{BASE}/bootstrap-static/").mock(
            return_value=Response(
                200,
                json={
                    "elements": [
                        {"id": 1, "web_name": "Salah"},
                        {"id": 2, "web_name": "Haaland"},
                    ],
                    "teams": [],
                    "events": [],
                },
            )
        )

        first = await fpl_client.get_player_names()
        second = await fpl_client.get_player_names()
        await fpl_client.close()

        assert first == {1: "Salah", 2: "Haaland"}
        assert second == first
        assert route.call_count == 1  # Second call served from bootstrap cache


class TestFplClientErrors:
    """Tests for retry behavior and error mapping."""

    @respx.mock
    async def test_retries_on_503(self, fpl_client: FplApiClient, no_retry_wait: None):
        """Should retry on 503 Service Unavailable."""
        route = respx.get(HISTORY_URL)
        route.side_effect = [
            Response(503),
            Response(200, json=history_payload([50])),
        ]

        result = await fpl_client.get_manager_history(42)
        await fpl_client.close()

        assert route.call_count == 2
        assert len(result.current) == 1

    @respx.mock
    async def test_retries_on_timeout(self, fpl_client: FplApiClient, no_retry_wait: None):
        """Should retry on timeout exceptions."""
        route = respx.get(HISTORY_URL)
        route.side_effect = [
            httpx.TimeoutException("Connection timed out"),
            Response(200, json=history_payload([50])),
        ]

        await fpl_client.get_manager_history(42)
        await fpl_client.close()

        assert route.call_count == 2

    @respx.mock
    async def test_upstream_error_after_retries_exhausted(
        self, fpl_client: FplApiClient, no_retry_wait: None
    ):
        """Should raise UpstreamError with the last status after 3 attempts."""
        route = respx.get(HISTORY_URL)
        route.side_effect = [Response(503), Response(503), Response(503)]

        with pytest.raises(UpstreamError) as exc_info:
            await fpl_client.get_manager_history(42)
        await fpl_client.close()

        assert route.call_count == 3
        assert exc_info.value.status_code == 503

    @respx.mock
    async def test_no_response_after_network_errors(
        self, fpl_client: FplApiClient, no_retry_wait: None
    ):
        """Repeated transport failures should raise NoResponseError."""
        route = respx.get(HISTORY_URL)
        route.side_effect = httpx.ConnectError("Connection refused")

        with pytest.raises(NoResponseError):
            await fpl_client.get_manager_history(42)
        await fpl_client.close()

        assert route.call_count == 3

    @respx.mock
    async def test_does_not_retry_on_404(self, fpl_client: FplApiClient):
        """Should NOT retry on 404 Not Found."""
        route = respx.get(STANDINGS_URL).mock(return_value=Response(404))

        with pytest.raises(UpstreamError) as exc_info:
            await fpl_client.get_standings_page(314, 1)
        await fpl_client.close()

        assert route.call_count == 1  # No retries
        assert exc_info.value.status_code == 404
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)


class TestFplClientResourceManagement:
    """Tests for HTTP client lifecycle."""

    @respx.mock
    async def test_client_reused_across_calls(self, fpl_client: FplApiClient):
        """Should reuse the same HTTP client for multiple requests."""
        respx.get(HISTORY_URL).mock(return_value=Response(200, json=history_payload([])))

        await fpl_client.get_manager_history(42)
        client_after_first = fpl_client._client

        await fpl_client.get_manager_history(42)
        client_after_second = fpl_client._client

        await fpl_client.close()

        assert client_after_first is client_after_second
        assert client_after_first is not None

    async def test_close_handles_no_client(self, fpl_client: FplApiClient):
        """Should not error when closing before any requests."""
        await fpl_client.close()

        assert fpl_client._client is None

    @respx.mock
    async def test_async_context_manager(self):
        """Should support async with statement for automatic cleanup."""
        respx.get(HISTORY_URL).mock(return_value=Response(200, json=history_payload([50])))

        async with FplApiClient(requests_per_second=1000.0) as client:
            result = await client.get_manager_history(42)
            assert len(result.current) == 1

        assert client._client is None

    @respx.mock
    async def test_custom_base_url(self):
        """Requests should go to the configured base URL."""
        route = respx.get("https://fpl.example.test/api/entry/42/history/").mock(
            return_value=Response(200, json=history_payload([50]))
        )

        async with FplApiClient(
            requests_per_second=1000.0, base_url="https://fpl.example.test/api/"
        ) as client:
            await client.get_manager_history(42)

        assert route.call_count == 1
