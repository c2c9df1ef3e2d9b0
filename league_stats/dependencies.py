"""Shared FastAPI dependencies for API routes.

The client, cache and tracker are process-wide singletons so cached
statistics survive across requests. Tests replace them through
app.dependency_overrides.
"""

from functools import lru_cache

from league_stats.config import get_settings
from league_stats.services.details import DetailFetcher
from league_stats.services.fpl_client import FplApiClient
from league_stats.services.load_state import LoadStatusTracker
from league_stats.services.membership import MembershipFetcher
from league_stats.services.player_names import PlayerNameCache
from league_stats.services.result_cache import ResultCache
from league_stats.services.statistics import LeagueStatisticsService


@lru_cache
def get_fpl_client() -> FplApiClient:
    """Shared FPL API client (one connection pool, one rate limiter)."""
    settings = get_settings()
    return FplApiClient(
        requests_per_second=settings.requests_per_second,
        max_concurrent=settings.max_concurrent_requests,
        base_url=settings.fpl_api_base_url,
        timeout=settings.request_timeout,
        player_names=PlayerNameCache(ttl=settings.cache_ttl_player_names),
    )


@lru_cache
def get_statistics_service() -> LeagueStatisticsService:
    """Shared statistics service wired from settings."""
    settings = get_settings()
    client = get_fpl_client()
    return LeagueStatisticsService(
        client=client,
        cache=ResultCache(
            ttl=settings.cache_ttl_statistics,
            maxsize=settings.cache_max_leagues,
        ),
        membership=MembershipFetcher(client),
        details=DetailFetcher(
            client,
            member_limit=settings.detail_member_limit,
            batch_size=settings.detail_batch_size,
        ),
        head_to_head_limit=settings.head_to_head_member_limit,
    )


@lru_cache
def get_load_tracker() -> LoadStatusTracker:
    return LoadStatusTracker()
