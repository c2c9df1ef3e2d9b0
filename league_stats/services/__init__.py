"""Service layer for business logic."""

from league_stats.services.fpl_client import FplApiClient
from league_stats.services.statistics import LeagueStatisticsService

__all__ = ["FplApiClient", "LeagueStatisticsService"]
