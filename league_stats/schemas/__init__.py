"""API response schemas."""

from league_stats.schemas.statistics import (
    LeagueStatisticsResponse,
    LoadStatusResponse,
)

__all__ = [
    "LeagueStatisticsResponse",
    "LoadStatusResponse",
]
