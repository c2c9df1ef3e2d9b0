"""League statistics API routes - statistics snapshot, load status and cache control."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response

from league_stats.dependencies import get_load_tracker, get_statistics_service
from league_stats.schemas.statistics import LeagueStatisticsResponse, LoadStatusResponse
from league_stats.services.fpl_client import FetchError, InvalidRequestError, UpstreamError
from league_stats.services.load_state import LoadStatusTracker
from league_stats.services.statistics import LeagueStatisticsService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/leagues", tags=["leagues"])

# Custom Path type for league_id validation (ge=1 for positive integers only)
LeagueIdPath = Annotated[int, Path(ge=1, description="League ID (must be positive)")]

StatisticsServiceDep = Annotated[LeagueStatisticsService, Depends(get_statistics_service)]
LoadTrackerDep = Annotated[LoadStatusTracker, Depends(get_load_tracker)]


def _to_http_exception(league_id: int, error: FetchError) -> HTTPException:
    """Map FPL API failures to client-facing status codes."""
    if isinstance(error, UpstreamError) and error.status_code == 404:
        return HTTPException(status_code=404, detail=f"League {league_id} not found")
    if isinstance(error, InvalidRequestError):
        return HTTPException(status_code=400, detail=str(error))
    return HTTPException(
        status_code=502,
        detail="FPL API unavailable while loading league statistics",
    )


@router.get("/{league_id}/statistics", response_model=LeagueStatisticsResponse)
async def get_league_statistics(
    league_id: LeagueIdPath,
    service: StatisticsServiceDep,
    tracker: LoadTrackerDep,
    force_refresh: bool = Query(default=False, description="Bypass the statistics cache"),
) -> LeagueStatisticsResponse:
    """
    Get records, manager statistics and head-to-head results for a league.

    Only the top 50 members are analysed. Members whose history couldn't be
    fetched are listed in dropped_entry_ids.
    """
    on_progress = tracker.track(league_id)
    try:
        snapshot = await service.fetch_league_statistics(
            league_id,
            force_refresh=force_refresh,
            on_progress=on_progress,
        )
    except FetchError as e:
        logger.warning(f"Failed to load statistics for league {league_id}: {e}")
        tracker.mark_failed(league_id, str(e))
        raise _to_http_exception(league_id, e) from e

    tracker.mark_loaded(league_id)
    return LeagueStatisticsResponse.model_validate(snapshot, from_attributes=True)


@router.get("/{league_id}/status", response_model=LoadStatusResponse)
async def get_load_status(league_id: LeagueIdPath, tracker: LoadTrackerDep) -> LoadStatusResponse:
    """Get the state of the latest statistics load (idle, loading, loaded, failed)."""
    status = tracker.get(league_id)
    return LoadStatusResponse(
        league_id=league_id,
        state=status.state,
        progress=status.progress,
        message=status.message,
        error=status.error,
    )


@router.delete("/{league_id}/cache", status_code=204)
async def invalidate_league_cache(
    league_id: LeagueIdPath,
    service: StatisticsServiceDep,
    tracker: LoadTrackerDep,
) -> Response:
    """Drop cached statistics so the next request reloads from the FPL API."""
    removed = await service.invalidate(league_id)
    tracker.reset(league_id)
    logger.info(f"Invalidated statistics cache for league {league_id} (was cached: {removed})")
    return Response(status_code=204)
