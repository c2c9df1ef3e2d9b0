"""FastAPI application for FPL mini-league statistics."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated, Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from league_stats.api.statistics import router
from league_stats.config import get_settings
from league_stats.dependencies import get_fpl_client, get_statistics_service
from league_stats.services.statistics import LeagueStatisticsService

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        f"Starting FPL League Statistics (FPL API: {settings.fpl_api_base_url}, "
        f"CORS origins: {settings.cors_origins_list})"
    )
    yield
    # The client is process-wide; close its connection pool once, on shutdown
    await get_fpl_client().close()
    logger.info("FPL League Statistics stopped")


app = FastAPI(
    title="FPL League Statistics",
    description="Mini-league records, manager statistics and head-to-head results",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(router)


@app.get("/health")
async def health_check(
    service: Annotated[LeagueStatisticsService, Depends(get_statistics_service)],
) -> dict[str, Any]:
    """Liveness plus cache occupancy, for container orchestration and debugging."""
    return {
        "status": "healthy",
        "cached_leagues": len(service.cache),
        "player_names": service.client.player_names.stats(),
    }
