"""Shared pytest fixtures and builders for backend tests."""

from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from league_stats.main import app
from league_stats.services.models import (
    ChipType,
    ChipUsage,
    GameweekPerformance,
    LeagueMember,
)


@pytest.fixture
async def async_client():
    """Async HTTP client for testing the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# =============================================================================
# Domain builders
# =============================================================================


def make_gameweek(
    event: int,
    points: int,
    rank: int = 1,
    total_points: int | None = None,
    bench_points: int = 0,
    transfers: int = 0,
) -> GameweekPerformance:
    return GameweekPerformance(
        event=event,
        points=points,
        total_points=total_points if total_points is not None else points,
        rank=rank,
        overall_rank=100_000,
        bench_points=bench_points,
        transfers=transfers,
        transfers_cost=0,
        squad_value=1000,
    )


def make_member(
    entry_id: int,
    points: list[int] | None = None,
    ranks: list[int] | None = None,
    chips: list[ChipUsage] | None = None,
    bench: list[int] | None = None,
    name: str | None = None,
) -> LeagueMember:
    """Build a member whose history covers events 1..len(points)."""
    points = points or []
    ranks = ranks or [1] * len(points)
    bench = bench or [0] * len(points)
    history = []
    running_total = 0
    for index, gw_points in enumerate(points):
        running_total += gw_points
        history.append(
            make_gameweek(
                event=index + 1,
                points=gw_points,
                rank=ranks[index],
                total_points=running_total,
                bench_points=bench[index],
            )
        )
    return LeagueMember(
        entry_id=entry_id,
        entry_name=f"Team {entry_id}",
        manager_name=name or f"Manager {entry_id}",
        event_total=points[-1] if points else 0,
        rank=1,
        last_rank=1,
        total=running_total,
        gameweek_history=history,
        chips=chips or [],
    )


def make_chip(chip_name: ChipType, event: int, points: int, **kwargs: Any) -> ChipUsage:
    return ChipUsage(chip_name=chip_name, event=event, points=points, **kwargs)


# =============================================================================
# FPL API payload builders
# =============================================================================


def standings_payload(
    entries: list[int],
    has_next: bool = False,
    league_name: str = "Test League",
    league_id: int = 314,
) -> dict[str, Any]:
    """Standings page JSON as returned by /leagues-classic/{id}/standings/."""
    return {
        "league": {"id": league_id, "name": league_name},
        "standings": {
            "has_next": has_next,
            "results": [
                {
                    "id": entry * 10,
                    "event_total": 50,
                    "player_name": f"Manager {entry}",
                    "rank": index + 1,
                    "last_rank": index + 2,
                    "rank_sort": index + 1,
                    "total": 1000 - index,
                    "entry": entry,
                    "entry_name": f"Team {entry}",
                }
                for index, entry in enumerate(entries)
            ],
        },
    }


def history_payload(
    points: list[int],
    chips: list[dict[str, Any]] | None = None,
    bench: list[int] | None = None,
) -> dict[str, Any]:
    """Manager history JSON as returned by /entry/{id}/history/."""
    bench = bench or [0] * len(points)
    current = []
    running_total = 0
    for index, gw_points in enumerate(points):
        running_total += gw_points
        current.append(
            {
                "event": index + 1,
                "points": gw_points,
                "total_points": running_total,
                "rank": 500_000 - index,
                "rank_sort": 500_000 - index,
                "overall_rank": 400_000,
                "bank": 5,
                "value": 1002,
                "event_transfers": 1,
                "event_transfers_cost": 0,
                "points_on_bench": bench[index],
            }
        )
    return {"current": current, "past": [], "chips": chips or []}


def picks_payload(captain: int, multiplier: int = 3, points: int = 80) -> dict[str, Any]:
    """Gameweek picks JSON as returned by /entry/{id}/event/{gw}/picks/."""
    picks = [
        {
            "element": element,
            "position": position,
            "multiplier": multiplier if element == captain else (1 if position <= 11 else 0),
            "is_captain": element == captain,
            "is_vice_captain": False,
        }
        for position, element in enumerate(range(100, 115), start=1)
    ]
    return {
        "active_chip": "3xc" if multiplier == 3 else None,
        "automatic_subs": [],
        "entry_history": {"event": 1, "points": points},
        "picks": picks,
    }
