"""League statistics API response schemas.

These Pydantic models are used for API serialization. They are populated
directly from the service dataclasses using model_validate(obj, from_attributes=True).
"""

from pydantic import BaseModel, ConfigDict, Field

from league_stats.services.load_state import LoadState
from league_stats.services.models import ChipType, RecordType, StreakType


class GameweekPerformanceResponse(BaseModel):
    """One manager's result for one gameweek."""

    model_config = ConfigDict(from_attributes=True)

    event: int = Field(ge=1, le=38)
    points: int
    total_points: int
    rank: int
    overall_rank: int
    bench_points: int
    transfers: int = Field(ge=0)
    transfers_cost: int
    squad_value: int


class ChipUsageResponse(BaseModel):
    """A chip activation with the points scored that gameweek."""

    model_config = ConfigDict(from_attributes=True)

    chip_name: ChipType
    event: int = Field(ge=1, le=38)
    points: int
    bench_boost_points: int | None
    captain_name: str | None
    captain_points: int | None  # Estimated, see details.estimate_captain_points
    captain_effective_points: int | None


class LeagueMemberResponse(BaseModel):
    """A league member with full history."""

    model_config = ConfigDict(from_attributes=True)

    entry_id: int
    entry_name: str
    manager_name: str
    event_total: int
    rank: int
    last_rank: int
    rank_change: int
    total: int
    gameweek_history: list[GameweekPerformanceResponse]
    chips: list[ChipUsageResponse]


class LeagueRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    record_type: RecordType
    value: int
    manager_id: int
    manager_name: str
    entry_name: str
    gameweek: int | None
    additional_info: str | None
    captain_name: str | None
    captain_points: int | None


class StreakResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    streak_type: StreakType
    count: int = Field(ge=0)
    start_week: int = Field(ge=0)


class ManagerStatisticsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    manager_id: int
    manager_name: str
    entry_name: str
    average_points: float
    standard_deviation: float = Field(ge=0)
    best_week: int
    worst_week: int
    current_streak: StreakResponse
    captain_success_rate: float = Field(ge=0, le=1)
    bench_waste_per_week: float
    chips_used_count: int = Field(ge=0)
    total_transfers: int = Field(ge=0)


class GameweekComparisonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    gameweek: int
    manager1_points: int
    manager2_points: int
    difference: int = Field(ge=0)


class HeadToHeadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    manager1_id: int
    manager1_name: str
    manager2_id: int
    manager2_name: str
    wins: int = Field(ge=0)
    draws: int = Field(ge=0)
    losses: int = Field(ge=0)
    total_points_for: int
    total_points_against: int
    biggest_win: GameweekComparisonResponse | None
    biggest_loss: GameweekComparisonResponse | None


class ChipSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    chip_name: ChipType
    times_used: int = Field(ge=0)
    average_points: float
    best_points: int | None


class LeagueStatisticsResponse(BaseModel):
    """Full statistics for a league."""

    model_config = ConfigDict(from_attributes=True)

    league_id: int
    league_name: str
    records: list[LeagueRecordResponse]
    manager_statistics: list[ManagerStatisticsResponse]
    head_to_head_records: list[HeadToHeadResponse]
    members: list[LeagueMemberResponse]
    chip_summary: list[ChipSummaryResponse]
    dropped_entry_ids: list[int]


class LoadStatusResponse(BaseModel):
    """Progress of the most recent statistics load for a league."""

    model_config = ConfigDict(from_attributes=True)

    league_id: int
    state: LoadState
    progress: float = Field(ge=0, le=1)
    message: str
    error: str | None
