"""Domain models for league statistics.

Members move through the pipeline in three steps: created from standings
(no history), replaced by a detailed copy once history and chips are
attached, then read-only for aggregation and caching.
"""

from dataclasses import dataclass, field
from enum import Enum

# =============================================================================
# Enums
# =============================================================================


class ChipType(str, Enum):
    """Chip names as used by the FPL API."""

    BENCH_BOOST = "bboost"
    TRIPLE_CAPTAIN = "3xc"
    FREE_HIT = "freehit"
    WILDCARD = "wildcard"

    @property
    def display_name(self) -> str:
        return _CHIP_DISPLAY_NAMES[self]


_CHIP_DISPLAY_NAMES = {
    ChipType.BENCH_BOOST: "Bench Boost",
    ChipType.TRIPLE_CAPTAIN: "Triple Captain",
    ChipType.FREE_HIT: "Free Hit",
    ChipType.WILDCARD: "Wildcard",
}


class RecordType(str, Enum):
    """League superlatives. At most one record of each type per snapshot."""

    BEST_GAMEWEEK = "best_gameweek"
    WORST_GAMEWEEK = "worst_gameweek"
    BEST_BENCH_BOOST = "best_bench_boost"
    BEST_TRIPLE_CAPTAIN = "best_triple_captain"
    BEST_FREE_HIT = "best_free_hit"
    BEST_WILDCARD = "best_wildcard"
    BIGGEST_RISE = "biggest_rise"
    BIGGEST_FALL = "biggest_fall"
    MOST_POINTS_ON_BENCH = "most_points_on_bench"
    MOST_CONSISTENT = "most_consistent"


class StreakType(str, Enum):
    RISING = "rising"
    FALLING = "falling"


# =============================================================================
# Member data
# =============================================================================


@dataclass(slots=True)
class GameweekPerformance:
    """One manager's result for one gameweek."""

    event: int
    points: int
    total_points: int
    rank: int  # League rank at this gameweek
    overall_rank: int
    bench_points: int
    transfers: int
    transfers_cost: int
    squad_value: int  # Price * 10


@dataclass(slots=True)
class ChipUsage:
    """One chip activation, enriched with the points scored that gameweek.

    Captain fields are only set for triple captain; bench_boost_points only
    for bench boost.
    """

    chip_name: ChipType
    event: int
    points: int
    bench_boost_points: int | None = None
    captain_name: str | None = None
    captain_points: int | None = None
    captain_effective_points: int | None = None


@dataclass(slots=True)
class LeagueMember:
    """A manager in a mini-league."""

    entry_id: int
    entry_name: str
    manager_name: str
    event_total: int
    rank: int
    last_rank: int
    total: int
    gameweek_history: list[GameweekPerformance] = field(default_factory=list)
    chips: list[ChipUsage] = field(default_factory=list)

    @property
    def rank_change(self) -> int:
        """Places gained since last gameweek (positive = moved up)."""
        return self.last_rank - self.rank


# =============================================================================
# Aggregates
# =============================================================================


@dataclass(slots=True)
class LeagueRecord:
    """A single superlative derived from the member set."""

    record_type: RecordType
    value: int
    manager_id: int
    manager_name: str
    entry_name: str
    gameweek: int | None = None
    additional_info: str | None = None
    captain_name: str | None = None
    captain_points: int | None = None


@dataclass(slots=True)
class StreakInfo:
    streak_type: StreakType
    count: int
    start_week: int


@dataclass(slots=True)
class ManagerStatistics:
    """Season statistics for one manager."""

    manager_id: int
    manager_name: str
    entry_name: str
    average_points: float
    standard_deviation: float
    best_week: int
    worst_week: int  # Zero-point weeks excluded
    current_streak: StreakInfo
    captain_success_rate: float  # Fraction of weeks above 1.2x own average
    bench_waste_per_week: float
    chips_used_count: int
    total_transfers: int


@dataclass(slots=True)
class GameweekComparison:
    gameweek: int
    manager1_points: int
    manager2_points: int
    difference: int


@dataclass(slots=True)
class HeadToHeadRecord:
    """Gameweek-by-gameweek comparison of two managers (manager1's perspective)."""

    manager1_id: int
    manager1_name: str
    manager2_id: int
    manager2_name: str
    wins: int
    draws: int
    losses: int
    total_points_for: int
    total_points_against: int
    biggest_win: GameweekComparison | None = None
    biggest_loss: GameweekComparison | None = None


@dataclass(slots=True)
class ChipSummary:
    """League-wide usage of one chip type."""

    chip_name: ChipType
    times_used: int
    average_points: float
    best_points: int | None


@dataclass(frozen=True)
class LeagueStatisticsSnapshot:
    """Assembled statistics for one league. Cached by league_id."""

    league_id: int
    league_name: str
    records: tuple[LeagueRecord, ...]
    manager_statistics: tuple[ManagerStatistics, ...]
    head_to_head_records: tuple[HeadToHeadRecord, ...]
    members: tuple[LeagueMember, ...]
    chip_summary: tuple[ChipSummary, ...] = ()
    dropped_entry_ids: tuple[int, ...] = ()

    def get_record(self, record_type: RecordType) -> LeagueRecord | None:
        """Return the record of the given type, if one was derived."""
        for record in self.records:
            if record.record_type == record_type:
                return record
        return None
