"""Pure aggregation functions for league statistics.

These functions are stateless and have no network or cache dependencies,
making them easy to test in isolation. None of them raise on empty input:
an empty history averages to 0 and produces no records.

Tie-break: whenever several candidates share the best value, the first one
encountered wins (members in the order given, then gameweeks ascending).
"""

from collections.abc import Sequence
from statistics import fmean, pstdev

from league_stats.services.models import (
    ChipSummary,
    ChipType,
    GameweekComparison,
    GameweekPerformance,
    HeadToHeadRecord,
    LeagueMember,
    LeagueRecord,
    ManagerStatistics,
    RecordType,
    StreakInfo,
    StreakType,
)

# =============================================================================
# Constants
# =============================================================================

STREAK_WINDOW = 5  # Streaks only look at the most recent gameweeks
CAPTAIN_SUCCESS_THRESHOLD = 1.2  # A "good captain week" beats own average by 20%
HEAD_TO_HEAD_MEMBER_LIMIT = 20  # 20 members -> 190 pairs

# Upper bounds (exclusive) of standard deviation bands
CONSISTENCY_BANDS = [
    (5.0, "Very consistent scores"),
    (8.0, "Steady performance"),
    (12.0, "Moderate variation"),
    (18.0, "Inconsistent scoring"),
]
MOST_VOLATILE_BAND = "Highly volatile"

# Chip record types, in the order records are emitted
CHIP_RECORD_TYPES = [
    (ChipType.BENCH_BOOST, RecordType.BEST_BENCH_BOOST),
    (ChipType.TRIPLE_CAPTAIN, RecordType.BEST_TRIPLE_CAPTAIN),
    (ChipType.FREE_HIT, RecordType.BEST_FREE_HIT),
    (ChipType.WILDCARD, RecordType.BEST_WILDCARD),
]


# =============================================================================
# Basic statistics
# =============================================================================


def average_points(history: Sequence[GameweekPerformance]) -> float:
    """Mean gameweek points (0.0 for an empty history)."""
    if not history:
        return 0.0
    return fmean(gw.points for gw in history)


def standard_deviation(history: Sequence[GameweekPerformance]) -> float:
    """Population standard deviation of gameweek points (0.0 if empty)."""
    if not history:
        return 0.0
    return pstdev([gw.points for gw in history])


def consistency_description(std_dev: float) -> str:
    """Human-readable band for a standard deviation."""
    for upper_bound, description in CONSISTENCY_BANDS:
        if std_dev < upper_bound:
            return description
    return MOST_VOLATILE_BAND


def best_week(history: Sequence[GameweekPerformance]) -> int:
    return max((gw.points for gw in history), default=0)


def worst_week(history: Sequence[GameweekPerformance]) -> int:
    """Lowest positive score; 0-point weeks usually mean the gameweek wasn't played."""
    return min((gw.points for gw in history if gw.points > 0), default=0)


def calculate_streak(history: Sequence[GameweekPerformance]) -> StreakInfo:
    """Rank streak over the last STREAK_WINDOW gameweeks.

    A rank number going down is a rising (green arrow) week and resets the
    falling counter; a rank going up does the opposite; unchanged ranks leave
    both counters alone. The larger counter wins, falling on a tie.
    """
    if len(history) <= 1:
        return StreakInfo(streak_type=StreakType.RISING, count=0, start_week=0)

    recent = list(history[-STREAK_WINDOW:])
    rising = 0
    falling = 0

    for previous, current in zip(recent, recent[1:]):
        if current.rank < previous.rank:
            rising += 1
            falling = 0
        elif current.rank > previous.rank:
            falling += 1
            rising = 0

    if rising > falling:
        return StreakInfo(streak_type=StreakType.RISING, count=rising, start_week=recent[-1].event)
    return StreakInfo(streak_type=StreakType.FALLING, count=falling, start_week=recent[-1].event)


def calculate_captain_success(history: Sequence[GameweekPerformance]) -> float:
    """Fraction of weeks scoring above CAPTAIN_SUCCESS_THRESHOLD x own average.

    A proxy: per-week captain scores aren't fetched, and a big week is
    usually a good captain week.
    """
    if not history:
        return 0.0
    threshold = average_points(history) * CAPTAIN_SUCCESS_THRESHOLD
    high_scoring_weeks = sum(1 for gw in history if gw.points > threshold)
    return high_scoring_weeks / len(history)


# =============================================================================
# Manager statistics
# =============================================================================


def calculate_manager_statistics(member: LeagueMember) -> ManagerStatistics:
    history = member.gameweek_history
    return ManagerStatistics(
        manager_id=member.entry_id,
        manager_name=member.manager_name,
        entry_name=member.entry_name,
        average_points=average_points(history),
        standard_deviation=standard_deviation(history),
        best_week=best_week(history),
        worst_week=worst_week(history),
        current_streak=calculate_streak(history),
        captain_success_rate=calculate_captain_success(history),
        bench_waste_per_week=sum(gw.bench_points for gw in history) / max(len(history), 1),
        chips_used_count=len(member.chips),
        total_transfers=sum(gw.transfers for gw in history),
    )


def calculate_all_manager_statistics(members: Sequence[LeagueMember]) -> list[ManagerStatistics]:
    return [calculate_manager_statistics(member) for member in members]


# =============================================================================
# League records
# =============================================================================


def _record(
    record_type: RecordType,
    value: int,
    member: LeagueMember,
    gameweek: int | None = None,
    additional_info: str | None = None,
    captain_name: str | None = None,
    captain_points: int | None = None,
) -> LeagueRecord:
    return LeagueRecord(
        record_type=record_type,
        value=value,
        manager_id=member.entry_id,
        manager_name=member.manager_name,
        entry_name=member.entry_name,
        gameweek=gameweek,
        additional_info=additional_info,
        captain_name=captain_name,
        captain_points=captain_points,
    )


def calculate_gameweek_records(members: Sequence[LeagueMember]) -> list[LeagueRecord]:
    """Best and worst single gameweek across the league (worst ignores zeros)."""
    all_gameweeks = [(member, gw) for member in members for gw in member.gameweek_history]
    records = []

    if all_gameweeks:
        member, gw = max(all_gameweeks, key=lambda pair: pair[1].points)
        records.append(_record(RecordType.BEST_GAMEWEEK, gw.points, member, gameweek=gw.event))

    played = [(member, gw) for member, gw in all_gameweeks if gw.points > 0]
    if played:
        member, gw = min(played, key=lambda pair: pair[1].points)
        records.append(_record(RecordType.WORST_GAMEWEEK, gw.points, member, gameweek=gw.event))

    return records


def calculate_consistency_record(members: Sequence[LeagueMember]) -> LeagueRecord | None:
    """Manager with the lowest standard deviation among those who scored."""
    candidates = [
        (member, standard_deviation(member.gameweek_history), average_points(member.gameweek_history))
        for member in members
    ]
    candidates = [c for c in candidates if c[2] > 0]
    if not candidates:
        return None

    member, std_dev, average = min(candidates, key=lambda c: c[1])
    return _record(
        RecordType.MOST_CONSISTENT,
        int(average),
        member,
        additional_info=f"Std Dev: {std_dev:.1f} - {consistency_description(std_dev)}",
    )


def calculate_chip_records(members: Sequence[LeagueMember]) -> list[LeagueRecord]:
    """Highest-scoring activation of each chip type."""
    records = []

    for chip_type, record_type in CHIP_RECORD_TYPES:
        usages = [
            (member, chip)
            for member in members
            for chip in member.chips
            if chip.chip_name == chip_type
        ]
        if not usages:
            continue

        member, chip = max(usages, key=lambda pair: pair[1].points)
        captain_name = None
        captain_points = None

        if chip_type == ChipType.TRIPLE_CAPTAIN:
            if (
                chip.captain_name is not None
                and chip.captain_points is not None
                and chip.captain_effective_points is not None
            ):
                captain_name = chip.captain_name
                captain_points = chip.captain_points
                info = (
                    f"Captain: {chip.captain_name} ({chip.captain_points} pts × 3 = "
                    f"{chip.captain_effective_points} pts)"
                )
            else:
                info = "Triple Captain played"
        elif chip_type == ChipType.BENCH_BOOST:
            info = f"Bench contributed {chip.bench_boost_points or 0} pts"
        else:
            info = chip_type.display_name

        records.append(
            _record(
                record_type,
                chip.points,
                member,
                gameweek=chip.event,
                additional_info=info,
                captain_name=captain_name,
                captain_points=captain_points,
            )
        )

    return records


def calculate_momentum_records(members: Sequence[LeagueMember]) -> list[LeagueRecord]:
    """Biggest single-week rank rise and fall between adjacent gameweeks."""
    biggest_rise: LeagueRecord | None = None
    biggest_fall: LeagueRecord | None = None

    for member in members:
        history = member.gameweek_history
        for previous, current in zip(history, history[1:]):
            rank_change = previous.rank - current.rank

            if rank_change > 0 and (biggest_rise is None or rank_change > biggest_rise.value):
                biggest_rise = _record(
                    RecordType.BIGGEST_RISE,
                    rank_change,
                    member,
                    gameweek=current.event,
                    additional_info=f"Climbed {rank_change} places in one week",
                )
            elif rank_change < 0 and (biggest_fall is None or -rank_change > biggest_fall.value):
                biggest_fall = _record(
                    RecordType.BIGGEST_FALL,
                    -rank_change,
                    member,
                    gameweek=current.event,
                    additional_info=f"Dropped {-rank_change} places in one week",
                )

    return [record for record in (biggest_rise, biggest_fall) if record is not None]


def calculate_bench_record(members: Sequence[LeagueMember]) -> LeagueRecord | None:
    """Manager who left the most points on the bench over the season."""
    totals = [(member, sum(gw.bench_points for gw in member.gameweek_history)) for member in members]
    totals = [t for t in totals if t[1] > 0]
    if not totals:
        return None

    member, total = max(totals, key=lambda t: t[1])
    weeks = len(member.gameweek_history)
    return _record(
        RecordType.MOST_POINTS_ON_BENCH,
        total,
        member,
        additional_info=f"{total / weeks:.1f} pts per gameweek left on the bench",
    )


def calculate_records(members: Sequence[LeagueMember]) -> list[LeagueRecord]:
    """All league records, at most one per RecordType."""
    records = calculate_gameweek_records(members)

    consistency = calculate_consistency_record(members)
    if consistency is not None:
        records.append(consistency)

    records.extend(calculate_chip_records(members))
    records.extend(calculate_momentum_records(members))

    bench = calculate_bench_record(members)
    if bench is not None:
        records.append(bench)

    return records


# =============================================================================
# Chip usage
# =============================================================================


def calculate_chip_summary(members: Sequence[LeagueMember]) -> list[ChipSummary]:
    """Activation count and average points for each chip type."""
    summary = []
    for chip_type in ChipType:
        points = [
            chip.points
            for member in members
            for chip in member.chips
            if chip.chip_name == chip_type
        ]
        summary.append(
            ChipSummary(
                chip_name=chip_type,
                times_used=len(points),
                average_points=fmean(points) if points else 0.0,
                best_points=max(points, default=None),
            )
        )
    return summary


# =============================================================================
# Head-to-head
# =============================================================================


def calculate_head_to_head(member1: LeagueMember, member2: LeagueMember) -> HeadToHeadRecord:
    """Treat each overlapping gameweek as a match from member1's perspective.

    Histories are compared index by index over the shorter of the two; the
    gameweek reported for biggest win/loss is member1's event at that index.
    """
    wins = draws = losses = 0
    total_for = total_against = 0
    biggest_win: GameweekComparison | None = None
    biggest_loss: GameweekComparison | None = None

    for gw1, gw2 in zip(member1.gameweek_history, member2.gameweek_history):
        total_for += gw1.points
        total_against += gw2.points
        diff = gw1.points - gw2.points

        if diff > 0:
            wins += 1
            if biggest_win is None or diff > biggest_win.difference:
                biggest_win = GameweekComparison(gw1.event, gw1.points, gw2.points, diff)
        elif diff < 0:
            losses += 1
            if biggest_loss is None or -diff > biggest_loss.difference:
                biggest_loss = GameweekComparison(gw1.event, gw1.points, gw2.points, -diff)
        else:
            draws += 1

    return HeadToHeadRecord(
        manager1_id=member1.entry_id,
        manager1_name=member1.manager_name,
        manager2_id=member2.entry_id,
        manager2_name=member2.manager_name,
        wins=wins,
        draws=draws,
        losses=losses,
        total_points_for=total_for,
        total_points_against=total_against,
        biggest_win=biggest_win,
        biggest_loss=biggest_loss,
    )


def calculate_head_to_head_records(
    members: Sequence[LeagueMember],
    limit: int = HEAD_TO_HEAD_MEMBER_LIMIT,
) -> list[HeadToHeadRecord]:
    """All unordered pairs among the first `limit` members (n*(n-1)/2 records)."""
    compared = list(members[:limit])
    return [
        calculate_head_to_head(compared[i], compared[j])
        for i in range(len(compared))
        for j in range(i + 1, len(compared))
    ]
