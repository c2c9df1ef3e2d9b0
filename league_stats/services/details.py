"""Member detail fetcher - gameweek history and chip usage per manager.

Members are fetched in fixed-size batches. Batches run one after another and
the members inside a batch run concurrently, so at most `batch_size` history
requests are in flight at once. A member whose history can't be fetched is
dropped from the result rather than failing the league.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from league_stats.services.fpl_client import (
    ChipPlay,
    FetchError,
    FplApiClient,
    GameweekHistoryEntry,
)
from league_stats.services.models import (
    ChipType,
    ChipUsage,
    GameweekPerformance,
    LeagueMember,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

MAX_DETAILED_MEMBERS = 50  # Only the top of the standings is analysed
DEFAULT_BATCH_SIZE = 10

# Captain points are estimated, not looked up: per-player gameweek scores come
# from a different endpoint. Assume the captain scored ~25% of the team total.
CAPTAIN_SHARE_ESTIMATE = 0.25
MIN_CAPTAIN_POINTS_ESTIMATE = 2
UNKNOWN_PLAYER_NAME = "Unknown Player"


# =============================================================================
# Pure Functions
# =============================================================================


def estimate_captain_points(gameweek_points: int, multiplier: int) -> int:
    """Estimate a captain's raw (un-multiplied) points for one gameweek.

    Args:
        gameweek_points: Team total for the gameweek
        multiplier: Captain multiplier (3 for triple captain)

    Returns:
        Estimated raw points, never below MIN_CAPTAIN_POINTS_ESTIMATE
    """
    estimated_contribution = gameweek_points * CAPTAIN_SHARE_ESTIMATE
    return max(int(estimated_contribution / max(multiplier, 1)), MIN_CAPTAIN_POINTS_ESTIMATE)


def to_gameweek_performance(gw: GameweekHistoryEntry) -> GameweekPerformance:
    return GameweekPerformance(
        event=gw.event,
        points=gw.points,
        total_points=gw.total_points,
        rank=gw.rank,
        overall_rank=gw.overall_rank,
        bench_points=gw.points_on_bench,
        transfers=gw.event_transfers,
        transfers_cost=gw.event_transfers_cost,
        squad_value=gw.value,
    )


def batched(members: list[LeagueMember], size: int) -> list[list[LeagueMember]]:
    """Split members into consecutive batches of at most `size`."""
    return [members[start : start + size] for start in range(0, len(members), size)]


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class DetailResult:
    """Members with history attached, plus the ones that had to be dropped."""

    members: list[LeagueMember] = field(default_factory=list)
    dropped: list[LeagueMember] = field(default_factory=list)

    @property
    def dropped_entry_ids(self) -> list[int]:
        return [m.entry_id for m in self.dropped]


# =============================================================================
# DetailFetcher
# =============================================================================


class DetailFetcher:
    """Attaches gameweek history and enriched chip usage to league members."""

    def __init__(
        self,
        client: FplApiClient,
        member_limit: int = MAX_DETAILED_MEMBERS,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.client = client
        self.member_limit = member_limit
        self.batch_size = batch_size

    async def fetch_details(
        self,
        members: list[LeagueMember],
        player_names: dict[int, str] | None = None,
        on_batch: Callable[[int, int], None] | None = None,
    ) -> DetailResult:
        """Fetch history and chips for the first `member_limit` members.

        Args:
            members: League members, normally in standings order
            player_names: Player id -> web name, used for captain names
            on_batch: Called with (members processed, members total) after
                each batch completes

        Returns:
            DetailResult; `members` only contains members whose history was
            fetched, `dropped` lists the rest
        """
        selected = members[: self.member_limit]
        names = player_names or {}
        result = DetailResult()
        processed = 0

        for batch in batched(selected, self.batch_size):
            detailed = await asyncio.gather(
                *(self._fetch_member_or_none(member, names) for member in batch)
            )

            for member, detailed_member in zip(batch, detailed):
                if detailed_member is None:
                    result.dropped.append(member)
                else:
                    result.members.append(detailed_member)

            processed += len(batch)
            if on_batch is not None:
                on_batch(processed, len(selected))

        if result.dropped:
            logger.warning(
                f"Dropped {len(result.dropped)}/{len(selected)} members after failed "
                f"history fetch: {result.dropped_entry_ids}"
            )

        return result

    async def _fetch_member_or_none(
        self, member: LeagueMember, player_names: dict[int, str]
    ) -> LeagueMember | None:
        """Fetch one member, returning None on failure (member gets dropped)."""
        try:
            return await self.fetch_member_details(member, player_names)
        except FetchError as e:
            logger.warning(
                f"Failed to fetch details for {member.manager_name} "
                f"(entry {member.entry_id}): {type(e).__name__}: {e}"
            )
            return None

    async def fetch_member_details(
        self, member: LeagueMember, player_names: dict[int, str]
    ) -> LeagueMember:
        """Return a copy of `member` with gameweek history and chips attached.

        Raises:
            FetchError: If the manager history request fails
        """
        history = await self.client.get_manager_history(member.entry_id)

        # Upstream returns ascending events; sort anyway since aggregation relies on it
        gameweeks = sorted(
            (to_gameweek_performance(gw) for gw in history.current),
            key=lambda gw: gw.event,
        )

        chips = []
        for chip in history.chips:
            usage = await self._enrich_chip(member, chip, gameweeks, player_names)
            if usage is not None:
                chips.append(usage)

        return replace(member, gameweek_history=gameweeks, chips=chips)

    async def _enrich_chip(
        self,
        member: LeagueMember,
        chip: ChipPlay,
        gameweeks: list[GameweekPerformance],
        player_names: dict[int, str],
    ) -> ChipUsage | None:
        """Attach gameweek points (and captain / bench detail) to a chip play."""
        try:
            chip_type = ChipType(chip.name)
        except ValueError:
            logger.debug(f"Ignoring unknown chip {chip.name!r} for entry {member.entry_id}")
            return None

        chip_gameweek = next((gw for gw in gameweeks if gw.event == chip.event), None)
        usage = ChipUsage(
            chip_name=chip_type,
            event=chip.event,
            points=chip_gameweek.points if chip_gameweek else 0,
        )

        if chip_type == ChipType.BENCH_BOOST and chip_gameweek is not None:
            usage.bench_boost_points = chip_gameweek.bench_points
        elif chip_type == ChipType.TRIPLE_CAPTAIN:
            await self._attach_captain(usage, member.entry_id, player_names)

        return usage

    async def _attach_captain(
        self, usage: ChipUsage, entry_id: int, player_names: dict[int, str]
    ) -> None:
        """Fill captain fields from the gameweek's picks; leave them None on failure."""
        try:
            picks = await self.client.get_gameweek_picks(entry_id, usage.event)
        except FetchError as e:
            logger.warning(
                f"Failed to fetch captain info for entry {entry_id} "
                f"GW{usage.event}: {type(e).__name__}: {e}"
            )
            return

        captain = picks.captain
        if captain is None:
            return

        estimated = estimate_captain_points(picks.entry_history_points, captain.multiplier)
        usage.captain_name = player_names.get(captain.element, UNKNOWN_PLAYER_NAME)
        usage.captain_points = estimated
        usage.captain_effective_points = estimated * captain.multiplier
