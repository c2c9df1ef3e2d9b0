"""League statistics service - assembles the full statistics snapshot.

Pipeline for a cache miss:
1. Player names (best effort, only used for triple captain records)
2. All league members from standings pages
3. History and chips for the top members, in batches
4. Records, manager statistics, head-to-head and chip summary
5. Cache write

Nothing is cached unless every step up to aggregation succeeds.
"""

import logging
from collections.abc import Callable

from league_stats.services.aggregation import (
    HEAD_TO_HEAD_MEMBER_LIMIT,
    calculate_all_manager_statistics,
    calculate_chip_summary,
    calculate_head_to_head_records,
    calculate_records,
)
from league_stats.services.details import DetailFetcher
from league_stats.services.fpl_client import FetchError, FplApiClient
from league_stats.services.membership import MembershipFetcher
from league_stats.services.models import LeagueStatisticsSnapshot
from league_stats.services.result_cache import ResultCache

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]

# Progress checkpoints (fraction of the whole load)
MEMBERSHIP_PROGRESS = 0.3
DETAILS_PROGRESS_SPAN = 0.6
AGGREGATION_PROGRESS = 0.9
MEMBERS_FOR_FULL_MEMBERSHIP_PROGRESS = 100


def _ignore_progress(fraction: float, message: str) -> None:
    pass


class LeagueStatisticsService:
    """Builds LeagueStatisticsSnapshot for a league, consulting the cache first."""

    def __init__(
        self,
        client: FplApiClient,
        cache: ResultCache,
        membership: MembershipFetcher | None = None,
        details: DetailFetcher | None = None,
        head_to_head_limit: int = HEAD_TO_HEAD_MEMBER_LIMIT,
    ):
        self.client = client
        self.cache = cache
        self.membership = membership or MembershipFetcher(client)
        self.details = details or DetailFetcher(client)
        self.head_to_head_limit = head_to_head_limit

    async def fetch_league_statistics(
        self,
        league_id: int,
        force_refresh: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> LeagueStatisticsSnapshot:
        """Get statistics for a league.

        Args:
            league_id: FPL classic league ID
            force_refresh: Skip the cache lookup; the result still replaces
                any cached entry
            on_progress: Called with (fraction in [0, 1], message) at each
                checkpoint. Not called on a cache hit.

        Returns:
            The assembled (or cached) snapshot

        Raises:
            FetchError: If the standings can't be fetched. Individual member
                failures don't raise; those members are listed in
                `dropped_entry_ids`.
        """
        if not force_refresh:
            cached = await self.cache.get(league_id)
            if cached is not None:
                return cached

        report = on_progress or _ignore_progress
        logger.info(f"Building statistics for league {league_id} (force_refresh={force_refresh})")

        report(0.0, "Loading player database...")
        player_names = await self._load_player_names()

        report(0.0, "Fetching league members...")
        members, league_name = await self.membership.fetch_all_members(
            league_id,
            on_page=lambda count: report(
                min(
                    MEMBERSHIP_PROGRESS,
                    count / MEMBERS_FOR_FULL_MEMBERSHIP_PROGRESS * MEMBERSHIP_PROGRESS,
                ),
                "Fetching league members...",
            ),
        )
        report(MEMBERSHIP_PROGRESS, "Loading detailed statistics...")

        detail_result = await self.details.fetch_details(
            members,
            player_names=player_names,
            on_batch=lambda processed, total: report(
                MEMBERSHIP_PROGRESS + DETAILS_PROGRESS_SPAN * processed / total,
                "Loading detailed statistics...",
            ),
        )

        report(AGGREGATION_PROGRESS, "Calculating statistics...")
        detailed = detail_result.members
        snapshot = LeagueStatisticsSnapshot(
            league_id=league_id,
            league_name=league_name,
            records=tuple(calculate_records(detailed)),
            manager_statistics=tuple(calculate_all_manager_statistics(detailed)),
            head_to_head_records=tuple(
                calculate_head_to_head_records(detailed, limit=self.head_to_head_limit)
            ),
            members=tuple(detailed),
            chip_summary=tuple(calculate_chip_summary(detailed)),
            dropped_entry_ids=tuple(detail_result.dropped_entry_ids),
        )

        await self.cache.put(league_id, snapshot)
        report(1.0, "Done")
        logger.info(
            f"Built statistics for league {league_id}: {len(detailed)} members, "
            f"{len(snapshot.records)} records, {len(snapshot.dropped_entry_ids)} dropped"
        )
        return snapshot

    async def invalidate(self, league_id: int) -> bool:
        """Drop the cached snapshot for a league."""
        return await self.cache.invalidate(league_id)

    async def _load_player_names(self) -> dict[int, str]:
        """Player id -> name, or an empty mapping if bootstrap can't be loaded."""
        try:
            return await self.client.get_player_names()
        except FetchError as e:
            logger.warning(
                f"Failed to load player data, captain names unavailable: "
                f"{type(e).__name__}: {e}"
            )
            return {}
