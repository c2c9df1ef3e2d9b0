"""League membership fetcher - pages through classic league standings."""

import logging
from collections.abc import Callable

from league_stats.services.fpl_client import FplApiClient
from league_stats.services.models import LeagueMember

logger = logging.getLogger(__name__)


class MembershipFetcher:
    """Collects every member of a classic league, in standings order."""

    def __init__(self, client: FplApiClient):
        self.client = client

    async def fetch_all_members(
        self,
        league_id: int,
        on_page: Callable[[int], None] | None = None,
    ) -> tuple[list[LeagueMember], str]:
        """Fetch all standings pages for a league.

        Pages are requested one at a time from page 1 until the API reports
        has_next=False. Any page failure aborts the whole fetch; standings are
        never returned partially.

        Args:
            league_id: FPL classic league ID
            on_page: Called with the running member count after each page

        Returns:
            (members in page order, league name from page 1)

        Raises:
            FetchError: If any page request fails
        """
        members: list[LeagueMember] = []
        league_name = f"League {league_id}"  # Fallback if page 1 has no name
        page = 1
        has_next = True

        while has_next:
            standings = await self.client.get_standings_page(league_id, page)

            if page == 1 and standings.league_name:
                league_name = standings.league_name

            members.extend(
                LeagueMember(
                    entry_id=entry.entry_id,
                    entry_name=entry.entry_name,
                    manager_name=entry.player_name,
                    event_total=entry.event_total,
                    rank=entry.rank,
                    last_rank=entry.last_rank,
                    total=entry.total,
                )
                for entry in standings.results
            )

            if on_page is not None:
                on_page(len(members))

            has_next = standings.has_next
            page += 1

        logger.info(
            f"Fetched {len(members)} members of league {league_id} "
            f"across {page - 1} page(s)"
        )
        return members, league_name
