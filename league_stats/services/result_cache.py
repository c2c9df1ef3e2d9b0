"""TTL + capacity bounded cache of assembled league statistics.

Entries expire a fixed time after insertion. When full, the entry inserted
longest ago is evicted (FIFO by insertion, reads do not refresh an entry).
All operations go through one asyncio.Lock so concurrent requests never see
a half-updated cache.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from cachetools import FIFOCache

from league_stats.services.models import LeagueStatisticsSnapshot

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300  # 5 minutes
DEFAULT_MAX_LEAGUES = 10


@dataclass(slots=True)
class CacheEntry:
    """Cached snapshot with its insertion time (timer units)."""

    snapshot: LeagueStatisticsSnapshot
    inserted_at: float


class ResultCache:
    """Cache of LeagueStatisticsSnapshot keyed by league id."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        maxsize: int = DEFAULT_MAX_LEAGUES,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.maxsize = maxsize
        self._timer = timer
        # FIFOCache evicts in insertion order; re-inserting a key moves it to the back
        self._entries: FIFOCache[int, CacheEntry] = FIFOCache(maxsize=maxsize)
        self._lock = asyncio.Lock()

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._timer() - entry.inserted_at >= self.ttl

    async def get(self, league_id: int) -> LeagueStatisticsSnapshot | None:
        """Return the cached snapshot, or None if missing or expired."""
        async with self._lock:
            entry = self._entries.get(league_id)
            if entry is None:
                return None
            if self._is_expired(entry):
                logger.debug("Cache entry for league %s expired", league_id)
                del self._entries[league_id]
                return None
            logger.debug("Cache hit for league %s", league_id)
            return entry.snapshot

    async def put(self, league_id: int, snapshot: LeagueStatisticsSnapshot) -> None:
        """Insert or replace a snapshot, evicting the oldest insertion when full."""
        async with self._lock:
            if league_id in self._entries:
                # Drop first so the re-insert counts as the newest entry
                del self._entries[league_id]
            self._entries[league_id] = CacheEntry(snapshot=snapshot, inserted_at=self._timer())

    async def invalidate(self, league_id: int) -> bool:
        """Remove one league. Returns True if it was cached."""
        async with self._lock:
            return self._entries.pop(league_id, None) is not None

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, league_id: object) -> bool:
        return league_id in self._entries
