"""Cached player id -> name lookup built from bootstrap-static.

bootstrap-static is the largest FPL response (~1.8MB) but the statistics
pipeline only needs `elements[].web_name` to label triple captain records.
The cache therefore keeps the small name map, not the payload, and a lock
makes concurrent league loads share a single download on a miss.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from cachetools import TTLCache

logger = logging.getLogger(__name__)

PLAYER_NAMES_TTL = 300  # 5 minutes - names only change between gameweeks

_NAMES_KEY = "player_names"

NameLoader = Callable[[], Awaitable[dict[int, str]]]


def parse_player_names(data: dict[str, Any]) -> dict[int, str]:
    """Map element id to web_name.

    Raises:
        KeyError, TypeError, ValueError: If an element has no usable id
    """
    return {int(p["id"]): p.get("web_name") or "" for p in data.get("elements") or []}


class PlayerNameCache:
    """Single-entry TTL cache of the player name map."""

    def __init__(
        self,
        ttl: float = PLAYER_NAMES_TTL,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self._names: TTLCache[str, dict[int, str]] = TTLCache(maxsize=1, ttl=ttl, timer=timer)
        self._lock = asyncio.Lock()
        self.last_fetch: float = 0.0

    async def get(self, load: NameLoader) -> dict[int, str]:
        """Return cached names, calling `load` once on a miss.

        An empty result (bootstrap-static answered without players, which
        happens during FPL maintenance) is returned but not cached.

        Raises:
            Whatever `load` raises; nothing is cached in that case
        """
        names = self._names.get(_NAMES_KEY)
        if names is not None:
            logger.debug("Player names cache hit")
            return names

        async with self._lock:
            # Another caller may have loaded while we waited
            names = self._names.get(_NAMES_KEY)
            if names is not None:
                return names

            start = time.monotonic()
            names = await load()
            if not names:
                logger.error(
                    "bootstrap-static returned no players; not caching. "
                    "API may be under maintenance or rate-limiting."
                )
                return names

            self._names[_NAMES_KEY] = names
            self.last_fetch = time.time()
            logger.info(
                f"Cached {len(names)} player names, fetched in {time.monotonic() - start:.2f}s"
            )
            return names

    def clear(self) -> None:
        self._names.clear()

    def stats(self) -> dict[str, Any]:
        """Cache state for monitoring."""
        names = self._names.get(_NAMES_KEY)
        return {
            "cached": names is not None,
            "players": len(names) if names else 0,
            "last_fetch": self.last_fetch,
            "ttl_seconds": self.ttl,
        }
