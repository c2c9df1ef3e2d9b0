"""Per-league load status for clients polling a statistics load.

Lifecycle: idle -> loading (with progress) -> loaded | failed. A failed
league can be loaded again, which moves it back to loading.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(slots=True)
class LoadStatus:
    state: LoadState = LoadState.IDLE
    progress: float = 0.0
    message: str = ""
    error: str | None = None


class LoadStatusTracker:
    """In-memory load status keyed by league id."""

    def __init__(self) -> None:
        self._statuses: dict[int, LoadStatus] = {}

    def get(self, league_id: int) -> LoadStatus:
        """Current status; leagues never loaded report idle."""
        return self._statuses.get(league_id, LoadStatus())

    def track(self, league_id: int) -> Callable[[float, str], None]:
        """Start a load and return the progress callback for it.

        Progress never moves backwards, even if checkpoints arrive out of order.
        """
        status = LoadStatus(state=LoadState.LOADING)
        self._statuses[league_id] = status

        def on_progress(fraction: float, message: str) -> None:
            status.progress = max(status.progress, min(fraction, 1.0))
            status.message = message

        return on_progress

    def mark_loaded(self, league_id: int) -> None:
        self._statuses[league_id] = LoadStatus(state=LoadState.LOADED, progress=1.0)

    def mark_failed(self, league_id: int, error: str) -> None:
        previous = self.get(league_id)
        self._statuses[league_id] = LoadStatus(
            state=LoadState.FAILED,
            progress=previous.progress,
            message=previous.message,
            error=error,
        )

    def reset(self, league_id: int) -> None:
        self._statuses.pop(league_id, None)
