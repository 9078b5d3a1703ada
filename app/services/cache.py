import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

from app.models.results import CohortKey, ScoreInput

logger = logging.getLogger(__name__)


class CohortCache:
    """
    Cache of fetched cohort entries, keyed by cohort.

    Owned by whoever creates it (the application keeps one on app.state);
    entries expire after `ttl` seconds and are dropped whenever an upsert
    touches the cohort. A ttl of 0 disables caching.
    """
    def __init__(self, ttl: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[CohortKey, Tuple[float, List[ScoreInput]]] = {}

    def get(self, key: CohortKey) -> Optional[List[ScoreInput]]:
        cached = self._entries.get(key)
        if cached is None:
            return None

        stored_at, inputs = cached
        if self._clock() - stored_at >= self.ttl:
            del self._entries[key]
            return None

        return list(inputs)

    def set(self, key: CohortKey, inputs: List[ScoreInput]) -> None:
        if self.ttl <= 0:
            return
        now = self._clock()
        self._purge(now)
        self._entries[key] = (now, list(inputs))

    def _purge(self, now: float) -> None:
        """Drop every expired cohort, not just the one being read."""
        expired = [key for key, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Dropped {len(expired)} expired cohort(s) from the cache")

    def invalidate(self, key: CohortKey) -> None:
        if self._entries.pop(key, None) is not None:
            logger.debug(f"Invalidated cached cohort {tuple(key)}")

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: CohortKey) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
