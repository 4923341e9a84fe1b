import threading
import time
from typing import Callable, NamedTuple, Optional

from models import AnalysisResult


STALE_AFTER = 5 * 60
EVICT_AFTER = 10 * 60

CacheKey = tuple[str, str]


class _Entry(NamedTuple):
    result: AnalysisResult
    stored_at: float


class AnalysisCache:
    """In-memory analysis results keyed by (address, transaction fingerprint).

    Entries are served while fresh and dropped once older than ``evict_after``.
    """

    def __init__(
        self,
        stale_after: float = STALE_AFTER,
        evict_after: float = EVICT_AFTER,
        clock: Callable[[], float] = time.monotonic,
    ):
        if evict_after < stale_after:
            raise ValueError("evict_after must not be shorter than stale_after")
        self.stale_after = stale_after
        self.evict_after = evict_after
        self._clock = clock
        self._entries: dict[CacheKey, _Entry] = {}
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> Optional[AnalysisResult]:
        with self._lock:
            self._purge_locked()
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self.stale_after:
                return None
            return entry.result

    def put(self, key: CacheKey, result: AnalysisResult) -> None:
        with self._lock:
            self._purge_locked()
            self._entries[key] = _Entry(result, self._clock())

    def purge(self) -> int:
        with self._lock:
            return self._purge_locked()

    def _purge_locked(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now - e.stored_at >= self.evict_after]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
