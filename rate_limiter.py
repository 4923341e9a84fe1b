import threading
import time
from typing import Callable, Optional


DEFAULT_MIN_INTERVAL = 5.0
ANALYSIS_MIN_INTERVAL = 10.0


class RateLimiter:
    """Minimum-interval limiter for one named operation.

    A recorded invocation consumes the window whether or not the call it
    guards succeeds.
    """

    def __init__(
        self,
        min_interval: float = DEFAULT_MIN_INTERVAL,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_interval = min_interval
        self.name = name
        self._clock = clock
        self._last_invocation: Optional[float] = None
        self._lock = threading.Lock()

    def can_proceed(self) -> bool:
        return self.time_until_next_allowed() == 0

    def time_until_next_allowed(self) -> float:
        with self._lock:
            if self._last_invocation is None:
                return 0.0
            elapsed = self._clock() - self._last_invocation
            return max(0.0, self.min_interval - elapsed)

    def record_invocation(self) -> None:
        with self._lock:
            self._last_invocation = self._clock()
