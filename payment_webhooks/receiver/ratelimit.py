import threading
import time
from collections import deque
from typing import Callable


class SlidingWindowRateLimiter:
    """Allows at most ``limit`` hits per key within any ``window_seconds`` span.

    A ``limit`` of zero or less disables limiting.
    """

    def __init__(self, limit: int = 60, window_seconds: float = 60, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, deque] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    @classmethod
    def per_minutes(cls, limit: int, decay_minutes: float = 1, **kwargs) -> "SlidingWindowRateLimiter":
        return cls(limit=limit, window_seconds=decay_minutes * 60, **kwargs)

    def allow(self, key: str) -> bool:
        if self.limit <= 0:
            return True

        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= self.limit:
                return False
            hits.append(now)
            return True

    def remaining(self, key: str) -> int:
        if self.limit <= 0:
            return -1
        cutoff = self._clock() - self.window_seconds
        with self._lock:
            hits = self._hits.get(key, ())
            return max(0, self.limit - sum(1 for t in hits if t > cutoff))

    def _sweep(self, cutoff: float) -> None:
        # Forget keys with no hit inside the window.
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for key in idle:
            del self._hits[key]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
