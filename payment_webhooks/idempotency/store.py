import heapq
import threading
import time
from typing import Callable, Protocol


DEFAULT_TTL_SECONDS = 604800  # 7 days


class IdempotencyStore(Protocol):
    def reserve(self, provider: str, event_id: str, ttl: float = DEFAULT_TTL_SECONDS) -> bool:
        ...


class InMemoryIdempotencyStore:
    """Thread-safe reservation of provider event ids with TTL expiry.

    ``reserve`` is a single check-and-set under one lock, so two concurrent
    deliveries of the same event can never both be admitted. Expired keys are
    dropped as later reservations come in, oldest expiry first.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires_at: dict[str, float] = {}
        self._expiry_heap: list[tuple[float, str]] = []
        self._lock = threading.Lock()

    @staticmethod
    def key(provider: str, event_id: str) -> str:
        return f"{provider}:{event_id}"

    def reserve(self, provider: str, event_id: str, ttl: float = DEFAULT_TTL_SECONDS) -> bool:
        """Reserve ``provider:event_id``. Returns True only for the first caller within ``ttl``."""
        key = self.key(provider, event_id)
        with self._lock:
            now = self._clock()
            self._prune(now)
            expires_at = self._expires_at.get(key)
            if expires_at is not None and expires_at > now:
                return False
            self._expires_at[key] = now + ttl
            heapq.heappush(self._expiry_heap, (now + ttl, key))
            return True

    def is_duplicate(self, event_id: str, provider: str, ttl: float = DEFAULT_TTL_SECONDS) -> bool:
        """Inverse of ``reserve``: True if the event was already seen."""
        return not self.reserve(provider, event_id, ttl)

    def purge_expired(self) -> int:
        with self._lock:
            return self._prune(self._clock())

    def _prune(self, now: float) -> int:
        # Caller holds the lock. Heap entries for keys reserved again later are skipped.
        removed = 0
        heap = self._expiry_heap
        while heap and heap[0][0] <= now:
            expires_at, key = heapq.heappop(heap)
            if self._expires_at.get(key) == expires_at:
                del self._expires_at[key]
                removed += 1
        return removed

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for expires_at in self._expires_at.values() if expires_at > now)

    def clear(self) -> None:
        with self._lock:
            self._expires_at.clear()
            self._expiry_heap.clear()
