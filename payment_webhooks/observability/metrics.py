import threading
import time
from collections import Counter, deque
from typing import Callable

# Outcomes the webhook controller reports.
ACCEPTED = "accepted"
DUPLICATE = "duplicate"
RATE_LIMITED = "rate_limited"
INVALID_PROVIDER = "invalid_provider"
UNVERIFIED = "unverified"
BAD_PAYLOAD = "bad_payload"
ERROR = "error"

SUCCESS_OUTCOMES = frozenset({ACCEPTED, DUPLICATE})
FAILURE_OUTCOMES = frozenset({UNVERIFIED, BAD_PAYLOAD, ERROR})


class MetricsCollector:
    """Counts webhook outcomes, with a rolling window for failure rates.

    Rate limiting and unknown providers are counted but belong to neither the
    success nor the failure side of the rate; they say nothing about whether
    verified deliveries are being processed.
    """

    def __init__(self, window_seconds: float = 300, clock: Callable[[], float] = time.monotonic):
        self._window_seconds = window_seconds
        self._clock = clock
        self._successes: deque[tuple[float, str]] = deque()  # (timestamp, provider)
        self._failures: deque[tuple[float, str]] = deque()
        self._totals: Counter = Counter()
        self._by_provider: dict[str, Counter] = {}
        self._lock = threading.Lock()

    def record(self, provider: str, outcome: str) -> None:
        with self._lock:
            now = self._clock()
            self._totals[outcome] += 1
            self._by_provider.setdefault(provider, Counter())[outcome] += 1
            if outcome in SUCCESS_OUTCOMES:
                self._successes.append((now, provider))
            elif outcome in FAILURE_OUTCOMES:
                self._failures.append((now, provider))
            self._prune(now)

    def record_success(self, provider: str) -> None:
        self.record(provider, ACCEPTED)

    def record_failure(self, provider: str) -> None:
        self.record(provider, ERROR)

    def _prune(self, now: float) -> None:
        cutoff = now - self._window_seconds
        for entries in (self._successes, self._failures):
            while entries and entries[0][0] < cutoff:
                entries.popleft()

    def failure_rate(self, provider: str | None = None) -> float:
        """Failure rate in the current rolling window (0.0 to 1.0)."""
        successes, failures = self._window_counts(provider)
        total = successes + failures
        if total == 0:
            return 0.0
        return failures / total

    def total_in_window(self, provider: str | None = None) -> int:
        return sum(self._window_counts(provider))

    def failure_count_in_window(self, provider: str | None = None) -> int:
        return self._window_counts(provider)[1]

    def success_count_in_window(self, provider: str | None = None) -> int:
        return self._window_counts(provider)[0]

    def _window_counts(self, provider: str | None) -> tuple[int, int]:
        with self._lock:
            self._prune(self._clock())
            if provider is None:
                return len(self._successes), len(self._failures)
            return (
                sum(1 for _, p in self._successes if p == provider),
                sum(1 for _, p in self._failures if p == provider),
            )

    def count(self, outcome: str, provider: str | None = None) -> int:
        """All-time count for ``outcome``."""
        with self._lock:
            if provider is None:
                return self._totals[outcome]
            return self._by_provider.get(provider, Counter())[outcome]

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "totals": dict(self._totals),
                "providers": {provider: dict(counts) for provider, counts in self._by_provider.items()},
                "window": {"successes": len(self._successes), "failures": len(self._failures)},
            }

    def reset(self) -> None:
        with self._lock:
            self._successes.clear()
            self._failures.clear()
            self._totals.clear()
            self._by_provider.clear()
