import pytest

from payment_webhooks.observability.metrics import (
    ACCEPTED,
    DUPLICATE,
    ERROR,
    INVALID_PROVIDER,
    RATE_LIMITED,
    UNVERIFIED,
    MetricsCollector,
)


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRecordAndCounts:
    """Tests for recording outcomes and counting them."""

    @pytest.mark.unit
    def test_record_success_increments(self, metrics):
        metrics.record_success("stripe")
        metrics.record_success("stripe")
        assert metrics.success_count_in_window() == 2

    @pytest.mark.unit
    def test_record_failure_increments(self, metrics):
        metrics.record_failure("stripe")
        metrics.record_failure("paypal")
        metrics.record_failure("paypal")
        assert metrics.failure_count_in_window() == 3
        assert metrics.failure_count_in_window("paypal") == 2

    @pytest.mark.unit
    def test_duplicates_count_as_success(self, metrics):
        metrics.record("stripe", DUPLICATE)
        metrics.record("stripe", UNVERIFIED)
        assert metrics.success_count_in_window() == 1
        assert metrics.failure_count_in_window() == 1

    @pytest.mark.unit
    def test_rate_limited_and_invalid_provider_stay_out_of_the_rate(self, metrics):
        metrics.record("stripe", RATE_LIMITED)
        metrics.record("bitcoin", INVALID_PROVIDER)
        assert metrics.total_in_window() == 0
        assert metrics.count(RATE_LIMITED) == 1
        assert metrics.count(INVALID_PROVIDER, provider="bitcoin") == 1

    @pytest.mark.unit
    def test_snapshot_groups_by_provider(self, metrics):
        metrics.record("stripe", ACCEPTED)
        metrics.record("stripe", ERROR)
        metrics.record("paypal", ACCEPTED)
        snapshot = metrics.snapshot()
        assert snapshot["totals"] == {ACCEPTED: 2, ERROR: 1}
        assert snapshot["providers"]["stripe"] == {ACCEPTED: 1, ERROR: 1}


class TestFailureRate:
    """Tests for failure_rate computation."""

    @pytest.mark.unit
    def test_failure_rate_returns_correct_ratio(self, metrics):
        metrics.record_success("stripe")
        metrics.record_failure("stripe")
        assert metrics.failure_rate() == pytest.approx(0.5)

    @pytest.mark.unit
    def test_failure_rate_per_provider(self, metrics):
        metrics.record_success("stripe")
        metrics.record_failure("paypal")
        assert metrics.failure_rate("stripe") == 0.0
        assert metrics.failure_rate("paypal") == 1.0

    @pytest.mark.unit
    def test_failure_rate_returns_zero_when_empty(self, metrics):
        assert metrics.failure_rate() == 0.0


class TestRollingWindow:
    """Tests for rolling window expiry."""

    @pytest.mark.unit
    def test_rolling_window_excludes_old_entries(self):
        clock = FakeClock()
        mc = MetricsCollector(window_seconds=60, clock=clock)
        mc.record_success("stripe")
        mc.record_failure("stripe")
        assert mc.total_in_window() == 2

        clock.now = 61
        assert mc.total_in_window() == 0
        assert mc.failure_rate() == 0.0
        # all-time counts survive the window
        assert mc.count(ACCEPTED) == 1

    @pytest.mark.unit
    def test_record_drops_entries_outside_window(self):
        """A steady stream of successes does not pile up in the window."""
        clock = FakeClock()
        mc = MetricsCollector(window_seconds=60, clock=clock)
        for _ in range(500):
            mc.record_success("stripe")

        clock.now = 61
        mc.record_success("stripe")

        assert mc.snapshot()["window"] == {"successes": 1, "failures": 0}
        assert mc.count(ACCEPTED) == 501


class TestReset:
    @pytest.mark.unit
    def test_reset_clears_all_data(self, metrics):
        metrics.record_success("stripe")
        metrics.record_failure("stripe")
        metrics.reset()
        assert metrics.total_in_window() == 0
        assert metrics.count(ACCEPTED) == 0
        assert metrics.snapshot() == {"totals": {}, "providers": {}, "window": {"successes": 0, "failures": 0}}
