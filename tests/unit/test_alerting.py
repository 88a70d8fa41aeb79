import pytest

from payment_webhooks.observability.alerting import AlertManager
from payment_webhooks.observability.metrics import MetricsCollector


class TestAlertCheck:
    """Tests for AlertManager.check()."""

    @pytest.mark.unit
    def test_check_returns_alert_when_rate_exceeds_threshold(self, metrics, alert_manager):
        # 2 failures out of 3 against a 10% threshold
        metrics.record_success("stripe")
        metrics.record_failure("stripe")
        metrics.record_failure("stripe")
        alert = alert_manager.check()
        assert alert is not None
        assert alert["type"] == "webhook_failure_rate"
        assert alert["failure_rate"] > alert_manager.threshold
        assert alert["total_webhooks"] == 3
        assert alert["failed_webhooks"] == 2
        assert "2/3 webhooks failed" in alert["message"]

    @pytest.mark.unit
    def test_check_returns_none_when_rate_below_threshold(self, metrics, alert_manager):
        for _ in range(10):
            metrics.record_success("stripe")
        assert alert_manager.check() is None

    @pytest.mark.unit
    def test_check_returns_none_without_traffic(self, alert_manager):
        assert alert_manager.check() is None

    @pytest.mark.unit
    def test_min_samples_suppresses_early_alerts(self, metrics):
        am = AlertManager(metrics=metrics, threshold=0.10, min_samples=5)
        metrics.record_failure("stripe")
        assert am.check() is None

    @pytest.mark.unit
    def test_callback_is_invoked_on_alert(self):
        received = []
        mc = MetricsCollector(window_seconds=300)
        am = AlertManager(metrics=mc, threshold=0.10, callback=received.append)
        mc.record_failure("stripe")
        mc.record_failure("stripe")
        am.check()
        assert len(received) == 1
        assert received[0]["type"] == "webhook_failure_rate"

    @pytest.mark.unit
    def test_custom_threshold_works(self):
        mc = MetricsCollector(window_seconds=300)
        am = AlertManager(metrics=mc, threshold=0.50)
        mc.record_failure("stripe")
        mc.record_success("stripe")
        mc.record_success("stripe")
        assert am.check() is None
        mc.record_failure("stripe")
        mc.record_failure("stripe")
        # 3/5 = 60%
        assert am.check() is not None

    @pytest.mark.unit
    def test_fire_once_second_check_returns_none(self, metrics, alert_manager):
        metrics.record_failure("stripe")
        metrics.record_failure("stripe")
        assert alert_manager.check() is not None
        assert alert_manager.check() is None
        assert len(alert_manager.get_alerts()) == 1

    @pytest.mark.unit
    def test_rearms_after_rate_recovers(self, metrics, alert_manager):
        metrics.record_failure("stripe")
        assert alert_manager.check() is not None

        for _ in range(20):
            metrics.record_success("stripe")
        assert alert_manager.check() is None

        for _ in range(10):
            metrics.record_failure("stripe")
        assert alert_manager.check() is not None
        assert len(alert_manager.get_alerts()) == 2


class TestAlertReset:
    @pytest.mark.unit
    def test_reset_allows_refire(self, metrics, alert_manager):
        metrics.record_failure("stripe")
        assert alert_manager.check() is not None
        alert_manager.reset()
        assert alert_manager.get_alerts() == []
        assert alert_manager.check() is not None
