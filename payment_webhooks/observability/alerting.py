import logging
import threading
from typing import Callable

from payment_webhooks.observability.metrics import MetricsCollector

logger = logging.getLogger(__name__)


class AlertManager:
    """Fires once when the webhook failure rate crosses ``threshold``.

    The alert re-arms when the rate drops back to or below the threshold.
    ``min_samples`` keeps a single early failure from reading as a 100% rate.
    """

    def __init__(
        self,
        metrics: MetricsCollector,
        threshold: float = 0.10,
        callback: Callable[[dict], None] | None = None,
        min_samples: int = 1,
    ):
        self.metrics = metrics
        self.threshold = threshold
        self.callback = callback
        self.min_samples = min_samples
        self._fired = False
        self._alerts: list[dict] = []
        self._lock = threading.Lock()

    def check(self) -> dict | None:
        """Return the alert if one fires now, else None."""
        total = self.metrics.total_in_window()
        if total == 0 or total < self.min_samples:
            return None

        rate = self.metrics.failure_rate()
        failures = self.metrics.failure_count_in_window()

        with self._lock:
            if rate <= self.threshold:
                self._fired = False
                return None
            if self._fired:
                return None

            alert = {
                "type": "webhook_failure_rate",
                "failure_rate": rate,
                "threshold": self.threshold,
                "total_webhooks": total,
                "failed_webhooks": failures,
                "message": (
                    f"Webhook failure rate {rate:.1%} exceeds "
                    f"threshold {self.threshold:.1%} "
                    f"({failures}/{total} webhooks failed)"
                ),
            }
            self._fired = True
            self._alerts.append(alert)

        logger.warning(alert["message"])
        if self.callback:
            self.callback(alert)
        return alert

    def get_alerts(self) -> list[dict]:
        with self._lock:
            return list(self._alerts)

    def reset(self) -> None:
        with self._lock:
            self._fired = False
            self._alerts.clear()
