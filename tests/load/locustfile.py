# Locust load test for webhook ingestion throughput.
#
# How to run:
#   locust -f tests/load/locustfile.py --headless -u 50 -r 10 --run-time 30s --host http://127.0.0.1:8080
#
# The test starts a WebhookServer on port 8080 via on_test_start/on_test_stop
# events, so no external server is needed. Each task opens a Stripe payment
# and posts the signed payment_intent.succeeded notification that settles it.
#
# Throughput target: ~1000 webhooks/min (50 users with short waits).

import logging
import threading
import uuid

from locust import HttpUser, between, events, task

from payment_webhooks.config import Settings, StripeSettings
from payment_webhooks.handlers import build_registry
from payment_webhooks.idempotency import InMemoryIdempotencyStore
from payment_webhooks.lifecycle import InMemoryPaymentRepository, PaymentManager
from payment_webhooks.models.payment import PaymentStatus
from payment_webhooks.observability import MetricsCollector
from payment_webhooks.observability import metrics as outcomes
from payment_webhooks.receiver import WebhookController, WebhookServer
from payment_webhooks.utils.factories import OrderFactory, WebhookFactory

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Shared state: tracking sent vs settled for loss assertions
# ---------------------------------------------------------------------------
WEBHOOK_SECRET = "whsec_load_test"

_stats_lock = threading.Lock()
_sent_count: int = 0
_success_count: int = 0
_failure_count: int = 0

# Managed by test lifecycle events
_server: WebhookServer | None = None
_manager: PaymentManager | None = None
_repository: InMemoryPaymentRepository | None = None
_metrics: MetricsCollector | None = None


class SucceededChargeAdapter:
    """Reports every known charge as succeeded for the amount it was opened with."""

    def __init__(self):
        self._amounts: dict[str, int] = {}
        self._lock = threading.Lock()

    def open(self, method_id: str, cents: int) -> None:
        with self._lock:
            self._amounts[method_id] = cents

    def get_charge_details(self, method_id: str) -> dict:
        with self._lock:
            return {"id": method_id, "amount": self._amounts.get(method_id), "status": "succeeded"}

    def refund(self, method_id: str) -> dict:
        return {"id": f"re_{method_id}"}


_adapter = SucceededChargeAdapter()


def _increment(counter: str) -> None:
    global _sent_count, _success_count, _failure_count
    with _stats_lock:
        if counter == "sent":
            _sent_count += 1
        elif counter == "success":
            _success_count += 1
        else:
            _failure_count += 1


# ---------------------------------------------------------------------------
# Locust lifecycle events
# ---------------------------------------------------------------------------
@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Start a WebhookServer on port 8080 before the load test begins."""
    global _server, _manager, _repository, _metrics, _sent_count, _success_count, _failure_count

    with _stats_lock:
        _sent_count = 0
        _success_count = 0
        _failure_count = 0

    # One client address sends everything, so rate limiting is off.
    settings = Settings(stripe=StripeSettings(secret=WEBHOOK_SECRET), webhook_rate_limit=0)
    registry = build_registry(settings, adapters={"STRIPE": _adapter})
    _repository = InMemoryPaymentRepository()
    _manager = PaymentManager(registry, _repository)
    _metrics = MetricsCollector(window_seconds=3600)
    controller = WebhookController(_manager, InMemoryIdempotencyStore(), settings, metrics=_metrics)

    _server = WebhookServer(controller, host="127.0.0.1", port=8080)
    _server.start()
    logger.info("WebhookServer started on %s", _server.base_url)


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Stop the WebhookServer and report settlement stats."""
    global _server

    settled = 0
    accepted = 0
    if _server is not None:
        _server.stop()
        _server = None
        settled = sum(1 for record in _repository.all() if record.status is PaymentStatus.APPROVED)
        accepted = _metrics.count(outcomes.ACCEPTED)
        logger.info("WebhookServer stopped")

    with _stats_lock:
        total_sent = _sent_count
        total_ok = _success_count
        total_fail = _failure_count

    logger.info(
        "Load test summary: sent=%d, http_ok=%d, http_fail=%d, accepted=%d, settled=%d",
        total_sent,
        total_ok,
        total_fail,
        accepted,
        settled,
    )

    if total_sent > 0:
        success_rate = total_ok / total_sent * 100
        loss_rate = (1 - settled / total_sent) * 100

        logger.info("Success rate: %.2f%% (target: >99%%)", success_rate)
        logger.info("Settlement loss rate: %.2f%% (target: 0%%)", loss_rate)

        if success_rate < 99.0:
            environment.process_exit_code = 1
            logger.error("ASSERTION FAILED: Success rate %.2f%% is below 99%% threshold", success_rate)
        if settled < total_ok:
            environment.process_exit_code = 1
            logger.error(
                "ASSERTION FAILED: %d acknowledged webhooks left their payment pending (%d ok, %d settled)",
                total_ok - settled,
                total_ok,
                settled,
            )

    # p95 response time must be below 5000ms
    for stat in environment.runner.stats.entries.values():
        p95 = stat.get_response_time_percentile(0.95)
        if p95 and p95 > 5000:
            environment.process_exit_code = 1
            logger.error("ASSERTION FAILED: p95 latency %dms exceeds 5000ms for '%s'", p95, stat.name)


# ---------------------------------------------------------------------------
# Locust user
# ---------------------------------------------------------------------------
class WebhookUser(HttpUser):
    """Simulates Stripe settling card payments through the webhook endpoint."""

    wait_time = between(0.01, 0.05)

    @task
    def settle_payment_by_webhook(self) -> None:
        """Open a payment, sign its succeeded event, and POST it to /stag-herd/stripe."""
        method_id = f"pi_{uuid.uuid4().hex[:24]}"
        _adapter.open(method_id, 10000)
        _manager.request("100.00", "STRIPE", OrderFactory.create(), {"payment_method_id": method_id})

        request = WebhookFactory.stripe(WEBHOOK_SECRET, WebhookFactory.stripe_event(object_id=method_id))
        _increment("sent")

        with self.client.post(
            "/stag-herd/stripe",
            data=request.body,
            headers=dict(request.headers),
            catch_response=True,
            name="/stag-herd/stripe [payment_intent.succeeded]",
        ) as response:
            if response.status_code == 200:
                _increment("success")
                response.success()
            else:
                _increment("failure")
                response.failure(f"HTTP {response.status_code}: {response.text[:200]}")
