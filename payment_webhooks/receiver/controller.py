import json
import logging
from dataclasses import dataclass, field

from payment_webhooks.config import Settings
from payment_webhooks.exceptions import InvalidPaymentMethod
from payment_webhooks.idempotency import IdempotencyStore
from payment_webhooks.lifecycle.manager import PaymentManager
from payment_webhooks.models.webhook import WebhookRequest
from payment_webhooks.observability import metrics as outcomes
from payment_webhooks.observability.alerting import AlertManager
from payment_webhooks.observability.metrics import MetricsCollector
from payment_webhooks.verification.payload import validate_payload

from .ratelimit import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)

# Route slugs that do not upper-case to their method code.
PROVIDER_ALIASES = {"kueski": "KUESKIPAY", "kueskipay": "KUESKIPAY"}

# Idempotency namespaces shared by several slugs.
IDEMPOTENCY_NAMESPACES = {"KUESKIPAY": "kueski"}

# Metrics bucket for slugs that name no registered method.
UNKNOWN_PROVIDER = "unknown"


def resolve_provider(slug: str) -> str:
    slug = (slug or "").strip()
    return PROVIDER_ALIASES.get(slug.lower(), slug.upper())


@dataclass
class WebhookResponse:
    status: int
    body: dict = field(default_factory=dict)

    def json(self) -> bytes:
        return json.dumps(self.body).encode("utf-8")


class WebhookController:
    """Runs one provider notification through rate limiting, verification,
    deduplication and processing, and turns the outcome into a response.

    Only processing failures surface as 500; everything the caller sent wrong
    is answered with a 4xx and never reaches a handler.
    """

    def __init__(
        self,
        manager: PaymentManager,
        idempotency: IdempotencyStore,
        settings: Settings | None = None,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        metrics: MetricsCollector | None = None,
        alerts: AlertManager | None = None,
    ):
        self.manager = manager
        self.idempotency = idempotency
        self.settings = settings or Settings()
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter.per_minutes(
            self.settings.webhook_rate_limit, self.settings.webhook_rate_decay
        )
        self.metrics = metrics or MetricsCollector()
        self.alerts = alerts

    def handle(self, provider_slug: str, request: WebhookRequest) -> WebhookResponse:
        slug = (provider_slug or "").strip().lower()
        code = resolve_provider(slug)
        if code not in self.manager.registry:
            slug = UNKNOWN_PROVIDER

        if not self.rate_limiter.allow(request.client_ip):
            logger.warning("Rate limit exceeded for %s on %s", request.client_ip, slug)
            return self._respond(slug, outcomes.RATE_LIMITED, 429, {"error": "Too many requests"})

        try:
            handler = self.manager.get_handler(code, enabled_only=True)
        except InvalidPaymentMethod:
            return self._respond(slug, outcomes.INVALID_PROVIDER, 404, {"message": "Invalid provider"})

        verification = handler.verify_webhook(request)
        if not verification.valid:
            logger.warning("Webhook verification failed [%s]: %s", code, verification.reason)
            return self._respond(
                slug, outcomes.UNVERIFIED, 401, {"message": verification.reason or "Invalid signature"}
            )

        if self.settings.validate_payloads:
            shape = validate_payload(code, request)
            if not shape.valid:
                logger.warning("Webhook payload rejected [%s]: %s", code, shape.reason)
                return self._respond(slug, outcomes.BAD_PAYLOAD, 400, {"message": shape.reason})

        if verification.event_id:
            namespace = IDEMPOTENCY_NAMESPACES.get(code, code.lower())
            if not self.idempotency.reserve(namespace, verification.event_id, self.settings.idempotency_ttl):
                logger.info("Duplicate webhook [%s] event %s", code, verification.event_id)
                return self._respond(slug, outcomes.DUPLICATE, 200, {"message": "OK (Idempotent)"})

        try:
            handler.process_webhook(request, self.manager)
        except Exception as e:
            logger.exception("Webhook error [%s]: %s", code, e)
            return self._respond(slug, outcomes.ERROR, 500, {"message": "Error processing"})

        logger.info("Webhook accepted [%s] event %s", code, verification.event_id)
        return self._respond(slug, outcomes.ACCEPTED, 200, {"message": "OK"})

    def _respond(self, slug: str, outcome: str, status: int, body: dict) -> WebhookResponse:
        self.metrics.record(slug, outcome)
        if outcome in outcomes.FAILURE_OUTCOMES and self.alerts is not None:
            self.alerts.check()
        return WebhookResponse(status=status, body=body)
