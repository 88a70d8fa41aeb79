"""Hosted-checkout providers whose payments are confirmed only by webhook.

Once the provider reports a payment, validation has nothing further to ask,
so it approves unconditionally. Neither provider supports refunds from here.
"""

import logging

from payment_webhooks.exceptions import PaymentDeclined
from payment_webhooks.models.payment import PaymentRecord, PaymentStatus
from payment_webhooks.models.results import PaymentResult
from payment_webhooks.models.webhook import VerificationResult, WebhookRequest
from payment_webhooks.verification.verifiers import (
    DEFAULT_TOLERANCE_SECONDS,
    verify_conekta_signature,
    verify_kueski_signature,
)

from .base import PaymentHandler

logger = logging.getLogger(__name__)


class HostedCheckoutHandler(PaymentHandler):
    approving_events: tuple[str, ...] = ()
    event_key = "type"

    def request_payment(self, amount, order, method_data) -> PaymentResult:
        try:
            details = self.require_adapter().request_payment(amount, self.describe(order))
        except Exception as e:
            return PaymentResult.declined(str(e))

        link = details.get("payment_url")
        self.notify_link(order, link)
        return PaymentResult.success(PaymentStatus.PENDING, method_id=details.get("id"), link=link)

    def validate_payment(self, record: PaymentRecord) -> PaymentResult:
        return PaymentResult.success(PaymentStatus.APPROVED, method_id=record.method_id)

    def cancel_payment(self, record: PaymentRecord) -> PaymentResult:
        raise PaymentDeclined(f"{self.description} payments can not be refunded")

    def process_webhook(self, request: WebhookRequest, manager) -> None:
        payload = request.json()
        event_type = payload.get(self.event_key)
        if event_type not in self.approving_events:
            logger.info("Ignoring %s event %s", self.description, event_type)
            return

        self.approve_by_method_id(manager, self.event_method_id(payload))

    def event_method_id(self, payload: dict):
        data = payload.get("data") or {}
        obj = data.get("object") if isinstance(data, dict) else None
        if isinstance(obj, dict):
            return obj.get("order_id") or obj.get("id")
        return data.get("id") if isinstance(data, dict) else None


class ConektaHandler(HostedCheckoutHandler):
    method = "CONEKTA"
    description = "Conekta"
    approving_events = ("order.paid", "charge.paid")

    def verify_webhook(self, request: WebhookRequest) -> VerificationResult:
        return verify_conekta_signature(request, getattr(self.settings, "secret", None))


class KueskiPayHandler(HostedCheckoutHandler):
    method = "KUESKIPAY"
    description = "Kueski Pay"
    cfdi_payment_form = "99"
    approving_events = ("payment.approved",)
    event_key = "event"

    def verify_webhook(self, request: WebhookRequest) -> VerificationResult:
        return verify_kueski_signature(
            request,
            getattr(self.settings, "webhook_secret", None),
            tolerance=getattr(self.settings, "tolerance", DEFAULT_TOLERANCE_SECONDS),
        )

    def event_method_id(self, payload: dict):
        data = payload.get("data") or {}
        return data.get("payment_id") or data.get("id") or payload.get("payment_id")
