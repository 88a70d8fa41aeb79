import logging
from decimal import Decimal

from payment_webhooks.config import FeeSchedule
from payment_webhooks.models.payment import PaymentRecord, PaymentStatus
from payment_webhooks.models.results import PaymentResult, random_method_id
from payment_webhooks.models.webhook import VerificationResult, WebhookRequest
from payment_webhooks.verification.verifiers import DEFAULT_TOLERANCE_SECONDS, verify_stripe_signature

from .base import PaymentHandler, to_decimal

logger = logging.getLogger(__name__)

APPROVING_EVENTS = ("payment_intent.succeeded", "charge.succeeded")


class StripeHandler(PaymentHandler):
    """Card payments captured on the client; the server only confirms them.

    Also serves GOOGLEPAY, which settles through the same Stripe account.
    """

    method = "STRIPE"
    description = "Stripe"
    default_fee = FeeSchedule(fixed=Decimal("2.9"), variable=Decimal("0.029"))

    def request_payment(self, amount, order, method_data) -> PaymentResult:
        method_id = method_data.payment_method_id
        metadata = {}
        if method_id and self.adapter is not None:
            try:
                details = self.adapter.get_charge_details(method_id)
                metadata["provider_status"] = details.get("status")
            except Exception as e:
                logger.info("Stripe lookup for %s failed: %s", method_id, e)

        return PaymentResult(
            result=PaymentStatus.PENDING,
            reason="Always PENDING",
            method_id=method_id or random_method_id(),
            metadata=metadata,
        )

    def validate_payment(self, record: PaymentRecord) -> PaymentResult:
        try:
            details = self.require_adapter().get_charge_details(record.method_id)
            cents = to_decimal(details.get("amount"))
            self.check_amount(cents / 100 if cents is not None else None, record)

            status = details.get("status")
            if status == "succeeded":
                return PaymentResult.success(PaymentStatus.APPROVED, method_id=record.method_id)
            return PaymentResult.pending(record.method_id, reason=f"Stripe Status: {status}")
        except Exception as e:
            return PaymentResult.declined(str(e))

    def cancel_payment(self, record: PaymentRecord) -> PaymentResult:
        return self.refund(lambda: self.require_adapter().refund(record.method_id))

    def verify_webhook(self, request: WebhookRequest) -> VerificationResult:
        secret = getattr(self.settings, "secret", None)
        tolerance = getattr(self.settings, "tolerance", DEFAULT_TOLERANCE_SECONDS)
        return verify_stripe_signature(request, secret, tolerance=tolerance)

    def process_webhook(self, request: WebhookRequest, manager) -> None:
        event = request.json()
        if event.get("type") not in APPROVING_EVENTS:
            logger.info("Ignoring Stripe event %s", event.get("type"))
            return

        data = event.get("data") or {}
        obj = data.get("object") or {}
        self.approve_by_method_id(manager, obj.get("id"))
