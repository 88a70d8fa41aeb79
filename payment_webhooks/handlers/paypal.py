import logging
from decimal import Decimal

from payment_webhooks.config import FeeSchedule, PayPalSettings
from payment_webhooks.models.payment import PaymentRecord, PaymentStatus
from payment_webhooks.models.results import PaymentResult
from payment_webhooks.models.webhook import VerificationResult, WebhookRequest
from payment_webhooks.verification.paypal import PayPalWebhookVerifier

from .base import PaymentHandler

logger = logging.getLogger(__name__)

# Order statuses that still allow the payer to finish checkout.
OPEN_STATUSES = {"PENDING", "COMPLETED", "APPROVED"}
AMOUNT_TOLERANCE = Decimal("0.01")


def approval_link(details: dict) -> str | None:
    # PayPal lists the payer-facing link second, after "self".
    links = details.get("links") or []
    if len(links) > 1:
        return links[1].get("href")
    return None


class PayPalHandler(PaymentHandler):
    method = "PAYPAL"
    description = "PayPal"
    cfdi_payment_form = "04"
    default_fee = FeeSchedule(fixed=Decimal("4"), variable=Decimal("0.0395"))

    def __init__(self, *args, verifier: PayPalWebhookVerifier | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        if verifier is None and isinstance(self.settings, PayPalSettings):
            token_cache = getattr(self.adapter, "token_cache", None)
            verifier = PayPalWebhookVerifier(self.settings, token_cache=token_cache)
        self.verifier = verifier

    def request_payment(self, amount, order, method_data) -> PaymentResult:
        adapter = self.require_adapter()
        details = None
        if method_data.payment_method_id:
            try:
                details = adapter.get_order_details(method_data.payment_method_id)
            except Exception as e:
                logger.info("PayPal order %s not reusable: %s", method_data.payment_method_id, e)

        if details is None:
            try:
                details = adapter.request_payment(amount, self.describe(order))
            except Exception as e:
                return PaymentResult.declined(str(e))

        status = details.get("status")
        if status == "PAYER_ACTION_REQUIRED":
            status = "PENDING"
        if status not in OPEN_STATUSES:
            return PaymentResult.declined(f"PayPal Status: {status}")

        link = approval_link(details)
        self.notify_link(order, link)
        return PaymentResult.success(PaymentStatus.PENDING, method_id=details.get("id"), link=link)

    def validate_payment(self, record: PaymentRecord) -> PaymentResult:
        try:
            details = self.require_adapter().get_order_details(record.method_id)
            units = details.get("purchase_units") or [{}]
            value = (units[0].get("amount") or {}).get("value", 0)
            self.check_amount(value, record, tolerance=AMOUNT_TOLERANCE)

            status = details.get("status")
            if status in ("COMPLETED", "APPROVED"):
                return PaymentResult.success(PaymentStatus.APPROVED, method_id=record.method_id)
            return PaymentResult.pending(record.method_id, reason=f"PayPal Status: {status}")
        except Exception as e:
            return PaymentResult.declined(str(e))

    def cancel_payment(self, record: PaymentRecord) -> PaymentResult:
        return self.refund(lambda: self.require_adapter().refund(record.method_id, record.amount))

    def verify_webhook(self, request: WebhookRequest) -> VerificationResult:
        if self.verifier is None:
            return VerificationResult.failed("Missing PayPal configuration")
        return self.verifier.verify(request)

    def process_webhook(self, request: WebhookRequest, manager) -> None:
        payload = request.json()
        event_type = payload.get("event_type")
        resource = payload.get("resource") or {}

        if event_type == "CHECKOUT.ORDER.APPROVED":
            captures = ((resource.get("purchase_units") or [{}])[0].get("payments") or {}).get("captures") or []
            capture_id = captures[0].get("id") if captures else None
            self.approve_by_method_id(manager, capture_id or resource.get("id"))
        elif event_type == "PAYMENT.CAPTURE.COMPLETED":
            self.approve_by_method_id(manager, resource.get("id"))
        else:
            logger.info("Ignoring PayPal event %s", event_type)
