import logging

from payment_webhooks.models.payment import PaymentRecord, PaymentStatus
from payment_webhooks.models.results import PaymentResult
from payment_webhooks.models.webhook import VerificationResult, WebhookRequest
from payment_webhooks.verification.verifiers import DEFAULT_TOLERANCE_SECONDS, verify_openpay_signature

from .base import PaymentHandler

logger = logging.getLogger(__name__)


class OpenpayHandler(PaymentHandler):
    """SPEI bank transfers through Openpay."""

    method = "OPENPAY"
    description = "Openpay"
    cfdi_payment_form = "03"

    def request_payment(self, amount, order, method_data) -> PaymentResult:
        client = getattr(order, "client", None)
        try:
            details = self.require_adapter().create_bank_charge(
                amount,
                self.describe(order),
                getattr(client, "name", "") or "",
                getattr(client, "email", "") or "",
            )
        except Exception as e:
            return PaymentResult.declined(str(e))

        link = (details.get("payment_method") or {}).get("url")
        self.notify_link(order, link)
        return PaymentResult.success(PaymentStatus.PENDING, method_id=details.get("id"), link=link)

    def validate_payment(self, record: PaymentRecord) -> PaymentResult:
        try:
            details = self.require_adapter().get_charge_details(record.method_id)
            self.check_amount(details.get("amount"), record)

            status = details.get("status")
            if status == "completed":
                return PaymentResult.success(PaymentStatus.APPROVED, method_id=record.method_id)
            return PaymentResult.pending(record.method_id, reason=f"Openpay Status: {status}")
        except Exception as e:
            return PaymentResult.declined(str(e))

    def cancel_payment(self, record: PaymentRecord) -> PaymentResult:
        return self.refund(lambda: self.require_adapter().refund(record.method_id, record.amount))

    def verify_webhook(self, request: WebhookRequest) -> VerificationResult:
        return verify_openpay_signature(
            request,
            getattr(self.settings, "secret", None),
            tolerance=getattr(self.settings, "tolerance", DEFAULT_TOLERANCE_SECONDS),
        )

    def process_webhook(self, request: WebhookRequest, manager) -> None:
        payload = request.json()
        event_type = str(payload.get("type") or "")
        if not event_type.startswith("charge."):
            logger.info("Ignoring Openpay event %s", event_type)
            return

        transaction = payload.get("transaction") or {}
        self.approve_by_method_id(manager, transaction.get("id"))
