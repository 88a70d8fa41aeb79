import logging

from payment_webhooks.models.payment import PaymentRecord, PaymentStatus
from payment_webhooks.models.results import PaymentResult
from payment_webhooks.models.webhook import VerificationResult, WebhookRequest
from payment_webhooks.verification.verifiers import verify_mercadopago_signature

from .base import PaymentHandler

logger = logging.getLogger(__name__)


class MercadoPagoHandler(PaymentHandler):
    method = "MERCADOPAGO"
    description = "Mercado Pago"
    cfdi_payment_form = "04"

    def request_payment(self, amount, order, method_data) -> PaymentResult:
        adapter = self.require_adapter()
        method_id = method_data.payment_method_id
        details = None
        if method_id:
            try:
                details = adapter.get_payment_details(method_id)
            except Exception as e:
                logger.info("Mercado Pago payment %s not reusable: %s", method_id, e)

        if details is None:
            try:
                # A freshly opened preference carries no status of its own.
                details = {"status": "pending", **adapter.request_payment(amount, self.describe(order))}
            except Exception as e:
                return PaymentResult.declined(str(e))

        status = details.get("status")
        if status not in ("pending", "approved"):
            return PaymentResult.declined(f"Mercado Pago Status: {status}")

        link = details.get("init_point")
        self.notify_link(order, link)
        return PaymentResult.success(PaymentStatus.PENDING, method_id=str(details.get("id")), link=link)

    def validate_payment(self, record: PaymentRecord) -> PaymentResult:
        try:
            details = self.require_adapter().get_payment_details(record.method_id)
            self.check_amount(details.get("transaction_amount"), record)

            status = details.get("status")
            if status == "approved":
                return PaymentResult.success(PaymentStatus.APPROVED, method_id=record.method_id)
            return PaymentResult.pending(record.method_id, reason=f"Mercado Pago Status: {status}")
        except Exception as e:
            return PaymentResult.declined(str(e))

    def cancel_payment(self, record: PaymentRecord) -> PaymentResult:
        return self.refund(lambda: self.require_adapter().refund(record.method_id, record.amount))

    def verify_webhook(self, request: WebhookRequest) -> VerificationResult:
        return verify_mercadopago_signature(
            request,
            getattr(self.settings, "secret", None),
            tolerance=getattr(self.settings, "tolerance", None),
        )

    def process_webhook(self, request: WebhookRequest, manager) -> None:
        payload = request.json()
        data = payload.get("data")
        method_id = data.get("id") if isinstance(data, dict) else None
        self.approve_by_method_id(manager, method_id if method_id not in (None, "") else payload.get("id"))
