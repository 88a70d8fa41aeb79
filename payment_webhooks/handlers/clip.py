import logging

from payment_webhooks.models.payment import PaymentRecord, PaymentStatus
from payment_webhooks.models.results import PaymentResult

from .base import PaymentHandler

logger = logging.getLogger(__name__)


class ClipHandler(PaymentHandler):
    """Clip checkout links. Clip sends no webhooks; payments settle by revalidation."""

    method = "CLIP"
    description = "Clip"
    cfdi_payment_form = "04"

    def request_payment(self, amount, order, method_data) -> PaymentResult:
        adapter = self.require_adapter()
        method_id = method_data.payment_method_id
        details = None
        if method_id:
            try:
                details = adapter.get_payment_details(method_id)
            except Exception as e:
                logger.info("Clip payment %s not reusable: %s", method_id, e)

        if details is None:
            try:
                details = {"status": "pending", **adapter.request_payment(amount, self.describe(order))}
            except Exception as e:
                return PaymentResult.declined(str(e))

        status = details.get("status")
        if status not in ("pending", "paid"):
            return PaymentResult.declined(f"Clip Status: {status}")

        link = details.get("payment_url")
        self.notify_link(order, link)
        return PaymentResult.success(PaymentStatus.PENDING, method_id=str(details.get("id")), link=link)

    def validate_payment(self, record: PaymentRecord) -> PaymentResult:
        try:
            details = self.require_adapter().get_payment_details(record.method_id)
            self.check_amount(details.get("amount"), record)

            status = details.get("status")
            if status == "paid":
                return PaymentResult.success(PaymentStatus.APPROVED, method_id=record.method_id)
            return PaymentResult.pending(record.method_id, reason=f"Clip Status: {status}")
        except Exception as e:
            return PaymentResult.declined(str(e))

    def cancel_payment(self, record: PaymentRecord) -> PaymentResult:
        return self.refund(lambda: self.require_adapter().refund(record.method_id, record.amount))
