import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any, Callable

from payment_webhooks.config import FeeSchedule
from payment_webhooks.exceptions import AdapterError, InvalidPaymentMethod, PaymentDeclined
from payment_webhooks.lifecycle.events import Dispatcher, PaymentLinkGenerated
from payment_webhooks.models.order import PayableOrder
from payment_webhooks.models.payment import PaymentData, PaymentRecord, PaymentStatus
from payment_webhooks.models.results import PaymentResult, random_method_id
from payment_webhooks.models.webhook import VerificationResult, WebhookRequest

if TYPE_CHECKING:
    from payment_webhooks.lifecycle.manager import PaymentManager

logger = logging.getLogger(__name__)


def to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


class PaymentHandler:
    """Default handler behaviour, used as-is for cash-like methods.

    A handler is built once per method code and shared by every payment of
    that method. Provider handlers override the request/validate/cancel steps
    and the two webhook entry points.
    """

    method = "BASE"
    description = "Base"
    allow_duplicated_method_id = False
    default_fee = FeeSchedule()
    # SAT payment form code printed on CFDI invoices; 01 is cash.
    cfdi_payment_form = "01"

    def __init__(
        self,
        adapter: Any = None,
        settings: Any = None,
        fees: dict[str, FeeSchedule] | None = None,
        dispatcher: Dispatcher | None = None,
        method: str | None = None,
        clock: Callable[[], datetime] | None = None,
        cfdi_payment_form: str | None = None,
    ):
        self.adapter = adapter
        self.settings = settings
        self.fees = fees or {}
        self.dispatcher = dispatcher
        if method:
            self.method = method
        if cfdi_payment_form:
            self.cfdi_payment_form = cfdi_payment_form
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(method={self.method!r})"

    # -- payment lifecycle -------------------------------------------------

    def request_payment(
        self, amount: Decimal, order: PayableOrder | None, method_data: PaymentData
    ) -> PaymentResult:
        if order is None:
            raise PaymentDeclined("Order not loaded")

        return PaymentResult.pending(
            method_id=method_data.payment_method_id or random_method_id(),
            reason="Always PENDING",
        )

    def validate_payment(self, record: PaymentRecord) -> PaymentResult:
        if record.status is not PaymentStatus.PENDING:
            raise PaymentDeclined("Payment is not pending validation")

        return PaymentResult.pending(method_id=record.method_id, reason="Always PENDING")

    def approve_payment(self, record: PaymentRecord) -> PaymentResult:
        return self.validate_payment(record)

    def cancel_payment(self, record: PaymentRecord) -> PaymentResult:
        return PaymentResult.canceled()

    def get_fee(self, amount: Decimal) -> Decimal:
        schedule = self.fees.get(self.method) or self.default_fee
        return schedule.fixed + Decimal(str(amount)) * schedule.variable

    def get_effective_date(self, method_data: PaymentData) -> datetime:
        if method_data.effective_date:
            try:
                effective = datetime.fromisoformat(str(method_data.effective_date))
            except ValueError as e:
                raise PaymentDeclined(f"Invalid effective date: {method_data.effective_date}") from e
            if effective.tzinfo is None:
                effective = effective.replace(tzinfo=timezone.utc)
            return effective
        return self._clock()

    # -- webhook entry points ---------------------------------------------

    def verify_webhook(self, request: WebhookRequest) -> VerificationResult:
        return VerificationResult.failed("Webhook verification not supported")

    def process_webhook(self, request: WebhookRequest, manager: "PaymentManager") -> None:
        raise InvalidPaymentMethod(f"{self.method} does not process webhooks")

    # -- helpers shared by provider handlers ------------------------------

    def require_adapter(self) -> Any:
        if self.adapter is None:
            raise AdapterError(f"{self.method} adapter not configured")
        return self.adapter

    def describe(self, order: PayableOrder | None) -> str:
        if order is None:
            return "Payment"
        return getattr(order, "description", None) or f"Order {order.order_id}"

    def notify_link(self, order: PayableOrder | None, link: str | None) -> None:
        if link and order is not None and self.dispatcher is not None:
            self.dispatcher.dispatch(PaymentLinkGenerated(order=order, link=link, method=self.method))

    def check_amount(self, provided: Any, record: PaymentRecord, tolerance: Decimal | None = None) -> None:
        """Raise ``PaymentDeclined("Invalid amount!")`` unless the live amount matches."""
        live = to_decimal(provided)
        if live is None:
            raise PaymentDeclined("Invalid amount!")
        if tolerance is None:
            matches = live == record.amount
        else:
            matches = abs(live - record.amount) <= tolerance
        if not matches:
            raise PaymentDeclined("Invalid amount!")

    def approve_by_method_id(self, manager: "PaymentManager", method_id: Any) -> PaymentResult | None:
        if method_id in (None, ""):
            return None
        payment = manager.from_method_id(self.method, str(method_id))
        return payment.approve_payment()

    def refund(self, refund: Callable[[], Any]) -> PaymentResult:
        """Run a provider refund; any failure aborts the caller with ``PaymentDeclined``."""
        try:
            refund()
        except PaymentDeclined:
            raise
        except Exception as e:
            raise PaymentDeclined(str(e)) from e
        return PaymentResult.canceled()
