import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable

from payment_webhooks.exceptions import DuplicatePaymentMethodId, PaymentDeclined, PaymentNotFound
from payment_webhooks.models.order import PayableOrder
from payment_webhooks.models.payment import PaymentData, PaymentMethod, PaymentRecord, PaymentStatus, method_code

from .events import Dispatcher
from .payment import Payment
from .repository import PaymentRepository

if TYPE_CHECKING:
    from payment_webhooks.handlers.base import PaymentHandler
    from payment_webhooks.handlers.registry import HandlerRegistry

logger = logging.getLogger(__name__)


def _raw_method_data(method_data: Any, data: PaymentData) -> dict:
    if isinstance(method_data, dict):
        return dict(method_data)
    return data.to_dict()


class PaymentManager:
    """Entry point for creating payments and loading existing ones."""

    def __init__(
        self,
        registry: "HandlerRegistry",
        repository: PaymentRepository,
        dispatcher: Dispatcher | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.registry = registry
        self.repository = repository
        self.dispatcher = dispatcher
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def get_handler(self, method: "PaymentMethod | str", enabled_only: bool = False) -> "PaymentHandler":
        return self.registry.resolve(method, enabled_only=enabled_only)

    def request(
        self,
        amount: Decimal | float | str,
        method: "PaymentMethod | str",
        order: PayableOrder,
        method_data: Any = None,
    ) -> Payment:
        """Open a payment with the provider and store it.

        Raises:
            InvalidPaymentMethod: unknown or disabled method.
            DuplicatePaymentMethodId: the provider id already backs another payment.
            PaymentDeclined: the provider refused; nothing is stored.
        """
        code = method_code(method)
        amount = Decimal(str(amount))
        handler = self.get_handler(code, enabled_only=True)
        data = PaymentData.from_mixed(method_data)
        dt_registration = handler.get_effective_date(data)

        if data.payment_method_id:
            self._ensure_unused(handler, code, data.payment_method_id)

        result = handler.request_payment(amount, order, data)
        if result.result is PaymentStatus.DECLINED:
            logger.info("Payment request declined for order %s via %s: %s", order.order_id, code, result.reason)
            raise PaymentDeclined(f"Payment declined {result.reason}")

        if result.method_id and result.method_id != data.payment_method_id:
            self._ensure_unused(handler, code, result.method_id)

        client = getattr(order, "client", None)
        record = PaymentRecord(
            payment_id=f"pay_{uuid.uuid4().hex[:16]}",
            order_id=order.order_id,
            client_id=getattr(client, "client_id", None),
            method=code,
            method_id=result.method_id,
            amount=amount,
            status=result.result,
            dt_registration=dt_registration,
            method_data=_raw_method_data(method_data, data),
            link=result.link,
            email=getattr(client, "email", None),
        )
        if result.result.is_terminal:
            record.dt_executed = self._clock()

        unique = not handler.allow_duplicated_method_id
        stored = self.repository.create(record, unique_method_id=unique)
        logger.info(
            "Payment %s created for order %s via %s (%s)",
            stored.payment_id,
            stored.order_id,
            code,
            stored.status.value,
        )
        return self.wrap(stored, handler)

    def from_id(self, payment_id: str) -> Payment:
        record = self.repository.find(payment_id)
        if record is None:
            raise PaymentNotFound(f"Payment not found {payment_id}")
        return self.wrap(record)

    def from_method_id(self, method: "PaymentMethod | str", method_id: str) -> Payment:
        record = self.repository.find_by_method_id(method_code(method), str(method_id))
        if record is None:
            raise PaymentNotFound(f"Payment not found {method_code(method)}:{method_id}")
        return self.wrap(record)

    def wrap(self, record: PaymentRecord, handler: "PaymentHandler | None" = None) -> Payment:
        return Payment(
            record,
            handler or self.get_handler(record.method),
            self.repository,
            dispatcher=self.dispatcher,
            clock=self._clock,
        )

    def _ensure_unused(self, handler: "PaymentHandler", code: str, method_id: str) -> None:
        if handler.allow_duplicated_method_id:
            return
        if self.repository.find_by_method_id(code, method_id) is not None:
            raise DuplicatePaymentMethodId("Method id is duplicated")
