import copy
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Callable

from payment_webhooks.exceptions import PaymentDeclined, PaymentNotFound, StaleRecordError
from payment_webhooks.models.payment import PaymentRecord, PaymentStatus
from payment_webhooks.models.results import PaymentResult

from .events import Dispatcher, PaymentApproved, PaymentRejected
from .repository import PaymentRepository

if TYPE_CHECKING:
    from payment_webhooks.handlers.base import PaymentHandler

logger = logging.getLogger(__name__)


class Payment:
    """A stored payment bound to the handler of its method.

    All status changes go through ``approve_payment`` and ``cancel_payment``;
    both persist through the repository's compare-and-swap ``save``.
    """

    def __init__(
        self,
        record: PaymentRecord,
        handler: "PaymentHandler",
        repository: PaymentRepository,
        dispatcher: Dispatcher | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._record = record
        self.handler = handler
        self.repository = repository
        self.dispatcher = dispatcher
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def __repr__(self) -> str:
        return f"Payment(id={self.payment_id!r}, method={self.method!r}, status={self.status.value})"

    @property
    def record(self) -> PaymentRecord:
        return copy.deepcopy(self._record)

    @property
    def payment_id(self) -> str:
        return self._record.payment_id

    @property
    def method(self) -> str:
        return self._record.method

    @property
    def method_id(self) -> str | None:
        return self._record.method_id

    @property
    def status(self) -> PaymentStatus:
        return self._record.status

    @property
    def fee(self) -> Decimal:
        return self.handler.get_fee(self._record.amount)

    @property
    def cfdi_payment_form(self) -> str:
        return self.handler.cfdi_payment_form

    def approve_payment(self) -> PaymentResult:
        """Ask the provider for the current outcome and persist it if terminal."""
        if self._record.is_terminal:
            return PaymentResult(
                result=self._record.status,
                reason=f"Payment already {self._record.status.value}",
                method_id=self._record.method_id,
            )

        result = self.handler.approve_payment(self.record)
        if result.result is PaymentStatus.PENDING:
            return result

        if self._transition(result.result):
            if result.result is PaymentStatus.APPROVED:
                self._emit(PaymentApproved(payment=self.record))
            elif result.result is PaymentStatus.DECLINED:
                self._emit(PaymentRejected(payment=self.record, reason=result.reason))
        return result

    def cancel_payment(self) -> "Payment":
        if self._record.status is PaymentStatus.CANCELED:
            return self

        result = self.handler.cancel_payment(self.record)
        if result.result is not PaymentStatus.CANCELED:
            raise PaymentDeclined(f"Payment can not be canceled - {result.reason}")

        self._transition(PaymentStatus.CANCELED, overwrite_terminal=True)
        return self

    def refresh(self) -> "Payment":
        current = self.repository.find(self.payment_id)
        if current is None:
            raise PaymentNotFound(f"Payment not found {self.payment_id}")
        self._record = current
        return self

    def _transition(self, status: PaymentStatus, overwrite_terminal: bool = False) -> bool:
        """Persist ``status``; False when a concurrent writer already settled the record."""
        now = self._clock()
        candidate = self.record
        candidate.mark(status, now)
        try:
            self._record = self.repository.save(candidate)
        except StaleRecordError:
            self.refresh()
            if self._record.status is status or (self._record.is_terminal and not overwrite_terminal):
                logger.info(
                    "Payment %s already %s, keeping stored state over %s",
                    self.payment_id,
                    self._record.status.value,
                    status.value,
                )
                return False
            candidate = self.record
            candidate.mark(status, now)
            self._record = self.repository.save(candidate)

        logger.info("Payment %s (%s) -> %s", self.payment_id, self.method, status.value)
        return True

    def _emit(self, event) -> None:
        if self.dispatcher is not None:
            self.dispatcher.dispatch(event)
