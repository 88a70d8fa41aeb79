import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from payment_webhooks.models.order import PayableOrder
from payment_webhooks.models.payment import PaymentRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentApproved:
    payment: PaymentRecord


@dataclass(frozen=True)
class PaymentRejected:
    payment: PaymentRecord
    reason: str | None = None


@dataclass(frozen=True)
class PaymentLinkGenerated:
    """A redirect link the payer must receive to complete the payment."""

    order: PayableOrder
    link: str
    method: str


class Dispatcher(Protocol):
    def dispatch(self, event: Any) -> None:
        ...


class EventDispatcher:
    """Hands domain events to subscribers synchronously.

    A failing subscriber is logged and skipped; it never undoes the state
    transition that produced the event. Only the latest ``history`` events
    are kept for inspection.
    """

    def __init__(self, history: int = 1000):
        self._subscribers: list[tuple[type | None, Callable[[Any], None]]] = []
        self._dispatched: deque[Any] = deque(maxlen=history)
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[Any], None], event_type: type | None = None) -> None:
        with self._lock:
            self._subscribers.append((event_type, callback))

    def dispatch(self, event: Any) -> None:
        with self._lock:
            self._dispatched.append(event)
            subscribers = list(self._subscribers)

        for event_type, callback in subscribers:
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                callback(event)
            except Exception:
                logger.warning("Subscriber %r failed for %s", callback, type(event).__name__, exc_info=True)

    def get_dispatched(self, event_type: type | None = None) -> list[Any]:
        with self._lock:
            if event_type is None:
                return list(self._dispatched)
            return [e for e in self._dispatched if isinstance(e, event_type)]

    def clear(self) -> None:
        with self._lock:
            self._dispatched.clear()
