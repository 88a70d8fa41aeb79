from .events import Dispatcher, EventDispatcher, PaymentApproved, PaymentLinkGenerated, PaymentRejected
from .repository import InMemoryPaymentRepository, PaymentRepository
from .payment import Payment
from .manager import PaymentManager

__all__ = [
    "Dispatcher",
    "EventDispatcher",
    "PaymentApproved",
    "PaymentLinkGenerated",
    "PaymentRejected",
    "InMemoryPaymentRepository",
    "PaymentRepository",
    "Payment",
    "PaymentManager",
]
