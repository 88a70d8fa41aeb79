from .crypto import generate_signature, verify_signature
from .factories import OrderFactory, PaymentFactory, WebhookFactory

__all__ = [
    "generate_signature", "verify_signature",
    "OrderFactory", "PaymentFactory", "WebhookFactory",
]
