from .base import JsonHttpAdapter
from .providers import (
    CheckoutAdapter,
    ClipAdapter,
    MercadoPagoAdapter,
    OpenpayAdapter,
    PayPalAdapter,
    StripeAdapter,
)

__all__ = [
    "JsonHttpAdapter",
    "CheckoutAdapter",
    "ClipAdapter",
    "MercadoPagoAdapter",
    "OpenpayAdapter",
    "PayPalAdapter",
    "StripeAdapter",
]
