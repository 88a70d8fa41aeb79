from .base import PaymentHandler
from .checkout import ConektaHandler, HostedCheckoutHandler, KueskiPayHandler
from .clip import ClipHandler
from .mercadopago import MercadoPagoHandler
from .openpay import OpenpayHandler
from .paypal import PayPalHandler
from .stripe import StripeHandler
from .registry import HandlerDescriptor, HandlerRegistry, build_registry, default_adapters

__all__ = [
    "PaymentHandler",
    "ConektaHandler",
    "HostedCheckoutHandler",
    "KueskiPayHandler",
    "ClipHandler",
    "MercadoPagoHandler",
    "OpenpayHandler",
    "PayPalHandler",
    "StripeHandler",
    "HandlerDescriptor",
    "HandlerRegistry",
    "build_registry",
    "default_adapters",
]
