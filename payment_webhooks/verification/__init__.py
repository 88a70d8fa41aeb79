from .verifiers import (
    DEFAULT_TOLERANCE_SECONDS,
    verify_conekta_signature,
    verify_kueski_signature,
    verify_mercadopago_signature,
    verify_openpay_signature,
    verify_stripe_signature,
)
from .paypal import PayPalTokenCache, PayPalWebhookVerifier
from .payload import validate_payload

__all__ = [
    "DEFAULT_TOLERANCE_SECONDS",
    "verify_conekta_signature",
    "verify_kueski_signature",
    "verify_mercadopago_signature",
    "verify_openpay_signature",
    "verify_stripe_signature",
    "PayPalTokenCache",
    "PayPalWebhookVerifier",
    "validate_payload",
]
