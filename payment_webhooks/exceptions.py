"""
Payment webhook domain exceptions.

Every exception carries the HTTP status the webhook boundary maps it to.
Duplicate webhook deliveries are not errors and have no exception here.
"""


class PaymentWebhookError(Exception):
    """Base exception for payment webhook errors"""

    http_status = 500


class VerificationFailure(PaymentWebhookError):
    """Raised when a webhook cannot be authenticated"""

    http_status = 401


class InvalidPaymentMethod(PaymentWebhookError):
    """Raised when a method code is unregistered, disabled or misconfigured"""

    http_status = 404


class PaymentNotFound(PaymentWebhookError):
    """Raised when a payment lookup by id or provider method id misses"""

    http_status = 404


class PaymentDeclined(PaymentWebhookError):
    """Raised when a provider declines, an amount mismatches or a cancellation fails"""

    http_status = 422


class DuplicatePaymentMethodId(PaymentWebhookError):
    """Raised when a provider transaction id is already bound to another payment"""

    http_status = 409


class StaleRecordError(PaymentWebhookError):
    """Raised when a payment record changed since it was loaded"""

    http_status = 409


class AdapterError(PaymentWebhookError):
    """Raised by provider adapters on transport failures or non-2xx answers"""

    http_status = 502
