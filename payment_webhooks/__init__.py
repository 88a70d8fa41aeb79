"""Verified, idempotent payment webhook ingestion and payment lifecycle."""

from .config import Settings
from .exceptions import (
    AdapterError,
    DuplicatePaymentMethodId,
    InvalidPaymentMethod,
    PaymentDeclined,
    PaymentNotFound,
    PaymentWebhookError,
    StaleRecordError,
    VerificationFailure,
)

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "AdapterError",
    "DuplicatePaymentMethodId",
    "InvalidPaymentMethod",
    "PaymentDeclined",
    "PaymentNotFound",
    "PaymentWebhookError",
    "StaleRecordError",
    "VerificationFailure",
]
