from .payment import PaymentData, PaymentMethod, PaymentRecord, PaymentStatus, method_code
from .results import PaymentResult, random_method_id
from .webhook import VerificationResult, WebhookRequest
from .order import PayableClient, PayableOrder

__all__ = [
    "PaymentData", "PaymentMethod", "PaymentRecord", "PaymentStatus", "method_code",
    "PaymentResult", "random_method_id",
    "VerificationResult", "WebhookRequest",
    "PayableClient", "PayableOrder",
]
