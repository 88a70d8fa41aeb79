import secrets
import string
from dataclasses import dataclass, field

from .payment import PaymentStatus


_METHOD_ID_ALPHABET = string.ascii_letters + string.digits


def random_method_id(length: int = 20) -> str:
    """Random identifier for providers that never assign one themselves."""
    return "".join(secrets.choice(_METHOD_ID_ALPHABET) for _ in range(length))


@dataclass
class PaymentResult:
    """Outcome of every handler operation.

    ``result`` is the status the handler concluded; persistence is decided by
    the caller, never by the result itself.
    """

    error: bool = False
    result: PaymentStatus = PaymentStatus.PENDING
    reason: str | None = None
    method_id: str | None = None
    link: str | None = None
    metadata: dict = field(default_factory=dict)

    @classmethod
    def success(
        cls,
        result: PaymentStatus,
        method_id: str,
        link: str | None = None,
        metadata: dict | None = None,
    ) -> "PaymentResult":
        return cls(
            error=False,
            result=result,
            method_id=method_id,
            link=link,
            metadata=metadata or {},
        )

    @classmethod
    def pending(
        cls,
        method_id: str | None,
        link: str | None = None,
        reason: str | None = "Always PENDING",
    ) -> "PaymentResult":
        return cls(
            error=False,
            result=PaymentStatus.PENDING,
            reason=reason,
            method_id=method_id,
            link=link,
        )

    @classmethod
    def declined(cls, reason: str) -> "PaymentResult":
        return cls(error=True, result=PaymentStatus.DECLINED, reason=reason)

    @classmethod
    def canceled(cls, reason: str = "Always CANCELED") -> "PaymentResult":
        return cls(error=False, result=PaymentStatus.CANCELED, reason=reason)
