from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class PaymentMethod(Enum):
    PAYPAL = "PAYPAL"
    STRIPE = "STRIPE"
    MERCADOPAGO = "MERCADOPAGO"
    OPENPAY = "OPENPAY"
    CONEKTA = "CONEKTA"
    KUESKIPAY = "KUESKIPAY"
    CLIP = "CLIP"
    GOOGLEPAY = "GOOGLEPAY"
    CASH = "CASH"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"
    DECLINED = "DECLINED"

    @property
    def is_terminal(self) -> bool:
        return self is not PaymentStatus.PENDING


def method_code(method: "PaymentMethod | str") -> str:
    """Normalize a built-in method or a custom code to its registry key."""
    if isinstance(method, PaymentMethod):
        return method.value
    return str(method).strip().upper()


@dataclass
class PaymentData:
    """Typed view over the method-specific data supplied with a request."""

    payment_method_id: str | None = None
    effective_date: str | None = None

    @classmethod
    def from_mixed(cls, data: Any) -> "PaymentData":
        if isinstance(data, cls):
            return data
        if isinstance(data, dict):
            method_id = data.get("payment_method_id")
            return cls(
                payment_method_id=str(method_id) if method_id not in (None, "") else None,
                effective_date=data.get("effective_date"),
            )
        return cls()

    def to_dict(self) -> dict:
        return {
            key: value
            for key, value in (
                ("payment_method_id", self.payment_method_id),
                ("effective_date", self.effective_date),
            )
            if value is not None
        }


@dataclass
class PaymentRecord:
    payment_id: str
    order_id: str | None
    client_id: str | None
    method: str
    method_id: str | None
    amount: Decimal
    status: PaymentStatus
    dt_registration: datetime
    method_data: dict = field(default_factory=dict)
    link: str | None = None
    dt_executed: datetime | None = None
    email: str | None = None
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def mark(self, status: PaymentStatus, executed_at: datetime) -> None:
        """Move to ``status``, keeping ``dt_executed`` in step with terminality."""
        self.status = status
        self.dt_executed = executed_at if status.is_terminal else None
