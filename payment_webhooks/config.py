"""Configuration values handed to each component at construction time.

Nothing in the package reads process-wide state on its own; hosts build a
``Settings`` (directly or through ``Settings.from_env``) and pass the relevant
part to the component that needs it.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping

from payment_webhooks.models.payment import PaymentStatus


@dataclass
class StripeSettings:
    enabled: bool = True
    secret: str | None = None
    api_key: str | None = None
    tolerance: int = 300


@dataclass
class PayPalSettings:
    enabled: bool = True
    webhook_id: str | None = None
    sandbox: bool = True
    client_id: str | None = None
    client_secret: str | None = None
    token_ttl: int = 3000
    currency: str = "MXN"

    @property
    def api_url(self) -> str:
        return "https://api-m.sandbox.paypal.com" if self.sandbox else "https://api-m.paypal.com"


@dataclass
class MercadoPagoSettings:
    enabled: bool = False
    secret: str | None = None
    access_token: str | None = None
    # MercadoPago ``ts`` replay window; None disables the check.
    tolerance: int | None = None
    notification_url: str | None = None


@dataclass
class ConektaSettings:
    enabled: bool = False
    secret: str | None = None


@dataclass
class KueskiSettings:
    enabled: bool = False
    webhook_secret: str | None = None
    tolerance: int | None = 300


@dataclass
class OpenpaySettings:
    enabled: bool = False
    secret: str | None = None
    merchant_id: str | None = None
    private_key: str | None = None
    sandbox: bool = True
    tolerance: int | None = 300

    @property
    def api_url(self) -> str:
        host = "https://sandbox-api.openpay.mx/v1/" if self.sandbox else "https://api.openpay.mx/v1/"
        return host + (self.merchant_id or "")


@dataclass
class ClipSettings:
    enabled: bool = False
    api_key: str | None = None


@dataclass
class FeeSchedule:
    fixed: Decimal = Decimal("0")
    variable: Decimal = Decimal("0")

    def __post_init__(self):
        self.fixed = Decimal(str(self.fixed))
        self.variable = Decimal(str(self.variable))


def _default_fees() -> dict[str, FeeSchedule]:
    return {
        "PAYPAL": FeeSchedule(fixed=Decimal("4"), variable=Decimal("0.0395")),
        "STRIPE": FeeSchedule(fixed=Decimal("2.9"), variable=Decimal("0.029")),
    }


@dataclass
class RevalidateSettings:
    enabled: bool = False
    lookback_hours: int = 24
    methods: list[str] = field(
        default_factory=lambda: ["MERCADOPAGO", "PAYPAL", "OPENPAY", "GOOGLEPAY", "CLIP"]
    )


@dataclass
class CleanupSettings:
    enabled: bool = True
    stale_pending_days: int = 14
    stale_status: PaymentStatus = PaymentStatus.CANCELED
    revalidate: RevalidateSettings = field(default_factory=RevalidateSettings)


@dataclass
class Settings:
    route_prefix: str = "stag-herd"
    cash_enabled: bool = True
    stripe: StripeSettings = field(default_factory=StripeSettings)
    paypal: PayPalSettings = field(default_factory=PayPalSettings)
    mercadopago: MercadoPagoSettings = field(default_factory=MercadoPagoSettings)
    conekta: ConektaSettings = field(default_factory=ConektaSettings)
    kueski: KueskiSettings = field(default_factory=KueskiSettings)
    openpay: OpenpaySettings = field(default_factory=OpenpaySettings)
    clip: ClipSettings = field(default_factory=ClipSettings)
    idempotency_ttl: int = 604800
    webhook_rate_limit: int = 60
    webhook_rate_decay: int = 1
    validate_payloads: bool = False
    fees: dict[str, FeeSchedule] = field(default_factory=_default_fees)
    cleanup: CleanupSettings = field(default_factory=CleanupSettings)

    def fee_for(self, method: str) -> FeeSchedule | None:
        return self.fees.get(method)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from the environment variable names used in deployment."""
        env = os.environ if environ is None else environ

        def text(key: str, default: str | None = None) -> str | None:
            value = env.get(key)
            return value if value not in (None, "") else default

        def flag(key: str, default: bool) -> bool:
            value = env.get(key)
            if value in (None, ""):
                return default
            return value.strip().lower() in ("1", "true", "yes", "on")

        def number(key: str, default: int) -> int:
            value = env.get(key)
            return int(value) if value not in (None, "") else default

        revalidate_methods = text("STAG_HERD_REVALIDATE_METHODS")

        return cls(
            route_prefix=text("STAG_HERD_ROUTE_PREFIX", "stag-herd"),
            cash_enabled=flag("CASH_PAYMENT_ENABLED", True),
            stripe=StripeSettings(
                enabled=flag("STRIPE_ENABLED", True),
                secret=text("STRIPE_WEBHOOK_SECRET"),
                api_key=text("STRIPE_SECRET"),
                tolerance=number("STRIPE_WEBHOOK_TOLERANCE", 300),
            ),
            paypal=PayPalSettings(
                enabled=flag("PAYPAL_ENABLED", True),
                webhook_id=text("PAYPAL_WEBHOOK_ID"),
                sandbox=flag("PAYPAL_SANDBOX", True),
                client_id=text("PAYPAL_KEY"),
                client_secret=text("PAYPAL_SECRET"),
                token_ttl=number("PAYPAL_TOKEN_TTL", 3000),
            ),
            mercadopago=MercadoPagoSettings(
                enabled=flag("MERCADOPAGO_ENABLED", False),
                secret=text("MERCADOPAGO_WEBHOOK_SECRET"),
                access_token=text("MERCADOPAGO_ACCESS_TOKEN"),
            ),
            conekta=ConektaSettings(
                enabled=flag("CONEKTA_ENABLED", False),
                secret=text("CONEKTA_WEBHOOK_SECRET"),
            ),
            kueski=KueskiSettings(
                enabled=flag("KUESKI_ENABLED", False),
                webhook_secret=text("KUESKI_WEBHOOK_SECRET"),
            ),
            openpay=OpenpaySettings(
                enabled=flag("OPENPAY_ENABLED", False),
                secret=text("OPENPAY_WEBHOOK_SECRET"),
                merchant_id=text("OPENPAY_MERCHANT_ID", text("OPENPAY_ID")),
                private_key=text("OPENPAY_PRIVATE_KEY"),
                sandbox=flag("OPENPAY_SANDBOX", True),
            ),
            clip=ClipSettings(
                enabled=flag("CLIP_ENABLED", False),
                api_key=text("CLIP_API_KEY"),
            ),
            idempotency_ttl=number("WEBHOOK_IDEMPOTENCY_TTL", 604800),
            webhook_rate_limit=number("WEBHOOK_RATE_LIMIT", 60),
            webhook_rate_decay=number("WEBHOOK_RATE_DECAY", 1),
            cleanup=CleanupSettings(
                enabled=flag("STAG_HERD_CLEANUP_ENABLED", True),
                stale_pending_days=number("STAG_HERD_STALE_PENDING_DAYS", 14),
                stale_status=PaymentStatus(text("STAG_HERD_STALE_PENDING_STATUS", "CANCELED").upper()),
                revalidate=RevalidateSettings(
                    enabled=flag("STAG_HERD_REVALIDATE_ENABLED", False),
                    lookback_hours=number("STAG_HERD_REVALIDATE_LOOKBACK_HOURS", 24),
                    **(
                        {"methods": [m.strip().upper() for m in revalidate_methods.split(",") if m.strip()]}
                        if revalidate_methods
                        else {}
                    ),
                ),
            ),
        )
