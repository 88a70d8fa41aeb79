import logging
from dataclasses import dataclass
from typing import Any, Iterable

from payment_webhooks.config import Settings
from payment_webhooks.exceptions import AdapterError, InvalidPaymentMethod
from payment_webhooks.lifecycle.events import Dispatcher
from payment_webhooks.models.payment import PaymentMethod, method_code

from .base import PaymentHandler
from .checkout import ConektaHandler, KueskiPayHandler
from .clip import ClipHandler
from .mercadopago import MercadoPagoHandler
from .openpay import OpenpayHandler
from .paypal import PayPalHandler
from .stripe import StripeHandler

logger = logging.getLogger(__name__)


@dataclass
class HandlerDescriptor:
    code: str
    handler: PaymentHandler
    description: str
    enabled: bool = True


class HandlerRegistry:
    """Method code -> handler table.

    Filled once at startup and only read afterwards, so lookups take no lock.
    """

    def __init__(self, descriptors: Iterable[HandlerDescriptor] = ()):
        self._descriptors: dict[str, HandlerDescriptor] = {}
        for descriptor in descriptors:
            self._descriptors[descriptor.code] = descriptor

    def register(
        self,
        code: "PaymentMethod | str",
        handler: PaymentHandler,
        description: str | None = None,
        enabled: bool = True,
    ) -> HandlerDescriptor:
        code = method_code(code)
        descriptor = HandlerDescriptor(
            code=code,
            handler=handler,
            description=description or handler.description,
            enabled=enabled,
        )
        self._descriptors[code] = descriptor
        return descriptor

    def descriptor(self, code: "PaymentMethod | str") -> HandlerDescriptor:
        descriptor = self._descriptors.get(method_code(code))
        if descriptor is None:
            raise InvalidPaymentMethod(f"Invalid payment method: {method_code(code)}")
        return descriptor

    def resolve(self, code: "PaymentMethod | str", enabled_only: bool = False) -> PaymentHandler:
        descriptor = self.descriptor(code)
        if enabled_only and not descriptor.enabled:
            raise InvalidPaymentMethod(f"Payment method {descriptor.code} is disabled")
        return descriptor.handler

    def methods(self, only_enabled: bool = False) -> dict[str, HandlerDescriptor]:
        return {
            code: descriptor
            for code, descriptor in self._descriptors.items()
            if descriptor.enabled or not only_enabled
        }

    def __contains__(self, code: object) -> bool:
        if not isinstance(code, (str, PaymentMethod)):
            return False
        return method_code(code) in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


def default_adapters(settings: Settings) -> dict[str, Any]:
    """Real REST adapters for every provider whose credentials are configured."""
    from payment_webhooks.adapters import (
        ClipAdapter,
        MercadoPagoAdapter,
        OpenpayAdapter,
        PayPalAdapter,
        StripeAdapter,
    )

    builders = {
        "PAYPAL": lambda: PayPalAdapter(settings.paypal),
        "STRIPE": lambda: StripeAdapter(settings.stripe),
        "MERCADOPAGO": lambda: MercadoPagoAdapter(settings.mercadopago),
        "OPENPAY": lambda: OpenpayAdapter(settings.openpay),
        "CLIP": lambda: ClipAdapter(settings.clip),
    }
    adapters = {}
    for code, build in builders.items():
        try:
            adapters[code] = build()
        except AdapterError as e:
            logger.info("No %s adapter: %s", code, e)
    adapters["GOOGLEPAY"] = adapters.get("STRIPE")
    return adapters


def build_registry(
    settings: Settings,
    adapters: dict[str, Any] | None = None,
    dispatcher: Dispatcher | None = None,
    custom: Iterable[HandlerDescriptor] = (),
) -> HandlerRegistry:
    """Register the built-in handlers, then let ``custom`` override by code."""
    adapters = default_adapters(settings) if adapters is None else adapters
    common = {"fees": settings.fees, "dispatcher": dispatcher}

    registry = HandlerRegistry()
    registry.register(
        PaymentMethod.PAYPAL,
        PayPalHandler(adapters.get("PAYPAL"), settings.paypal, **common),
        enabled=settings.paypal.enabled,
    )
    registry.register(
        PaymentMethod.STRIPE,
        StripeHandler(adapters.get("STRIPE"), settings.stripe, **common),
        enabled=settings.stripe.enabled,
    )
    registry.register(
        PaymentMethod.GOOGLEPAY,
        StripeHandler(
            adapters.get("GOOGLEPAY", adapters.get("STRIPE")),
            settings.stripe,
            method="GOOGLEPAY",
            cfdi_payment_form="04",
            **common,
        ),
        description="Google Pay",
        enabled=settings.stripe.enabled,
    )
    registry.register(
        PaymentMethod.MERCADOPAGO,
        MercadoPagoHandler(adapters.get("MERCADOPAGO"), settings.mercadopago, **common),
        enabled=settings.mercadopago.enabled,
    )
    registry.register(
        PaymentMethod.OPENPAY,
        OpenpayHandler(adapters.get("OPENPAY"), settings.openpay, **common),
        enabled=settings.openpay.enabled,
    )
    registry.register(
        PaymentMethod.CLIP,
        ClipHandler(adapters.get("CLIP"), settings.clip, **common),
        enabled=settings.clip.enabled,
    )
    registry.register(
        PaymentMethod.CONEKTA,
        ConektaHandler(adapters.get("CONEKTA"), settings.conekta, **common),
        enabled=settings.conekta.enabled,
    )
    registry.register(
        PaymentMethod.KUESKIPAY,
        KueskiPayHandler(adapters.get("KUESKIPAY"), settings.kueski, **common),
        enabled=settings.kueski.enabled,
    )
    registry.register(
        PaymentMethod.CASH,
        PaymentHandler(method="CASH", **common),
        description="Cash",
        enabled=settings.cash_enabled,
    )
    registry.register("BASE", PaymentHandler(**common), enabled=False)

    for descriptor in custom:
        registry.register(descriptor.code, descriptor.handler, descriptor.description, descriptor.enabled)

    return registry
