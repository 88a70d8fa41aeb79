import pytest

from payment_webhooks.config import Settings
from payment_webhooks.exceptions import InvalidPaymentMethod
from payment_webhooks.handlers import (
    HandlerDescriptor,
    HandlerRegistry,
    PaymentHandler,
    PayPalHandler,
    StripeHandler,
    build_registry,
)
from payment_webhooks.models.payment import PaymentMethod


class TestHandlerRegistry:
    """Tests for register/resolve."""

    @pytest.mark.unit
    def test_resolve_registered_handler(self):
        registry = HandlerRegistry()
        handler = PaymentHandler(method="CASH")
        registry.register("CASH", handler)
        assert registry.resolve("cash") is handler
        assert registry.resolve(PaymentMethod.CASH) is handler

    @pytest.mark.unit
    def test_unknown_code_raises(self):
        with pytest.raises(InvalidPaymentMethod):
            HandlerRegistry().resolve("BITCOIN")

    @pytest.mark.unit
    def test_disabled_handler_only_fails_when_enabled_required(self):
        registry = HandlerRegistry()
        handler = PaymentHandler(method="CASH")
        registry.register("CASH", handler, enabled=False)
        assert registry.resolve("CASH") is handler
        with pytest.raises(InvalidPaymentMethod):
            registry.resolve("CASH", enabled_only=True)

    @pytest.mark.unit
    def test_methods_filters_enabled(self):
        registry = HandlerRegistry()
        registry.register("A", PaymentHandler(method="A"))
        registry.register("B", PaymentHandler(method="B"), enabled=False)
        assert set(registry.methods()) == {"A", "B"}
        assert set(registry.methods(only_enabled=True)) == {"A"}

    @pytest.mark.unit
    def test_contains(self):
        registry = HandlerRegistry()
        registry.register("A", PaymentHandler(method="A"))
        assert "a" in registry
        assert "B" not in registry
        assert 42 not in registry

    @pytest.mark.unit
    def test_description_defaults_to_handler(self):
        registry = HandlerRegistry()
        descriptor = registry.register("PAYPAL", PayPalHandler())
        assert descriptor.description == "PayPal"


class TestBuildRegistry:
    """Tests for build_registry()."""

    @pytest.mark.unit
    def test_registers_all_builtins(self):
        registry = build_registry(Settings(), adapters={})
        assert set(registry.methods()) == {
            "PAYPAL", "STRIPE", "GOOGLEPAY", "MERCADOPAGO", "OPENPAY",
            "CLIP", "CONEKTA", "KUESKIPAY", "CASH", "BASE",
        }

    @pytest.mark.unit
    def test_enable_flags_follow_config(self):
        registry = build_registry(Settings(), adapters={})
        enabled = set(registry.methods(only_enabled=True))
        assert enabled == {"PAYPAL", "STRIPE", "GOOGLEPAY", "CASH"}

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "code, form",
        [
            ("PAYPAL", "04"), ("STRIPE", "01"), ("GOOGLEPAY", "04"), ("MERCADOPAGO", "04"), ("CLIP", "04"),
            ("OPENPAY", "03"), ("CONEKTA", "01"), ("KUESKIPAY", "99"), ("CASH", "01"), ("BASE", "01"),
        ],
    )
    def test_cfdi_payment_forms(self, code, form):
        registry = build_registry(Settings(), adapters={})
        assert registry.resolve(code).cfdi_payment_form == form

    @pytest.mark.unit
    def test_cash_can_be_disabled(self):
        registry = build_registry(Settings(cash_enabled=False), adapters={})
        assert not registry.descriptor("CASH").enabled

    @pytest.mark.unit
    def test_google_pay_is_a_stripe_handler_with_its_own_code(self):
        handler = build_registry(Settings(), adapters={}).resolve("GOOGLEPAY")
        assert isinstance(handler, StripeHandler)
        assert handler.method == "GOOGLEPAY"

    @pytest.mark.unit
    def test_custom_descriptor_overrides_builtin(self):
        custom = PaymentHandler(method="PAYPAL")
        registry = build_registry(
            Settings(),
            adapters={},
            custom=[HandlerDescriptor(code="PAYPAL", handler=custom, description="Custom PayPal")],
        )
        assert registry.resolve("PAYPAL") is custom
        assert registry.descriptor("PAYPAL").description == "Custom PayPal"

    @pytest.mark.unit
    def test_custom_code_is_added(self):
        custom = PaymentHandler(method="VOUCHER")
        registry = build_registry(
            Settings(), adapters={}, custom=[HandlerDescriptor(code="VOUCHER", handler=custom, description="Voucher")]
        )
        assert registry.resolve("VOUCHER", enabled_only=True) is custom

    @pytest.mark.unit
    def test_default_adapters_skip_unconfigured_providers(self):
        registry = build_registry(Settings())
        assert registry.resolve("STRIPE").adapter is None
