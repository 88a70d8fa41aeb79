import pytest

from payment_webhooks.config import (
    ClipSettings,
    ConektaSettings,
    KueskiSettings,
    MercadoPagoSettings,
    OpenpaySettings,
    PayPalSettings,
    Settings,
    StripeSettings,
)
from payment_webhooks.exceptions import AdapterError
from payment_webhooks.handlers.registry import build_registry
from payment_webhooks.idempotency import InMemoryIdempotencyStore
from payment_webhooks.lifecycle import EventDispatcher, InMemoryPaymentRepository, PaymentManager
from payment_webhooks.observability.alerting import AlertManager
from payment_webhooks.observability.metrics import MetricsCollector
from payment_webhooks.receiver import WebhookController, WebhookServer
from payment_webhooks.utils.factories import OrderFactory, PaymentFactory, WebhookFactory


STRIPE_SECRET = "whsec_test_secret"
MERCADOPAGO_SECRET = "mp-test-secret"
CONEKTA_SECRET = "conekta-test-secret"
KUESKI_SECRET = "kueski-test-secret"
OPENPAY_SECRET = "openpay-test-secret"


class FakeProviderAdapter:
    """In-memory stand-in for every provider REST adapter.

    ``details`` maps provider ids to what a lookup returns; ``created`` is the
    body returned by any create call. Flip the ``fail_*`` flags to make the
    matching call raise ``AdapterError``.
    """

    def __init__(self, details=None, created=None):
        self.details = dict(details or {})
        self.created = created or {
            "id": "prov_1",
            "status": "pending",
            "payment_url": "https://pay.example/prov_1",
            "init_point": "https://pay.example/prov_1",
        }
        self.fail_lookup = False
        self.fail_create = False
        self.fail_refund = False
        self.calls: list[tuple] = []

    def _lookup(self, method_id):
        self.calls.append(("lookup", method_id))
        if self.fail_lookup or method_id not in self.details:
            raise AdapterError(f"Failed to get details for {method_id}")
        return dict(self.details[method_id])

    get_order_details = _lookup
    get_charge_details = _lookup
    get_payment_details = _lookup

    def _create(self, amount, description, *args):
        self.calls.append(("create", amount, description) + args)
        if self.fail_create:
            raise AdapterError("Payment creation failed")
        return dict(self.created)

    request_payment = _create
    create_bank_charge = _create

    def refund(self, method_id, amount=None):
        self.calls.append(("refund", method_id, amount))
        if self.fail_refund:
            raise AdapterError("Refund failed")
        return {"id": f"re_{method_id}", "status": "succeeded"}


@pytest.fixture
def settings():
    return Settings(
        stripe=StripeSettings(secret=STRIPE_SECRET, api_key="sk_test"),
        paypal=PayPalSettings(client_id="pp-client", client_secret="pp-secret", webhook_id="WH-ID"),
        mercadopago=MercadoPagoSettings(enabled=True, secret=MERCADOPAGO_SECRET, access_token="mp-token"),
        conekta=ConektaSettings(enabled=True, secret=CONEKTA_SECRET),
        kueski=KueskiSettings(enabled=True, webhook_secret=KUESKI_SECRET),
        openpay=OpenpaySettings(enabled=True, secret=OPENPAY_SECRET, merchant_id="m1", private_key="pk"),
        clip=ClipSettings(enabled=True, api_key="clip-key"),
    )


@pytest.fixture
def fake_adapter():
    return FakeProviderAdapter()


@pytest.fixture
def dispatcher():
    return EventDispatcher()


@pytest.fixture
def repository():
    return InMemoryPaymentRepository()


@pytest.fixture
def registry(settings, fake_adapter, dispatcher):
    adapters = {
        code: fake_adapter
        for code in ("PAYPAL", "STRIPE", "GOOGLEPAY", "MERCADOPAGO", "OPENPAY", "CLIP", "CONEKTA", "KUESKIPAY")
    }
    return build_registry(settings, adapters=adapters, dispatcher=dispatcher)


@pytest.fixture
def manager(registry, repository, dispatcher):
    return PaymentManager(registry, repository, dispatcher=dispatcher)


@pytest.fixture
def idempotency_store():
    return InMemoryIdempotencyStore()


@pytest.fixture
def metrics():
    return MetricsCollector(window_seconds=300)


@pytest.fixture
def alert_manager(metrics):
    return AlertManager(metrics=metrics, threshold=0.10)


@pytest.fixture
def controller(manager, idempotency_store, settings, metrics, alert_manager):
    return WebhookController(manager, idempotency_store, settings, metrics=metrics, alerts=alert_manager)


@pytest.fixture
def webhook_server(controller):
    server = WebhookServer(controller)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def order():
    return OrderFactory.create()


@pytest.fixture
def payment_factory():
    return PaymentFactory


@pytest.fixture
def order_factory():
    return OrderFactory


@pytest.fixture
def webhook_factory():
    return WebhookFactory
