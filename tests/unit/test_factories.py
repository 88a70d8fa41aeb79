from decimal import Decimal

import pytest

from payment_webhooks.models.payment import PaymentRecord, PaymentStatus
from payment_webhooks.utils.factories import Client, OrderFactory, PaymentFactory, WebhookFactory


class TestPaymentFactory:
    """Tests for PaymentFactory."""

    @pytest.mark.unit
    def test_create_returns_record_with_defaults(self):
        record = PaymentFactory.create()
        assert isinstance(record, PaymentRecord)
        assert record.amount == Decimal("100.00")
        assert record.method == "CASH"
        assert record.status is PaymentStatus.PENDING
        assert record.payment_id.startswith("pay_")
        assert record.dt_executed is None

    @pytest.mark.unit
    def test_amount_override_is_decimal(self):
        record = PaymentFactory.create(amount="250.50")
        assert record.amount == Decimal("250.50")

    @pytest.mark.unit
    def test_terminal_status_sets_execution_date(self):
        record = PaymentFactory.create(status=PaymentStatus.APPROVED)
        assert record.dt_executed == record.dt_registration

    @pytest.mark.unit
    def test_create_generates_unique_ids(self):
        r1 = PaymentFactory.create()
        r2 = PaymentFactory.create()
        assert r1.payment_id != r2.payment_id
        assert r1.method_id != r2.method_id


class TestOrderFactory:
    @pytest.mark.unit
    def test_client_from_dict(self):
        order = OrderFactory.create(client={"email": "ana@example.com"})
        assert order.client.email == "ana@example.com"
        assert order.client.client_id.startswith("cli_")

    @pytest.mark.unit
    def test_client_instance_is_kept(self):
        client = Client(client_id="cli_fixed")
        assert OrderFactory.create(client=client).client is client


class TestWebhookFactory:
    """Tests for WebhookFactory."""

    @pytest.mark.unit
    def test_stripe_event_defaults(self):
        event = WebhookFactory.stripe_event()
        assert event["type"] == "payment_intent.succeeded"
        assert event["data"]["object"]["id"] == "pi_1"
        assert event["id"].startswith("evt_")

    @pytest.mark.unit
    def test_stripe_event_ids_are_unique(self):
        assert WebhookFactory.stripe_event()["id"] != WebhookFactory.stripe_event()["id"]

    @pytest.mark.unit
    def test_stripe_request_carries_signature_header(self):
        request = WebhookFactory.stripe("whsec_test", timestamp=1700000000)
        header = request.header("stripe-signature")
        assert header.startswith("t=1700000000,v1=")

    @pytest.mark.unit
    def test_mercadopago_request(self):
        request = WebhookFactory.mercadopago("mp", data_id=555, ts=1700000000)
        assert request.json() == {"type": "payment", "data": {"id": 555}}
        assert request.header("x-request-id") == "req-1"
        assert request.header("x-signature").startswith("ts=1700000000,v1=")

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "build,header",
        [
            (lambda: WebhookFactory.conekta("c"), "Digest"),
            (lambda: WebhookFactory.kueski("k"), "X-Kueski-Signature"),
            (lambda: WebhookFactory.openpay("o"), "verification-signature"),
            (lambda: WebhookFactory.paypal(), "PAYPAL-TRANSMISSION-SIG"),
        ],
    )
    def test_provider_requests_set_signature_header(self, build, header):
        request = build()
        assert request.header(header)
        assert request.json()
