import json
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from payment_webhooks.models.payment import PaymentRecord, PaymentStatus
from payment_webhooks.models.webhook import WebhookRequest
from payment_webhooks.utils.crypto import generate_base64_signature, generate_signature


@dataclass
class Client:
    client_id: str
    email: str = "buyer@example.com"
    name: str = "Test Buyer"


@dataclass
class Order:
    order_id: str
    client: Client = field(default_factory=lambda: Client(client_id=f"cli_{uuid.uuid4().hex[:8]}"))
    description: str | None = None


class OrderFactory:
    """Orders satisfying ``PayableOrder`` for tests and local runs."""

    @staticmethod
    def create(**overrides) -> Order:
        client_overrides = overrides.pop("client", None)
        client = client_overrides if isinstance(client_overrides, Client) else Client(
            client_id=f"cli_{uuid.uuid4().hex[:8]}", **(client_overrides or {})
        )
        defaults = {
            "order_id": f"ord_{uuid.uuid4().hex[:12]}",
            "client": client,
        }
        defaults.update(overrides)
        return Order(**defaults)


class PaymentFactory:
    """Factory for creating PaymentRecord instances with sensible defaults."""

    @staticmethod
    def create(**overrides) -> PaymentRecord:
        defaults = {
            "payment_id": f"pay_{uuid.uuid4().hex[:16]}",
            "order_id": f"ord_{uuid.uuid4().hex[:12]}",
            "client_id": f"cli_{uuid.uuid4().hex[:8]}",
            "method": "CASH",
            "method_id": uuid.uuid4().hex[:20],
            "amount": Decimal("100.00"),
            "status": PaymentStatus.PENDING,
            "dt_registration": datetime.now(timezone.utc),
            "method_data": {},
            "email": "buyer@example.com",
        }
        defaults.update(overrides)
        if "amount" in overrides:
            defaults["amount"] = Decimal(str(defaults["amount"]))
        record = PaymentRecord(**defaults)
        if record.status.is_terminal and record.dt_executed is None:
            record.dt_executed = record.dt_registration
        return record


def _encode(body: dict | str | bytes) -> bytes:
    if isinstance(body, dict):
        return json.dumps(body).encode("utf-8")
    if isinstance(body, str):
        return body.encode("utf-8")
    return body


class WebhookFactory:
    """Builds provider notifications signed the way each provider signs them."""

    @staticmethod
    def stripe_event(event_type: str = "payment_intent.succeeded", object_id: str = "pi_1", **overrides) -> dict:
        event = {
            "id": f"evt_{uuid.uuid4().hex[:16]}",
            "type": event_type,
            "data": {"object": {"id": object_id, "object": "payment_intent"}},
        }
        event.update(overrides)
        return event

    @staticmethod
    def stripe(
        secret: str,
        body: dict | str | bytes | None = None,
        timestamp: int | None = None,
        **kwargs,
    ) -> WebhookRequest:
        raw = _encode(body if body is not None else WebhookFactory.stripe_event())
        timestamp = int(time.time()) if timestamp is None else timestamp
        signature = generate_signature(secret, f"{timestamp}.".encode("utf-8") + raw)
        return WebhookRequest(
            body=raw,
            headers={"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"},
            **kwargs,
        )

    @staticmethod
    def mercadopago(
        secret: str,
        data_id: str | int = "555",
        request_id: str = "req-1",
        ts: int | None = None,
        body: dict | None = None,
        **kwargs,
    ) -> WebhookRequest:
        ts = int(time.time()) if ts is None else ts
        manifest = f"id:{data_id};request-id:{request_id};ts:{ts};"
        signature = generate_signature(secret, manifest)
        payload = body if body is not None else {"type": "payment", "data": {"id": data_id}}
        return WebhookRequest(
            body=_encode(payload),
            headers={"x-signature": f"ts={ts},v1={signature}", "x-request-id": request_id},
            **kwargs,
        )

    @staticmethod
    def conekta(secret: str, body: dict | str | bytes | None = None, **kwargs) -> WebhookRequest:
        raw = _encode(
            body
            if body is not None
            else {
                "id": f"evt_{uuid.uuid4().hex[:16]}",
                "type": "order.paid",
                "data": {"object": {"id": "ord_conekta_1"}},
            }
        )
        return WebhookRequest(
            body=raw,
            headers={"Digest": f"sha-256={generate_base64_signature(secret, raw)}"},
            **kwargs,
        )

    @staticmethod
    def kueski(
        secret: str, body: dict | str | bytes | None = None, timestamp: int | None = None, **kwargs
    ) -> WebhookRequest:
        raw = _encode(
            body
            if body is not None
            else {
                "event_id": f"evt_{uuid.uuid4().hex[:16]}",
                "event": "payment.approved",
                "data": {"payment_id": "kp_1"},
            }
        )
        timestamp = str(int(time.time()) if timestamp is None else timestamp)
        signature = generate_signature(secret, timestamp.encode("utf-8") + raw)
        return WebhookRequest(
            body=raw,
            headers={"X-Kueski-Signature": signature, "X-Kueski-Timestamp": timestamp},
            **kwargs,
        )

    @staticmethod
    def openpay(
        secret: str, body: dict | str | bytes | None = None, timestamp: int | None = None, **kwargs
    ) -> WebhookRequest:
        raw = _encode(
            body
            if body is not None
            else {
                "id": f"evt_{uuid.uuid4().hex[:16]}",
                "type": "charge.succeeded",
                "transaction": {"id": "tr_1", "status": "completed"},
            }
        )
        timestamp = int(time.time()) if timestamp is None else timestamp
        signature = generate_signature(secret, f"{timestamp}.".encode("utf-8") + raw)
        return WebhookRequest(
            body=raw,
            headers={"verification-signature": f"t={timestamp},v1={signature}"},
            **kwargs,
        )

    @staticmethod
    def paypal(body: dict | None = None, **kwargs) -> WebhookRequest:
        """PayPal notifications are verified remotely, so only the transmission headers are set."""
        payload = body if body is not None else {
            "id": f"WH-{uuid.uuid4().hex[:16]}",
            "event_type": "PAYMENT.CAPTURE.COMPLETED",
            "resource": {"id": "CAPTURE-1"},
        }
        return WebhookRequest(
            body=_encode(payload),
            headers={
                "PAYPAL-AUTH-ALGO": "SHA256withRSA",
                "PAYPAL-CERT-URL": "https://api.sandbox.paypal.com/v1/notifications/certs/CERT-1",
                "PAYPAL-TRANSMISSION-ID": uuid.uuid4().hex,
                "PAYPAL-TRANSMISSION-SIG": "c2lnbmF0dXJl",
                "PAYPAL-TRANSMISSION-TIME": datetime.now(timezone.utc).isoformat(),
            },
            **kwargs,
        )
