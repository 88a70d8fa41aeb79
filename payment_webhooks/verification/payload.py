"""Structural checks on verified webhook bodies, per provider."""

from typing import Callable

from payment_webhooks.models.payment import PaymentMethod
from payment_webhooks.models.webhook import VerificationResult, WebhookRequest


STRIPE_EVENT_TYPES = {
    "payment_intent.succeeded",
    "payment_intent.payment_failed",
    "charge.succeeded",
    "charge.failed",
    "checkout.session.completed",
}

PAYPAL_EVENT_TYPES = {
    "PAYMENT.CAPTURE.COMPLETED",
    "PAYMENT.CAPTURE.DENIED",
    "CHECKOUT.ORDER.APPROVED",
    "CHECKOUT.ORDER.COMPLETED",
}

MERCADOPAGO_TYPES = {"payment", "merchant_order"}

CONEKTA_EVENT_TYPES = {
    "order.paid",
    "order.pending_payment",
    "order.canceled",
    "charge.paid",
    "charge.pending_payment",
}

KUESKI_EVENTS = {"payment.approved", "payment.rejected", "payment.pending"}

OPENPAY_EVENT_TYPES = {"charge.succeeded", "charge.failed", "charge.cancelled", "charge.created"}

CLIP_EVENTS = {"payment.created", "payment.completed", "payment.failed"}


def _nested(payload: dict, *path):
    node = payload
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def validate_stripe_payload(request: WebhookRequest) -> VerificationResult:
    payload = request.json()
    if "id" not in payload or "type" not in payload or _nested(payload, "data", "object") is None:
        return VerificationResult.failed("Missing required fields: id, type, or data.object")
    if not isinstance(payload["id"], str) or not payload["id"].startswith("evt_"):
        return VerificationResult.failed("Invalid event ID format")
    if payload["type"] not in STRIPE_EVENT_TYPES:
        return VerificationResult.failed(f"Unsupported event type: {payload['type']}")
    return VerificationResult.passed(payload["id"])


def validate_paypal_payload(request: WebhookRequest) -> VerificationResult:
    payload = request.json()
    if "id" not in payload or "event_type" not in payload or "resource" not in payload:
        return VerificationResult.failed("Missing required fields: id, event_type, or resource")
    if not isinstance(payload["id"], str) or len(payload["id"]) < 5:
        return VerificationResult.failed("Invalid event ID")
    if payload["event_type"] not in PAYPAL_EVENT_TYPES:
        return VerificationResult.failed(f"Unsupported event type: {payload['event_type']}")
    return VerificationResult.passed(payload["id"])


def validate_mercadopago_payload(request: WebhookRequest) -> VerificationResult:
    payload = request.json()
    data_id = _nested(payload, "data", "id")
    if "type" not in payload or data_id is None:
        return VerificationResult.failed("Missing required fields: type or data.id")
    if payload["type"] not in MERCADOPAGO_TYPES:
        return VerificationResult.failed(f"Unsupported notification type: {payload['type']}")
    if not str(data_id).isdigit():
        return VerificationResult.failed("Invalid data.id format")
    return VerificationResult.passed(data_id)


def validate_conekta_payload(request: WebhookRequest) -> VerificationResult:
    payload = request.json()
    if "type" not in payload or _nested(payload, "data", "object") is None:
        return VerificationResult.failed("Missing required fields: type or data.object")
    if payload["type"] not in CONEKTA_EVENT_TYPES:
        return VerificationResult.failed(f"Unsupported event type: {payload['type']}")
    return VerificationResult.passed(payload.get("id"))


def validate_kueski_payload(request: WebhookRequest) -> VerificationResult:
    payload = request.json()
    if "event" not in payload or "data" not in payload:
        return VerificationResult.failed("Missing required fields: event or data")
    if payload["event"] not in KUESKI_EVENTS:
        return VerificationResult.failed(f"Unsupported event type: {payload['event']}")
    return VerificationResult.passed(payload.get("event_id") or payload.get("id"))


def validate_openpay_payload(request: WebhookRequest) -> VerificationResult:
    payload = request.json()
    if "type" not in payload or "transaction" not in payload:
        return VerificationResult.failed("Missing required fields: type or transaction")
    if payload["type"] not in OPENPAY_EVENT_TYPES:
        return VerificationResult.failed(f"Unsupported event type: {payload['type']}")
    if _nested(payload, "transaction", "id") is None:
        return VerificationResult.failed("Missing transaction.id")
    return VerificationResult.passed(payload.get("id") or payload.get("event_id"))


def validate_clip_payload(request: WebhookRequest) -> VerificationResult:
    payload = request.json()
    if "event" not in payload or _nested(payload, "data", "id") is None:
        return VerificationResult.failed("Missing required fields: event or data.id")
    if payload["event"] not in CLIP_EVENTS:
        return VerificationResult.failed(f"Unsupported event type: {payload['event']}")
    return VerificationResult.passed(_nested(payload, "data", "id"))


PAYLOAD_VALIDATORS: dict[str, Callable[[WebhookRequest], VerificationResult]] = {
    PaymentMethod.STRIPE.value: validate_stripe_payload,
    PaymentMethod.GOOGLEPAY.value: validate_stripe_payload,
    PaymentMethod.PAYPAL.value: validate_paypal_payload,
    PaymentMethod.MERCADOPAGO.value: validate_mercadopago_payload,
    PaymentMethod.CONEKTA.value: validate_conekta_payload,
    PaymentMethod.KUESKIPAY.value: validate_kueski_payload,
    PaymentMethod.OPENPAY.value: validate_openpay_payload,
    PaymentMethod.CLIP.value: validate_clip_payload,
}


def validate_payload(method: str, request: WebhookRequest) -> VerificationResult:
    """Shape check for ``method``; methods without a validator always pass."""
    validator = PAYLOAD_VALIDATORS.get(method)
    if validator is None:
        return VerificationResult.passed()
    return validator(request)
