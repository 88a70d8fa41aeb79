"""Local signature verification, one function per provider.

Every verifier is a pure function of the raw request, the provider secret and
the clock. None of them raise: any failure becomes ``valid=False`` with a
reason, and callers branch on ``valid``.
"""

import functools
import logging
import time

from payment_webhooks.models.webhook import VerificationResult, WebhookRequest
from payment_webhooks.utils.crypto import (
    generate_base64_signature,
    generate_signature,
    parse_signature_header,
    signatures_match,
)

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE_SECONDS = 300


def _never_raises(verifier):
    @functools.wraps(verifier)
    def wrapper(*args, **kwargs) -> VerificationResult:
        try:
            return verifier(*args, **kwargs)
        except Exception as exc:
            logger.warning("%s crashed: %s", verifier.__name__, exc)
            return VerificationResult.failed(str(exc) or exc.__class__.__name__)

    return wrapper


def _parse_timestamp(value: str | None) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


def outside_tolerance(timestamp: int, tolerance: int | None, now: float | None = None) -> bool:
    """True when ``timestamp`` (seconds, or milliseconds) is further than ``tolerance`` from now."""
    if tolerance is None:
        return False
    if timestamp > 10**12:
        timestamp //= 1000
    current = time.time() if now is None else now
    return abs(current - timestamp) > tolerance


@_never_raises
def verify_stripe_signature(
    request: WebhookRequest,
    secret: str | None,
    tolerance: int = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> VerificationResult:
    """Stripe (and Google Pay through Stripe): ``Stripe-Signature: t=..,v1=..``."""
    sig_header = request.header("Stripe-Signature")
    if not sig_header or not secret:
        return VerificationResult.failed("Missing signature or secret")

    parts = parse_signature_header(sig_header)
    timestamp = _parse_timestamp(parts.get("t"))
    signature = parts.get("v1", "")
    if timestamp <= 0 or not signature:
        return VerificationResult.failed("Malformed signature header")

    if outside_tolerance(timestamp, tolerance, now):
        return VerificationResult.failed("Timestamp outside tolerance")

    computed = generate_signature(secret, f"{timestamp}.".encode("utf-8") + request.body)
    if not signatures_match(computed, signature):
        return VerificationResult.failed("Signature mismatch")

    return VerificationResult.passed(request.json().get("id"))


def _mercadopago_data_id(request: WebhookRequest):
    data_id = request.query.get("data.id")
    if data_id in (None, ""):
        data = request.json().get("data")
        if isinstance(data, dict):
            data_id = data.get("id")
    if data_id in (None, ""):
        data_id = request.query.get("id") or request.json().get("id")
    return data_id


@_never_raises
def verify_mercadopago_signature(
    request: WebhookRequest,
    secret: str | None,
    tolerance: int | None = None,
    now: float | None = None,
) -> VerificationResult:
    """Mercado Pago: ``x-signature: ts=..,v1=..`` over the id/request-id/ts manifest."""
    signature = request.header("x-signature")
    request_id = request.header("x-request-id")
    if not signature or not request_id or not secret:
        return VerificationResult.failed("Missing headers or secret")

    parts = parse_signature_header(signature)
    ts = parts.get("ts", "")
    v1 = parts.get("v1", "")
    if not ts or not v1:
        return VerificationResult.failed("Malformed x-signature")

    if tolerance is not None:
        timestamp = _parse_timestamp(ts)
        if timestamp <= 0:
            return VerificationResult.failed("Malformed x-signature")
        if outside_tolerance(timestamp, tolerance, now):
            return VerificationResult.failed("Timestamp outside tolerance")

    data_id = _mercadopago_data_id(request)
    data_id = "" if data_id is None else str(data_id)
    manifest = f"id:{data_id};request-id:{request_id};ts:{ts};"
    computed = generate_signature(secret, manifest)

    if not signatures_match(computed, v1):
        return VerificationResult.failed("Signature mismatch")

    return VerificationResult.passed(data_id or request_id)


@_never_raises
def verify_conekta_signature(request: WebhookRequest, secret: str | None) -> VerificationResult:
    """Conekta: ``Digest: sha-256=<base64 hmac of the raw body>``."""
    digest = request.header("Digest")
    if not digest:
        return VerificationResult.failed("Missing Digest header")
    if not secret:
        return VerificationResult.failed("Missing Conekta secret")

    prefix = "sha-256="
    if not digest.lower().startswith(prefix):
        return VerificationResult.failed("Invalid Digest format")

    provided = digest[len(prefix):]
    computed = generate_base64_signature(secret, request.body)
    if not signatures_match(computed, provided):
        return VerificationResult.failed("Digest mismatch")

    return VerificationResult.passed(request.json().get("id"))


@_never_raises
def verify_kueski_signature(
    request: WebhookRequest,
    secret: str | None,
    tolerance: int | None = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> VerificationResult:
    """Kueski Pay: hex HMAC of ``timestamp + raw body``."""
    signature = request.header("X-Kueski-Signature")
    timestamp = request.header("X-Kueski-Timestamp")
    if not signature or not timestamp or not secret:
        return VerificationResult.failed("Missing Kueski Pay headers or secret")

    if tolerance is not None:
        parsed = _parse_timestamp(timestamp)
        if parsed <= 0:
            return VerificationResult.failed("Malformed timestamp header")
        if outside_tolerance(parsed, tolerance, now):
            return VerificationResult.failed("Timestamp outside tolerance")

    computed = generate_signature(secret, timestamp.encode("utf-8") + request.body)
    if not signatures_match(computed, signature):
        return VerificationResult.failed("Signature mismatch")

    body = request.json()
    return VerificationResult.passed(body.get("event_id") or body.get("id") or timestamp)


@_never_raises
def verify_openpay_signature(
    request: WebhookRequest,
    secret: str | None,
    tolerance: int | None = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> VerificationResult:
    """Openpay: ``t=..,v1=..`` over ``timestamp.data``.

    The signed data is the raw body exactly as received; re-encoding the JSON
    would drift from what the provider signed.
    """
    auth_header = request.header("verification-signature") or request.header("signature-digest")
    if not auth_header or not secret:
        return VerificationResult.failed("Missing signature header or secret")

    parts = parse_signature_header(auth_header)
    timestamp = _parse_timestamp(parts.get("t"))
    signature = parts.get("v1", "")
    if timestamp <= 0 or not signature:
        return VerificationResult.failed("Malformed signature header")

    if outside_tolerance(timestamp, tolerance, now):
        return VerificationResult.failed("Timestamp outside tolerance")

    computed = generate_signature(secret, f"{parts['t']}.".encode("utf-8") + request.body)
    if not signatures_match(computed, signature):
        return VerificationResult.failed("Signature mismatch")

    body = request.json()
    return VerificationResult.passed(body.get("id") or body.get("event_id"))
