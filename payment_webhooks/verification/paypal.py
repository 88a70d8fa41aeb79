"""PayPal webhook verification through PayPal's remote API.

PayPal does not sign with a shared secret; authenticity is confirmed by
posting the transmission headers back to PayPal with an OAuth bearer token.
"""

import json
import logging
import threading
import time
from typing import Callable

import requests

from payment_webhooks.config import PayPalSettings
from payment_webhooks.exceptions import AdapterError
from payment_webhooks.models.webhook import VerificationResult, WebhookRequest

logger = logging.getLogger(__name__)

TOKEN_SAFETY_MARGIN_SECONDS = 60

TRANSMISSION_HEADERS = (
    "PAYPAL-AUTH-ALGO",
    "PAYPAL-CERT-URL",
    "PAYPAL-TRANSMISSION-ID",
    "PAYPAL-TRANSMISSION-SIG",
    "PAYPAL-TRANSMISSION-TIME",
)


class PayPalTokenCache:
    """Client-credentials OAuth token, cached for ``expires_in`` minus a safety margin.

    The lock only guards the cached value; the token request itself runs
    unlocked so a slow PayPal never blocks other callers holding a valid token.
    """

    def __init__(
        self,
        settings: PayPalSettings,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.monotonic,
        timeout_seconds: float = 10,
    ):
        self.settings = settings
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = threading.Lock()

    def _cached(self) -> str | None:
        with self._lock:
            if self._token and self._clock() < self._expires_at:
                return self._token
            return None

    def get_token(self) -> str:
        token = self._cached()
        if token:
            return token

        try:
            resp = self.session.post(
                f"{self.settings.api_url}/v1/oauth2/token",
                data={"grant_type": "client_credentials"},
                auth=(self.settings.client_id or "", self.settings.client_secret or ""),
                headers={"Accept": "application/json"},
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise AdapterError(f"OAuth token request failed: {e}") from e

        if not resp.ok:
            raise AdapterError("OAuth token request failed")

        payload = resp.json()
        token = payload.get("access_token")
        if not token:
            raise AdapterError("OAuth token response without access_token")

        expires_in = int(payload.get("expires_in") or self.settings.token_ttl)
        ttl = max(expires_in - TOKEN_SAFETY_MARGIN_SECONDS, 0)
        with self._lock:
            self._token = token
            self._expires_at = self._clock() + ttl
        return token

    def invalidate(self) -> None:
        with self._lock:
            self._token = None
            self._expires_at = 0.0


class PayPalWebhookVerifier:
    """Verifies PayPal notifications with ``/v1/notifications/verify-webhook-signature``."""

    def __init__(
        self,
        settings: PayPalSettings,
        token_cache: PayPalTokenCache | None = None,
        session: requests.Session | None = None,
        timeout_seconds: float = 10,
    ):
        self.settings = settings
        self.session = session or (token_cache.session if token_cache else requests.Session())
        self.token_cache = token_cache or PayPalTokenCache(settings, session=self.session)
        self.timeout_seconds = timeout_seconds

    def verify(self, request: WebhookRequest) -> VerificationResult:
        try:
            return self._verify(request)
        except Exception as exc:
            logger.warning("PayPal verification crashed: %s", exc)
            return VerificationResult.failed(str(exc) or exc.__class__.__name__)

    def _verify(self, request: WebhookRequest) -> VerificationResult:
        s = self.settings
        if not s.webhook_id or not s.client_id or not s.client_secret:
            return VerificationResult.failed("Missing PayPal configuration")

        transmission = {name: request.header(name) for name in TRANSMISSION_HEADERS}
        if not all(transmission.values()):
            return VerificationResult.failed("Missing transmission headers")

        try:
            token = self.token_cache.get_token()
        except AdapterError:
            return VerificationResult.failed("OAuth token request failed")

        try:
            webhook_event = json.loads(request.body or b"null")
        except ValueError:
            webhook_event = None

        body = {
            "auth_algo": transmission["PAYPAL-AUTH-ALGO"],
            "cert_url": transmission["PAYPAL-CERT-URL"],
            "transmission_id": transmission["PAYPAL-TRANSMISSION-ID"],
            "transmission_sig": transmission["PAYPAL-TRANSMISSION-SIG"],
            "transmission_time": transmission["PAYPAL-TRANSMISSION-TIME"],
            "webhook_id": s.webhook_id,
            "webhook_event": webhook_event,
        }

        try:
            resp = self.session.post(
                f"{s.api_url}/v1/notifications/verify-webhook-signature",
                json=body,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            return VerificationResult.failed(f"Verify signature API error: {e}")

        if not resp.ok:
            return VerificationResult.failed("Verify signature API error")

        status = resp.json().get("verification_status")
        event_id = request.json().get("id")
        if status == "SUCCESS":
            return VerificationResult.passed(event_id, reason=status)
        return VerificationResult(valid=False, reason=status or "Verification rejected", event_id=None)
