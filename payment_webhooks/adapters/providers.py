"""REST adapters for the providers with a public HTTP API.

Each returns the provider's decoded JSON as a plain dict. Amounts are sent as
the provider expects them; comparison against stored amounts happens in the
handlers.
"""

from decimal import Decimal
from typing import Protocol

import requests

from payment_webhooks.config import (
    ClipSettings,
    MercadoPagoSettings,
    OpenpaySettings,
    PayPalSettings,
    StripeSettings,
)
from payment_webhooks.exceptions import AdapterError
from payment_webhooks.verification.paypal import PayPalTokenCache

from .base import JsonHttpAdapter, bearer


class CheckoutAdapter(Protocol):
    """Providers that open a hosted checkout (Conekta, Kueski Pay)."""

    def request_payment(self, amount: Decimal, description: str) -> dict:
        ...


def _money(amount: Decimal) -> str:
    return f"{Decimal(amount):.2f}"


class PayPalAdapter(JsonHttpAdapter):
    provider = "paypal"

    def __init__(
        self,
        settings: PayPalSettings,
        token_cache: PayPalTokenCache | None = None,
        session: requests.Session | None = None,
        return_url: str | None = None,
        **kwargs,
    ):
        super().__init__(session=session, **kwargs)
        if not settings.client_id or not settings.client_secret:
            raise AdapterError("PayPal credentials not configured")
        self.settings = settings
        self.token_cache = token_cache or PayPalTokenCache(settings, session=self.session)
        self.return_url = return_url

    def _auth(self) -> dict:
        return bearer(self.token_cache.get_token())

    def request_payment(self, amount: Decimal, description: str) -> dict:
        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "amount": {"currency_code": self.settings.currency, "value": _money(amount)},
                    "description": description,
                }
            ],
        }
        if self.return_url:
            body["application_context"] = {"return_url": self.return_url, "cancel_url": self.return_url}
        return self._request(
            "POST", f"{self.settings.api_url}/v2/checkout/orders", "PayPal order creation failed", json=body
        )

    def get_order_details(self, order_id: str) -> dict:
        return self._request(
            "GET", f"{self.settings.api_url}/v2/checkout/orders/{order_id}", "Failed to get PayPal order details"
        )

    def refund(self, capture_id: str, amount: Decimal) -> dict:
        return self._request(
            "POST",
            f"{self.settings.api_url}/v2/payments/captures/{capture_id}/refund",
            "PayPal refund failed",
            json={"amount": {"currency_code": self.settings.currency, "value": _money(amount)}},
        )


class StripeAdapter(JsonHttpAdapter):
    provider = "stripe"
    api_url = "https://api.stripe.com/v1"

    def __init__(self, settings: StripeSettings, session: requests.Session | None = None, **kwargs):
        super().__init__(session=session, **kwargs)
        if not settings.api_key:
            raise AdapterError("Stripe secret key is not configured.")
        self.settings = settings

    def _auth(self) -> dict:
        return {"auth": (self.settings.api_key, "")}

    def get_charge_details(self, payment_id: str) -> dict:
        resource = "payment_intents" if payment_id.startswith("pi_") else "charges"
        return self._request("GET", f"{self.api_url}/{resource}/{payment_id}", "Failed to get Stripe charge")

    def refund(self, payment_id: str) -> dict:
        field = "payment_intent" if payment_id.startswith("pi_") else "charge"
        return self._request("POST", f"{self.api_url}/refunds", "Stripe refund failed", data={field: payment_id})


class MercadoPagoAdapter(JsonHttpAdapter):
    provider = "mercadopago"
    api_url = "https://api.mercadopago.com"

    def __init__(self, settings: MercadoPagoSettings, session: requests.Session | None = None, **kwargs):
        super().__init__(session=session, **kwargs)
        if not settings.access_token:
            raise AdapterError("Mercado Pago access token not configured")
        self.settings = settings

    def _auth(self) -> dict:
        return bearer(self.settings.access_token)

    def request_payment(self, amount: Decimal, description: str) -> dict:
        body = {
            "items": [{"title": description, "quantity": 1, "unit_price": float(amount)}],
            "auto_return": "approved",
        }
        if self.settings.notification_url:
            body["notification_url"] = self.settings.notification_url
        return self._request(
            "POST", f"{self.api_url}/checkout/preferences", "Mercado Pago preference creation failed", json=body
        )

    def get_payment_details(self, payment_id: str) -> dict:
        return self._request(
            "GET", f"{self.api_url}/v1/payments/{payment_id}", "Failed to get Mercado Pago payment details"
        )

    def refund(self, payment_id: str, amount: Decimal) -> dict:
        return self._request(
            "POST",
            f"{self.api_url}/v1/payments/{payment_id}/refunds",
            "Mercado Pago refund failed",
            json={"amount": float(amount)},
        )


class OpenpayAdapter(JsonHttpAdapter):
    provider = "openpay"

    def __init__(self, settings: OpenpaySettings, session: requests.Session | None = None, **kwargs):
        super().__init__(session=session, **kwargs)
        if not settings.merchant_id or not settings.private_key:
            raise AdapterError("Openpay credentials not configured")
        self.settings = settings

    def _auth(self) -> dict:
        return {"auth": (self.settings.private_key, "")}

    def create_bank_charge(
        self, amount: Decimal, description: str, customer_name: str, customer_email: str
    ) -> dict:
        body = {
            "method": "bank_account",
            "amount": float(amount),
            "description": description,
            "customer": {"name": customer_name, "email": customer_email},
        }
        return self._request(
            "POST", f"{self.settings.api_url}/charges", "Openpay charge creation failed", json=body
        )

    def get_charge_details(self, charge_id: str) -> dict:
        return self._request(
            "GET", f"{self.settings.api_url}/charges/{charge_id}", "Failed to get Openpay charge details"
        )

    def refund(self, charge_id: str, amount: Decimal) -> dict:
        return self._request(
            "POST",
            f"{self.settings.api_url}/charges/{charge_id}/refund",
            "Openpay refund failed",
            json={"amount": float(amount)},
        )


class ClipAdapter(JsonHttpAdapter):
    provider = "clip"
    api_url = "https://api.clip.mx/v1"

    def __init__(self, settings: ClipSettings, session: requests.Session | None = None, **kwargs):
        super().__init__(session=session, **kwargs)
        if not settings.api_key:
            raise AdapterError("Clip API key not configured")
        self.settings = settings

    def _auth(self) -> dict:
        return bearer(self.settings.api_key)

    def request_payment(self, amount: Decimal, description: str) -> dict:
        return self._request(
            "POST",
            f"{self.api_url}/payments",
            "Clip payment creation failed",
            json={"amount": float(amount), "description": description},
        )

    def get_payment_details(self, payment_id: str) -> dict:
        return self._request("GET", f"{self.api_url}/payments/{payment_id}", "Failed to get Clip payment details")

    def refund(self, payment_id: str, amount: Decimal) -> dict:
        return self._request(
            "POST", f"{self.api_url}/payments/{payment_id}/refund", "Clip refund failed", json={"amount": float(amount)}
        )
