import logging

import requests

from payment_webhooks.exceptions import AdapterError

logger = logging.getLogger(__name__)


class JsonHttpAdapter:
    """Thin JSON-over-HTTP client shared by the provider adapters.

    Transport errors and non-2xx answers become ``AdapterError`` carrying
    ``failure_message``; handlers decide what that means for the payment.
    """

    provider = "provider"

    def __init__(self, session: requests.Session | None = None, timeout_seconds: float = 30):
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds

    def _auth(self) -> dict:
        return {}

    def _request(self, method: str, url: str, failure_message: str, **kwargs) -> dict:
        kwargs.setdefault("timeout", self.timeout_seconds)
        for key, value in self._auth().items():
            kwargs.setdefault(key, value)

        try:
            resp = self.session.request(method, url, **kwargs)
        except requests.exceptions.Timeout as e:
            raise AdapterError(f"{failure_message}: timeout") from e
        except requests.exceptions.ConnectionError as e:
            raise AdapterError(f"{failure_message}: connection_error") from e
        except requests.exceptions.RequestException as e:
            raise AdapterError(f"{failure_message}: {e}") from e

        if not resp.ok:
            logger.warning("%s %s %s answered %s", self.provider, method, url, resp.status_code)
            raise AdapterError(failure_message)

        try:
            data = resp.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {"data": data}


def bearer(token: str) -> dict:
    return {"headers": {"Authorization": f"Bearer {token}"}}
