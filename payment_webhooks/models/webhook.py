import json
from dataclasses import dataclass, field
from typing import Mapping

from requests.structures import CaseInsensitiveDict


@dataclass
class WebhookRequest:
    """A raw inbound notification: body bytes exactly as received plus headers."""

    body: bytes
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    query: dict = field(default_factory=dict)
    method: str = "POST"
    client_ip: str = "127.0.0.1"

    def __post_init__(self):
        if isinstance(self.body, str):
            self.body = self.body.encode("utf-8")
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})

    @classmethod
    def build(
        cls,
        body: bytes | str | dict,
        headers: Mapping[str, str] | None = None,
        query: Mapping[str, str] | None = None,
        **kwargs,
    ) -> "WebhookRequest":
        if isinstance(body, dict):
            body = json.dumps(body)
        return cls(body=body, headers=CaseInsensitiveDict(headers or {}), query=dict(query or {}), **kwargs)

    def header(self, name: str) -> str | None:
        value = self.headers.get(name)
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> dict:
        """Decoded body, or an empty dict when the body is not a JSON object."""
        try:
            data = json.loads(self.body or b"{}")
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}


@dataclass
class VerificationResult:
    valid: bool
    reason: str | None = None
    event_id: str | None = None

    @classmethod
    def passed(cls, event_id: object = None, reason: str | None = None) -> "VerificationResult":
        return cls(
            valid=True,
            reason=reason,
            event_id=str(event_id) if event_id not in (None, "") else None,
        )

    @classmethod
    def failed(cls, reason: str) -> "VerificationResult":
        return cls(valid=False, reason=reason)
