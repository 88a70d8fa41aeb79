from .controller import WebhookController, WebhookResponse, resolve_provider
from .ratelimit import SlidingWindowRateLimiter
from .server import WebhookServer

__all__ = [
    "WebhookController",
    "WebhookResponse",
    "resolve_provider",
    "SlidingWindowRateLimiter",
    "WebhookServer",
]
