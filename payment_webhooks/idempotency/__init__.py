from .store import DEFAULT_TTL_SECONDS, IdempotencyStore, InMemoryIdempotencyStore

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "IdempotencyStore",
    "InMemoryIdempotencyStore",
]
