import base64
import hashlib
import hmac


def _as_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def hmac_sha256(secret: str | bytes, message: str | bytes) -> bytes:
    return hmac.new(_as_bytes(secret), _as_bytes(message), hashlib.sha256).digest()


def generate_signature(secret: str | bytes, message: str | bytes) -> str:
    """Hex HMAC-SHA256 of ``message`` keyed with ``secret``."""
    return hmac_sha256(secret, message).hex()


def generate_base64_signature(secret: str | bytes, message: str | bytes) -> str:
    """Base64 HMAC-SHA256 of ``message`` keyed with ``secret``."""
    return base64.b64encode(hmac_sha256(secret, message)).decode("ascii")


def signatures_match(expected: str, provided: str) -> bool:
    """Constant-time comparison of two digests."""
    return hmac.compare_digest(_as_bytes(expected), _as_bytes(provided))


def verify_signature(secret: str | bytes, message: str | bytes, signature: str) -> bool:
    """Verify a hex HMAC-SHA256 signature against ``message``."""
    return signatures_match(generate_signature(secret, message), signature)


def parse_signature_header(header: str) -> dict[str, str]:
    """Parse a ``k=v,k2=v2`` header; pieces without ``=`` are skipped."""
    parts = {}
    for piece in header.split(","):
        piece = piece.strip()
        if not piece or "=" not in piece:
            continue
        key, value = piece.split("=", 1)
        parts[key.strip()] = value.strip()
    return parts
