"""HMAC verification for webhook bodies, applied before reconciliation."""

import hashlib
import hmac


def compute_signature(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, header_value: str | None, secret: str) -> bool:
    """Constant-time compare of the hex HMAC-SHA256 digest of `body`.

    Accepts either the bare digest or a `sha256=<digest>` header.
    """

    if not header_value:
        return False
    provided = header_value.strip()
    if provided.startswith("sha256="):
        provided = provided[len("sha256="):]
    expected = compute_signature(body, secret)
    return hmac.compare_digest(expected, provided.lower())
