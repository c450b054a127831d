"""
HMAC-SHA256 signatures for payment confirmations.

The payment provider sends ``X-Signature-256: sha256=<hex digest of body>``.
Whether an unsigned request may pass is a deployment decision made by the
caller; this module only answers whether a signature matches.
"""

from __future__ import annotations

import hashlib
import hmac

SIGNATURE_SCHEME = "sha256"


def _digest(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def sign_body(body: bytes, secret: str) -> str:
    return f"{SIGNATURE_SCHEME}={_digest(body, secret)}"


def parse_signature(header: str) -> str | None:
    scheme, sep, digest = header.strip().partition("=")
    if not sep or scheme.lower() != SIGNATURE_SCHEME or not digest:
        return None
    return digest


def verify_signature(body: bytes, signature_header: str | None, secret: str | None) -> bool:
    if not signature_header or not secret:
        return False
    digest = parse_signature(signature_header)
    return digest is not None and hmac.compare_digest(_digest(body, secret), digest)
