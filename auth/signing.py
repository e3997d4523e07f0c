"""
HMAC-signed JSON payloads.

Wire format: ``base64url(json) + "." + hex(HMAC-SHA256(secret, json))``.
Shared by the bearer tokens in :mod:`auth.jwt` and the OAuth state tokens
in :mod:`connectors.state`.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Any, Dict


def _signature(secret: str, raw: bytes) -> str:
    return hmac.new(secret.encode(), raw, hashlib.sha256).hexdigest()


def sign_payload(payload: Dict[str, Any], secret: str) -> str:
    """Serialise ``payload`` compactly and append its signature."""
    raw = json.dumps(payload, separators=(",", ":")).encode()
    return urlsafe_b64encode(raw).decode() + "." + _signature(secret, raw)


def read_payload(token: str) -> Dict[str, Any]:
    """
    Decode the payload part of a signed token WITHOUT checking the signature.

    Raises ``ValueError`` when the token is not decodable JSON.
    """
    encoded = token.split(".", 1)[0]
    try:
        payload = json.loads(urlsafe_b64decode(encoded.encode()))
    except (ValueError, TypeError) as exc:
        raise ValueError(f"undecodable payload: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("payload is not an object")
    return payload


def unsign_payload(token: str, secret: str) -> Dict[str, Any]:
    """
    Verify the signature and return the payload.

    Raises ``ValueError`` on a malformed token or a bad signature.
    """
    parts = token.split(".", 1)
    if len(parts) != 2:
        raise ValueError("bad format")
    try:
        raw = urlsafe_b64decode(parts[0].encode())
    except (ValueError, TypeError) as exc:
        raise ValueError("bad encoding") from exc
    if not hmac.compare_digest(parts[1].encode(), _signature(secret, raw).encode()):
        raise ValueError("bad signature")
    return read_payload(parts[0])
