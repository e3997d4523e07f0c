"""
JWT-style token creation and verification.

Tokens are base64-encoded JSON payloads signed with HMAC-SHA256.
Secret key is loaded from ``config.jwt_secret`` (env var: ``JWT_SECRET``).
These bearer tokens are the ambient session through which API callers
identify themselves.
"""

from __future__ import annotations

import time
from typing import Optional

from fastapi import HTTPException, status

from auth.signing import sign_payload, unsign_payload
from config.settings import config


def create_token(user_id: str, *, expires_in: Optional[int] = None) -> str:
    """Create a signed token containing ``user_id`` and expiry."""
    ttl = config.jwt_expiry_seconds if expires_in is None else expires_in
    payload = {
        "user_id": user_id,
        "exp": int(time.time()) + ttl,
    }
    return sign_payload(payload, config.jwt_secret)


def verify_token(token: str) -> str:
    """
    Verify token and return ``user_id``.

    Raises ``HTTPException(401)`` on invalid or expired tokens.
    """
    try:
        payload = unsign_payload(token, config.jwt_secret)
        if payload.get("exp", 0) < time.time():
            raise ValueError("token expired")
        user_id = payload.get("user_id")
        if not user_id:
            raise ValueError("missing user_id")
        return user_id
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid or expired token: {exc}",
        )
