"""
OAuth ``state`` tokens.

The state round-trips through LinkedIn untouched. It carries the
initiating ``user_id`` plus a random nonce and an issue time, signed with
``config.oauth_state_secret`` so the callback can trust the user id it
reads back.
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from typing import Optional

from auth.signing import read_payload, sign_payload, unsign_payload
from config.settings import config
from connectors.errors import InvalidArgument, InvalidState


@dataclass(frozen=True)
class StatePayload:
    user_id: str
    nonce: str
    iat: int

    def expires_at(self, ttl: Optional[int] = None) -> int:
        return self.iat + (config.oauth_state_ttl_seconds if ttl is None else ttl)


def new_nonce() -> str:
    return secrets.token_urlsafe(16)


def create_state(user_id: str, *, secret: Optional[str] = None, now: Optional[float] = None) -> str:
    """Create an opaque, signed state string for ``user_id``."""
    if not user_id or not user_id.strip():
        raise InvalidArgument("user_id must be a non-empty string")
    payload = {
        "user_id": user_id,
        "nonce": new_nonce(),
        "iat": int(time.time() if now is None else now),
    }
    return sign_payload(payload, secret or config.oauth_state_secret)


def _to_payload(data: dict) -> StatePayload:
    user_id = data.get("user_id")
    nonce = data.get("nonce")
    if not isinstance(user_id, str) or not user_id:
        raise ValueError("missing user_id")
    if not isinstance(nonce, str) or not nonce:
        raise ValueError("missing nonce")
    try:
        iat = int(data.get("iat", 0))
    except (TypeError, ValueError) as exc:
        raise ValueError("bad iat") from exc
    return StatePayload(user_id=user_id, nonce=nonce, iat=iat)


def decode_state(state: str) -> StatePayload:
    """Read the payload back without checking the signature or age."""
    try:
        return _to_payload(read_payload(state))
    except ValueError as exc:
        raise InvalidState(f"Invalid OAuth state: {exc}") from exc


def verify_state(
    state: str,
    *,
    secret: Optional[str] = None,
    ttl: Optional[int] = None,
    now: Optional[float] = None,
) -> StatePayload:
    """Verify signature and age, return the payload. Raises ``InvalidState``."""
    try:
        payload = _to_payload(unsign_payload(state, secret or config.oauth_state_secret))
    except ValueError as exc:
        raise InvalidState(f"Invalid OAuth state: {exc}") from exc

    current = time.time() if now is None else now
    if payload.expires_at(ttl) < current:
        raise InvalidState("Invalid OAuth state: state expired")
    if payload.iat > current + 60:
        raise InvalidState("Invalid OAuth state: issued in the future")
    return payload
