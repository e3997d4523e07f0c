"""
LinkedIn OAuth callback handling.

``handle_callback`` runs once per provider redirect:

1. Provider-side error → ``provider_denied``.
2. No ``code`` → ``malformed_callback``.
3. Resolve the local user from the signed ``state`` (cross-checked
   against the caller's session user if any). The nonce is consumed and
   committed here, before the exchange, so a transient LinkedIn failure
   in step 4 or 5 burns the state and the user has to start over (the
   authorization code is single-use anyway).
4. Exchange the code for an access token.
5. Fetch the member's ``sub``.
6. Upsert the connection, unless no user could be resolved.

Every path ends in a ``CallbackOutcome``; nothing escapes to the caller.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Protocol
from urllib.parse import urlencode

from config.settings import config
from connectors.errors import (
    ConnectorError,
    InvalidState,
    MalformedCallback,
    PersistenceFailed,
    ProviderDenied,
    StateMismatch,
)
from connectors.linkedin import ExternalProfile, TokenExchangeResult
from connectors.state import verify_state

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConnectionStore(Protocol):
    async def save_connection(
        self, user_id: str, token: str, external_id: str, expires_at: datetime
    ) -> None: ...


class NonceStore(Protocol):
    async def consume(self, nonce: str, user_id: str, expires_at: datetime) -> bool: ...


class OAuthProvider(Protocol):
    async def exchange_code_for_token(self, code: str) -> TokenExchangeResult: ...

    async def fetch_profile(self, access_token: str) -> ExternalProfile: ...


@dataclass(frozen=True)
class CallbackParams:
    code: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


class OutcomeStatus(str, enum.Enum):
    CONNECTED = "connected"
    PARTIAL_NO_USER = "partial_no_user"
    FAILED = "failed"


@dataclass(frozen=True)
class CallbackOutcome:
    status: OutcomeStatus
    kind: str
    user_id: Optional[str] = None
    external_profile_id: Optional[str] = None
    error: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def failed(cls, exc: ConnectorError) -> "CallbackOutcome":
        return cls(
            status=OutcomeStatus.FAILED,
            kind=exc.kind,
            error=exc.code,
            message=exc.message or None,
        )

    @property
    def ok(self) -> bool:
        return self.status is not OutcomeStatus.FAILED

    def query_params(self) -> Dict[str, str]:
        if self.status is OutcomeStatus.CONNECTED:
            return {"success": "true"}
        if self.status is OutcomeStatus.PARTIAL_NO_USER:
            return {"success": "true", "linked": "false"}
        params = {"error": self.error or "exchange_failed"}
        if self.message:
            params["msg"] = self.message
        return params

    def redirect_url(self, base: Optional[str] = None) -> str:
        """Append the outcome to the settings-page URL (fragment kept as-is)."""
        target = base or config.settings_page_url
        separator = "&" if "?" in target else "?"
        return f"{target}{separator}{urlencode(self.query_params())}"


async def _resolve_user(
    state: Optional[str],
    session_user_id: Optional[str],
    nonces: NonceStore,
    now: datetime,
) -> Optional[str]:
    if not state:
        logger.warning("LinkedIn callback without state; falling back to session user")
        return session_user_id

    payload = verify_state(state, now=now.timestamp())
    if session_user_id and session_user_id != payload.user_id:
        raise StateMismatch("State was issued to a different user")

    expires_at = datetime.fromtimestamp(payload.expires_at(), tz=timezone.utc)
    if not await nonces.consume(payload.nonce, payload.user_id, expires_at):
        raise InvalidState("State already used")
    return payload.user_id


async def _run(
    params: CallbackParams,
    connector: OAuthProvider,
    store: ConnectionStore,
    nonces: NonceStore,
    session_user_id: Optional[str],
    clock: Callable[[], datetime],
) -> CallbackOutcome:
    if params.error:
        raise ProviderDenied(params.error, params.error_description)
    if not params.code:
        raise MalformedCallback()

    user_id = await _resolve_user(params.state, session_user_id, nonces, clock())

    token = await connector.exchange_code_for_token(params.code)
    exchanged_at = clock()
    profile = await connector.fetch_profile(token.access_token)

    if user_id is None:
        logger.warning(
            "LinkedIn callback succeeded but no user could be resolved; connection not saved"
        )
        return CallbackOutcome(
            status=OutcomeStatus.PARTIAL_NO_USER,
            kind="partial_no_user",
            external_profile_id=profile.external_id,
        )

    expires_at = exchanged_at + timedelta(seconds=token.expires_in)
    try:
        await store.save_connection(user_id, token.access_token, profile.external_id, expires_at)
    except PersistenceFailed:
        raise
    except Exception as exc:
        raise PersistenceFailed(str(exc)) from exc

    logger.info("LinkedIn connected: user=%s profile=%s", user_id, profile.external_id)
    return CallbackOutcome(
        status=OutcomeStatus.CONNECTED,
        kind="connected",
        user_id=user_id,
        external_profile_id=profile.external_id,
    )


async def handle_callback(
    params: CallbackParams,
    *,
    connector: OAuthProvider,
    store: ConnectionStore,
    nonces: NonceStore,
    session_user_id: Optional[str] = None,
    clock: Callable[[], datetime] = _utcnow,
) -> CallbackOutcome:
    """Process one provider redirect; always returns an outcome."""
    try:
        return await _run(params, connector, store, nonces, session_user_id, clock)
    except ConnectorError as exc:
        logger.warning("LinkedIn callback failed (%s): %s", exc.kind, exc.message or exc.code)
        return CallbackOutcome.failed(exc)
    except Exception as exc:
        logger.exception("LinkedIn OAuth processing error")
        return CallbackOutcome(
            status=OutcomeStatus.FAILED,
            kind="internal_error",
            error="exchange_failed",
            message=str(exc) or None,
        )
