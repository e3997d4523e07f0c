"""
LinkedInConnector — OAuth2 authorization-code flow for LinkedIn.

Builds the consent URL, exchanges the returned code for an access token
(server-side, the client secret never leaves the backend) and resolves the
member's stable OpenID ``sub`` identifier.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from config.settings import Settings, config
from connectors.errors import ProfileFetchFailed, TokenExchangeFailed
from connectors.state import create_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenExchangeResult:
    access_token: str
    expires_in: int


@dataclass(frozen=True)
class ExternalProfile:
    external_id: str


def _json_or_empty(resp: httpx.Response) -> Dict[str, Any]:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


class LinkedInConnector:
    """OAuth2 connector for LinkedIn (OpenID Connect userinfo)."""

    provider_name = "linkedin"
    display_name = "LinkedIn"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings or config
        self._transport = transport

    @property
    def scopes(self) -> List[str]:
        return list(self._settings.linkedin_scopes)

    @property
    def redirect_uri(self) -> str:
        return self._settings.linkedin_redirect_uri

    def is_configured(self) -> bool:
        return bool(self._settings.linkedin_client_id and self._settings.linkedin_client_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.linkedin_http_timeout_seconds,
            transport=self._transport,
        )

    # ── Authorization request ──────────────────────────────────────────

    def get_auth_url(self, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self._settings.linkedin_client_id,
            "redirect_uri": self.redirect_uri,
            "state": state,
            "scope": " ".join(self.scopes),
        }
        return f"{self._settings.linkedin_auth_url}?{urlencode(params)}"

    def build_authorization_url(self, user_id: str) -> str:
        """
        Build the consent URL for ``user_id`` with a fresh signed state.

        Raises ``InvalidArgument`` for an empty ``user_id``.
        """
        state = create_state(user_id, secret=self._settings.oauth_state_secret)
        return self.get_auth_url(state)

    # ── Provider calls ─────────────────────────────────────────────────

    async def exchange_code_for_token(self, code: str) -> TokenExchangeResult:
        """Exchange the authorization code for an access token."""
        try:
            async with self._client() as client:
                resp = await client.post(
                    self._settings.linkedin_token_url,
                    data={
                        "grant_type": "authorization_code",
                        "code": code,
                        "client_id": self._settings.linkedin_client_id,
                        "client_secret": self._settings.linkedin_client_secret,
                        "redirect_uri": self.redirect_uri,
                    },
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.warning("LinkedIn token request failed: %s", exc)
            raise TokenExchangeFailed(f"LinkedIn token request failed: {exc}") from exc

        data = _json_or_empty(resp)
        if resp.is_error or not data.get("access_token"):
            logger.warning("LinkedIn token exchange rejected: status=%s", resp.status_code)
            raise TokenExchangeFailed(
                data.get("error_description") or "LinkedIn token exchange failed"
            )

        try:
            expires_in = int(data["expires_in"])
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenExchangeFailed("LinkedIn token response missing expires_in") from exc

        return TokenExchangeResult(access_token=data["access_token"], expires_in=expires_in)

    async def fetch_profile(self, access_token: str) -> ExternalProfile:
        """Fetch the member's OpenID userinfo and return its ``sub``."""
        try:
            async with self._client() as client:
                resp = await client.get(
                    self._settings.linkedin_userinfo_url,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
        except httpx.HTTPError as exc:
            logger.warning("LinkedIn userinfo request failed: %s", exc)
            raise ProfileFetchFailed(f"LinkedIn profile request failed: {exc}") from exc

        data = _json_or_empty(resp)
        if resp.is_error:
            raise ProfileFetchFailed(
                data.get("message") or f"LinkedIn profile request failed ({resp.status_code})"
            )
        sub = data.get("sub")
        if not sub:
            raise ProfileFetchFailed("LinkedIn profile response missing 'sub'")

        return ExternalProfile(external_id=str(sub))
