"""Shared fixtures: in-memory stores and a stubbed LinkedIn connector."""

from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.settings import Settings
from connectors.linkedin import ExternalProfile, TokenExchangeResult


class FakeConnectionStore:
    """Records every ``save_connection`` call; optionally fails."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.saved: List[Dict[str, Any]] = []
        self.error = error

    async def save_connection(self, user_id, token, external_id, expires_at) -> None:
        if self.error is not None:
            raise self.error
        self.saved.append(
            {
                "user_id": user_id,
                "external_token": token,
                "external_profile_id": external_id,
                "connected": True,
                "token_expires_at": expires_at,
            }
        )


class FakeNonceStore:
    def __init__(self) -> None:
        self.used: Dict[str, str] = {}

    async def consume(self, nonce, user_id, expires_at) -> bool:
        if nonce in self.used:
            return False
        self.used[nonce] = user_id
        return True


@pytest.fixture
def store() -> FakeConnectionStore:
    return FakeConnectionStore()


@pytest.fixture
def nonces() -> FakeNonceStore:
    return FakeNonceStore()


@pytest.fixture
def connector() -> MagicMock:
    """Provider stub: token "T" valid for an hour, member ``ext-123``."""
    conn = MagicMock()
    conn.exchange_code_for_token = AsyncMock(
        return_value=TokenExchangeResult(access_token="T", expires_in=3600)
    )
    conn.fetch_profile = AsyncMock(return_value=ExternalProfile(external_id="ext-123"))
    return conn


@pytest.fixture
def settings() -> Settings:
    return Settings(
        linkedin_client_id="client-123",
        linkedin_client_secret="client-secret",
        linkedin_redirect_uri="https://app.example.com/api/v1/connectors/linkedin/callback",
    )
