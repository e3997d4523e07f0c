"""
Exceptions raised along the LinkedIn OAuth flow.

Every ``ConnectorError`` carries two labels:

``kind``
    The terminal state the callback ends in (used for logging and the
    tagged ``CallbackOutcome``).
``code``
    The machine-readable ``error=`` value put on the redirect back to the
    settings page.
"""

from __future__ import annotations

from typing import Optional


class InvalidArgument(ValueError):
    """A caller passed an unusable argument (e.g. an empty user id)."""


class ConnectorError(Exception):
    kind = "internal_error"
    code = "exchange_failed"

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ProviderDenied(ConnectorError):
    """LinkedIn redirected back with ``error=...`` (e.g. the user declined)."""

    kind = "provider_denied"

    def __init__(self, error: str, description: Optional[str] = None) -> None:
        super().__init__(description or "")
        self.code = error


class MalformedCallback(ConnectorError):
    kind = "malformed_callback"
    code = "missing_code"


class InvalidState(ConnectorError):
    kind = "invalid_state"
    code = "invalid_state"


class StateMismatch(ConnectorError):
    kind = "state_mismatch"
    code = "state_mismatch"


class TokenExchangeFailed(ConnectorError):
    kind = "token_exchange_failed"


class ProfileFetchFailed(ConnectorError):
    kind = "profile_fetch_failed"


class PersistenceFailed(ConnectorError):
    kind = "persistence_failed"
