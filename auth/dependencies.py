"""
FastAPI dependencies for authentication.

Provides ``db_session``, ``get_current_user_id`` and
``get_optional_user_id`` dependencies used by the connector routes.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from database.session import get_db_session

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer()
_optional_bearer_scheme = HTTPBearer(auto_error=False)


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(_bearer_scheme),
) -> str:
    """
    Extract and verify the Bearer token, returning the authenticated
    ``user_id``.
    """
    from auth.jwt import verify_token

    return verify_token(credentials.credentials)


async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_optional_bearer_scheme),
) -> Optional[str]:
    """
    Like ``get_current_user_id`` but returns ``None`` when no valid Bearer
    token was sent, so redirect endpoints never answer with a 401.
    """
    if credentials is None:
        return None
    from auth.jwt import verify_token

    try:
        return verify_token(credentials.credentials)
    except HTTPException as exc:
        logger.warning("Ignoring invalid bearer token: %s", exc.detail)
        return None
