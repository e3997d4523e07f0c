"""
LinkedIn connector API routes — connect, callback, status, disconnect.

Route prefix: /api/v1/connectors/linkedin
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from auth.dependencies import db_session, get_current_user_id, get_optional_user_id
from config.settings import config
from connectors.callback import CallbackParams, handle_callback
from connectors.linkedin import LinkedInConnector
from connectors.nonce_store import SqlNonceStore
from connectors.token_manager import SqlConnectionStore, disconnect, get_connection

logger = logging.getLogger(__name__)

router = APIRouter(tags=["connectors"])


def get_connector() -> LinkedInConnector:
    return LinkedInConnector()


def _require_configured(connector: LinkedInConnector) -> None:
    if not connector.is_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="LinkedIn connector is not configured (missing client_id/secret)",
        )


# ── Routes ─────────────────────────────────────────────────────────────


@router.get("/auth-url")
async def get_auth_url(
    user_id: str = Depends(get_current_user_id),
    connector: LinkedInConnector = Depends(get_connector),
) -> Dict[str, str]:
    """
    Get the LinkedIn authorization URL for the authenticated user.

    Frontend should navigate (or open a popup) to this URL.
    """
    _require_configured(connector)
    return {"auth_url": connector.build_authorization_url(user_id), "provider": "linkedin"}


@router.get("/connect")
async def connect(
    user_id: str = Depends(get_current_user_id),
    connector: LinkedInConnector = Depends(get_connector),
) -> RedirectResponse:
    """Redirect straight to LinkedIn's consent screen."""
    _require_configured(connector)
    return RedirectResponse(connector.build_authorization_url(user_id))


@router.get("/callback")
async def oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    error_description: Optional[str] = Query(None),
    session_user_id: Optional[str] = Depends(get_optional_user_id),
    connector: LinkedInConnector = Depends(get_connector),
    session: AsyncSession = Depends(db_session),
) -> RedirectResponse:
    """
    OAuth callback — LinkedIn redirects here after consent.

    Always answers with a redirect to the settings page carrying either
    ``success=true`` or ``error=<code>&msg=<description>``.
    """
    outcome = await handle_callback(
        CallbackParams(
            code=code,
            state=state,
            error=error,
            error_description=error_description,
        ),
        connector=connector,
        store=SqlConnectionStore(session),
        nonces=SqlNonceStore(session),
        session_user_id=session_user_id,
    )
    logger.info("LinkedIn callback finished: %s", outcome.kind)
    return RedirectResponse(outcome.redirect_url(config.settings_page_url))


@router.get("/connection")
async def connection_status(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """LinkedIn connection status for the authenticated user."""
    conn = await get_connection(user_id, db_session=session)
    if conn is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No LinkedIn connection")
    return conn


@router.delete("/connection")
async def delete_connection(
    user_id: str = Depends(get_current_user_id),
    session: AsyncSession = Depends(db_session),
) -> Dict[str, Any]:
    """Forget the stored LinkedIn token."""
    if not await disconnect(user_id, db_session=session):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No LinkedIn connection")
    await session.commit()
    return {"status": "disconnected", "provider": "linkedin"}
