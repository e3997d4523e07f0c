"""
Token manager — store / read / clear the per-user LinkedIn connection.

``SqlConnectionStore`` is what the callback handler writes through; the
module-level helpers back the status and disconnect routes and give other
code a way to get a usable access token.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from connectors.encryption import decrypt_token, encrypt_token
from connectors.errors import PersistenceFailed
from connectors.models import ConnectionRecord
from database.session import async_session_factory

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def _load(session: AsyncSession, user_id: str) -> Optional[ConnectionRecord]:
    result = await session.execute(
        select(ConnectionRecord).where(ConnectionRecord.user_id == user_id)
    )
    return result.scalar_one_or_none()


class SqlConnectionStore:
    """Upserts ``ConnectionRecord`` rows through an ``AsyncSession``."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save_connection(
        self,
        user_id: str,
        token: str,
        external_id: str,
        expires_at: datetime,
    ) -> None:
        """
        Insert or update the user's connection and mark it connected.

        Raises ``PersistenceFailed`` when the database rejects the write.
        """
        if not token or not external_id:
            raise PersistenceFailed("Refusing to mark connected without token and profile id")

        session = self._session
        now = _utcnow()
        try:
            existing = await _load(session, user_id)
            if existing:
                existing.external_token = encrypt_token(token)
                existing.external_profile_id = external_id
                existing.connected = True
                existing.token_expires_at = expires_at
                existing.connected_at = now
                existing.updated_at = now
                logger.info("Updated LinkedIn connection for user %s", user_id)
            else:
                session.add(
                    ConnectionRecord(
                        user_id=user_id,
                        external_token=encrypt_token(token),
                        external_profile_id=external_id,
                        connected=True,
                        token_expires_at=expires_at,
                        connected_at=now,
                        updated_at=now,
                    )
                )
                logger.info("Created LinkedIn connection for user %s", user_id)
            await session.commit()
        except SQLAlchemyError as exc:
            logger.error("save_connection error for user %s: %s", user_id, exc)
            await session.rollback()
            raise PersistenceFailed(str(exc)) from exc


def _serialize(conn: ConnectionRecord, now: datetime) -> Dict[str, Any]:
    expires_at = conn.token_expires_at
    return {
        "provider": "linkedin",
        "connected": bool(conn.connected),
        "external_profile_id": conn.external_profile_id,
        "token_expires_at": expires_at.isoformat() if expires_at else None,
        "connected_at": conn.connected_at.isoformat() if conn.connected_at else None,
        "expired": bool(expires_at and expires_at <= now),
    }


async def get_connection(
    user_id: str,
    *,
    db_session: Optional[AsyncSession] = None,
) -> Optional[Dict[str, Any]]:
    """Return the user's connection status (no token exposed), or None."""
    own_session = db_session is None
    session = db_session or async_session_factory()
    try:
        conn = await _load(session, user_id)
        if conn is None:
            return None
        return _serialize(conn, _utcnow())
    finally:
        if own_session:
            await session.close()


async def get_active_token(
    user_id: str,
    *,
    db_session: Optional[AsyncSession] = None,
) -> Optional[str]:
    """
    Return the decrypted access token if the user is connected and the
    token has not expired, else None. Expired tokens are not refreshed.
    """
    own_session = db_session is None
    session = db_session or async_session_factory()
    try:
        conn = await _load(session, user_id)
        if not conn or not conn.connected or not conn.external_token:
            return None
        if conn.token_expires_at and conn.token_expires_at <= _utcnow():
            logger.info("LinkedIn token for user %s has expired", user_id)
            return None
        return decrypt_token(conn.external_token)
    finally:
        if own_session:
            await session.close()


async def disconnect(
    user_id: str,
    *,
    db_session: Optional[AsyncSession] = None,
) -> bool:
    """
    Clear the stored token and profile id.
    Returns True if a record was found, False otherwise.
    """
    own_session = db_session is None
    session = db_session or async_session_factory()
    try:
        conn = await _load(session, user_id)
        if conn is None:
            return False
        conn.external_token = None
        conn.external_profile_id = None
        conn.connected = False
        conn.token_expires_at = None
        conn.updated_at = _utcnow()
        if own_session:
            await session.commit()
        else:
            await session.flush()
        logger.info("Disconnected LinkedIn for user %s", user_id)
        return True
    except SQLAlchemyError as exc:
        logger.error("disconnect error for user %s: %s", user_id, exc)
        if own_session:
            await session.rollback()
        raise
    finally:
        if own_session:
            await session.close()
