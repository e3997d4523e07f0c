"""
Single-use enforcement for OAuth state nonces.

Issued states are not stored (their HMAC proves we issued them). Only
redeemed nonces are recorded, until the state they came from would have
expired anyway.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from connectors.models import UsedStateNonce
from database.session import async_session_factory

logger = logging.getLogger(__name__)


class SqlNonceStore:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def consume(self, nonce: str, user_id: str, expires_at: datetime) -> bool:
        """Record ``nonce`` as used. Returns False if it was already used."""
        stmt = (
            pg_insert(UsedStateNonce)
            .values(nonce=nonce, user_id=user_id, expires_at=expires_at)
            .on_conflict_do_nothing(index_elements=["nonce"])
            .returning(UsedStateNonce.nonce)
        )
        result = await self._session.execute(stmt)
        inserted = result.scalar_one_or_none() is not None
        await self._session.commit()
        if not inserted:
            logger.warning("Replayed OAuth state nonce for user %s", user_id)
        return inserted


async def purge_expired_nonces(now: Optional[datetime] = None) -> int:
    """Delete redeemed nonces past their expiry. Returns the row count."""
    cutoff = now or datetime.now(timezone.utc)
    async with async_session_factory() as session:
        result = await session.execute(
            delete(UsedStateNonce).where(UsedStateNonce.expires_at < cutoff)
        )
        await session.commit()
        return result.rowcount or 0
