"""
SQLAlchemy ORM models for users, LinkedIn connections and consumed
OAuth state nonces.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(64), primary_key=True)
    email = Column(String(255), unique=True)
    display_name = Column(String(128))
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    connection = relationship(
        "ConnectionRecord",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )


class ConnectionRecord(Base):
    """One LinkedIn connection per local user."""

    __tablename__ = "linkedin_connections"

    user_id = Column(String(64), ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    external_token = Column(Text)
    external_profile_id = Column(String(256))
    connected = Column(Boolean, nullable=False, default=False)
    token_expires_at = Column(DateTime(timezone=True))
    connected_at = Column(DateTime(timezone=True))
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    user = relationship("User", back_populates="connection")


class UsedStateNonce(Base):
    """A state nonce that has already been redeemed by a callback."""

    __tablename__ = "oauth_used_nonces"

    nonce = Column(String(128), primary_key=True)
    user_id = Column(String(64), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_oauth_used_nonces_expires_at", "expires_at"),
    )
