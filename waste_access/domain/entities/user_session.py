"""
UserSession Entity

Server-side record of an issued access/refresh token pair.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from ..base import utcnow


class UserSession(SQLModel, table=True):
    """
    UserSession entity - one sign-in on one device.

    Business Rules:
    - Tokens are stored as SHA-256 digests, never in clear
    - Live iff is_active and expires_at is in the future
    - Tokens rotate on refresh; an ended session is never reactivated
    - Every validated request bumps last_activity_at
    """

    __tablename__ = "user_sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="user_profiles.id", nullable=False, index=True)

    session_token_hash: str = Field(max_length=64, index=True)
    refresh_token_hash: str = Field(max_length=64, unique=True, index=True)

    is_active: bool = Field(default=True)
    login_method: str = Field(default="password", max_length=32)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)

    # Timestamps
    login_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    last_activity_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime))
    logout_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    logout_reason: Optional[str] = Field(default=None, max_length=32)

    __table_args__ = (
        Index("idx_session_expires_at", "expires_at"),
        Index("idx_session_user_active", "user_id", "is_active"),
    )
