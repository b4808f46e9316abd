"""
UserProfile Entity

Identity record for a platform user.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from ..base import utcnow
from .enums import ADMIN_ROLES, UserRole


class UserProfile(SQLModel, table=True):
    """
    UserProfile entity - identity record for a platform user.

    Business Rules:
    - Email must be unique across all users
    - failed_login_attempts resets to 0 on successful sign-in or operator reset
    - A future locked_until blocks every authentication attempt
    - Never hard-deleted; deactivated through is_active
    - password_changed_at moves only on an explicit password change
    """

    __tablename__ = "user_profiles"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)

    full_name: Optional[str] = Field(default=None, max_length=255)
    username: Optional[str] = Field(default=None, max_length=100)
    avatar_url: Optional[str] = Field(default=None, max_length=500)
    job_title: Optional[str] = Field(default=None, max_length=255)
    department: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    timezone: Optional[str] = Field(default=None, max_length=64)
    language: Optional[str] = Field(default=None, max_length=16)

    role: UserRole = Field(default=UserRole.viewer)
    is_active: bool = Field(default=True)
    email_verified: bool = Field(default=False)
    two_factor_enabled: bool = Field(default=False)

    # Lockout
    failed_login_attempts: int = Field(default=0)
    locked_until: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    password_changed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )
    login_count: int = Field(default=0)
    last_login_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_user_profile_role", "role"),
        Index("idx_user_profile_locked_until", "locked_until"),
    )

    def is_locked(self, now: datetime) -> bool:
        return self.locked_until is not None and self.locked_until > now

    @property
    def is_platform_admin(self) -> bool:
        return self.is_active and self.role in ADMIN_ROLES
