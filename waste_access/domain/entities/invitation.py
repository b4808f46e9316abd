"""
Invitation Entity

Pending invitations to join the platform or a company.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from ..base import utcnow
from .enums import InvitationStatus, UserRole


class Invitation(SQLModel, table=True):
    """
    Invitation entity - pending invitation for an email address.

    Business Rules:
    - company_id is null for platform-level invitations
    - Expires after 7 days
    - Token is single-use, cryptographically secure
    - Only pending, unexpired invitations can be accepted
    """

    __tablename__ = "user_invitations"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    email: str = Field(max_length=255, nullable=False, index=True)
    invited_by: UUID = Field(foreign_key="user_profiles.id", nullable=False)
    company_id: Optional[UUID] = Field(default=None, foreign_key="companies.id", index=True)

    role: UserRole = Field(default=UserRole.viewer)
    permissions: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    message: Optional[str] = Field(default=None, max_length=1000)

    # SHA-256 digest; the raw token is only returned to the inviter
    invitation_token_hash: str = Field(unique=True, index=True, max_length=64)
    status: InvitationStatus = Field(default=InvitationStatus.pending)

    accepted_by: Optional[UUID] = Field(default=None, foreign_key="user_profiles.id")
    accepted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    expires_at: datetime = Field(sa_column=Column(DateTime))
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_invitation_expires_at", "expires_at"),
        Index("idx_invitation_company_email", "company_id", "email"),
        Index("idx_invitation_status", "status"),
    )
