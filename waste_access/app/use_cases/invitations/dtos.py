"""
Invitation Use Case DTOs (Data Transfer Objects)
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from waste_access.domain.entities import Invitation, InvitationStatus, PermissionSet, UserRole


class InviteUserCommand(BaseModel):
    email: str
    company_id: Optional[UUID] = None
    role: UserRole = UserRole.viewer
    permissions: Optional[PermissionSet] = None
    message: Optional[str] = None


class InvitationInfo(BaseModel):
    id: UUID
    email: str
    company_id: Optional[UUID] = None
    role: UserRole
    permissions: Optional[PermissionSet] = None
    message: Optional[str] = None
    status: InvitationStatus
    invited_by: UUID
    expires_at: datetime
    created_at: datetime

    @classmethod
    def from_entity(cls, invitation: Invitation) -> "InvitationInfo":
        return cls(
            id=invitation.id,
            email=invitation.email,
            company_id=invitation.company_id,
            role=invitation.role,
            permissions=PermissionSet(**invitation.permissions) if invitation.permissions else None,
            message=invitation.message,
            status=invitation.status,
            invited_by=invitation.invited_by,
            expires_at=invitation.expires_at,
            created_at=invitation.created_at,
        )


class InviteUserResponse(BaseModel):
    """Response for invite user use case. The token is handed to the invitee out of band."""

    invitation: InvitationInfo
    invitation_token: str


class AcceptInvitationResponse(BaseModel):
    status: str
    company_id: Optional[UUID] = None
    role: UserRole


class RevokeInvitationResponse(BaseModel):
    status: str


class PendingInvitationsResponse(BaseModel):
    invitations: List[InvitationInfo]
