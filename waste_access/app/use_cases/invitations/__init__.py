"""
Invitation Use Cases
"""

from .invite_user_use_case import InviteUserUseCase
from .accept_invitation_use_case import AcceptInvitationUseCase
from .revoke_invitation_use_case import RevokeInvitationUseCase
from .list_pending_invitations_use_case import ListPendingInvitationsUseCase
from .dtos import (
    AcceptInvitationResponse,
    InvitationInfo,
    InviteUserCommand,
    InviteUserResponse,
    PendingInvitationsResponse,
    RevokeInvitationResponse,
)

__all__ = [
    "InviteUserUseCase",
    "AcceptInvitationUseCase",
    "RevokeInvitationUseCase",
    "ListPendingInvitationsUseCase",
    "AcceptInvitationResponse",
    "InvitationInfo",
    "InviteUserCommand",
    "InviteUserResponse",
    "PendingInvitationsResponse",
    "RevokeInvitationResponse",
]
