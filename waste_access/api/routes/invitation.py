from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, EmailStr, Field

from waste_access.api.error import to_http_error
from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.auth_policy import AuthPolicy
from waste_access.app.services.security_guard import RateLimitConfig
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.app.use_cases.invitations import (
    AcceptInvitationResponse,
    AcceptInvitationUseCase,
    InviteUserCommand,
    InviteUserResponse,
    InviteUserUseCase,
    ListPendingInvitationsUseCase,
    PendingInvitationsResponse,
    RevokeInvitationResponse,
    RevokeInvitationUseCase,
)
from waste_access.depends import (
    authenticate,
    get_audit_recorder,
    get_auth_policy,
    get_request_meta,
    get_unit_of_work,
    rate_limit,
)
from waste_access.domain.entities import PermissionSet, UserRole

router = APIRouter(prefix="/invitations", tags=["Invitations"])

# Per client IP, shared by every inviter behind it
INVITE_RATE_LIMIT = RateLimitConfig(
    window_ms=3_600_000,
    max_requests=50,
    message="Too many invitations sent, please try again later.",
    code="INVITE_RATE_LIMIT_EXCEEDED",
)


class InviteUserRequest(BaseModel):
    email: EmailStr
    company_id: Optional[UUID] = Field(
        None, description="Company to grant on acceptance; omit for a platform invitation"
    )
    role: UserRole = UserRole.viewer
    permissions: Optional[PermissionSet] = None
    message: Optional[str] = Field(None, max_length=1000)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=InviteUserResponse,
    dependencies=[Depends(rate_limit(INVITE_RATE_LIMIT, name="invitations"))],
)
async def invite_user(
    body: InviteUserRequest,
    request: Request,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
    policy: AuthPolicy = Depends(get_auth_policy),
):
    """
    Invite a user to the platform or to one company.

    Platform invitations need a platform admin; company invitations need
    manage_users on that company.

    Raises:
        - 403 Forbidden: PERMISSION_DENIED, SUPER_ADMIN_REQUIRED
        - 404 Not Found: COMPANY_NOT_FOUND
        - 409 Conflict: INVITE_ALREADY_EXISTS
        - 429 Too Many Requests: INVITE_RATE_LIMIT_EXCEEDED
    """
    command = InviteUserCommand(**body.model_dump())
    result = await InviteUserUseCase(uow, audit, policy).execute(
        actor, command, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


class AcceptInvitationRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=255)


@router.post("/accept", status_code=status.HTTP_200_OK, response_model=AcceptInvitationResponse)
async def accept_invitation(
    body: AcceptInvitationRequest,
    request: Request,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Accept an invitation addressed to the caller's email.

    Raises:
        - 403 Forbidden: INVITATION_EMAIL_MISMATCH
        - 404 Not Found: INVITATION_NOT_FOUND
        - 409 Conflict: INVITATION_NOT_PENDING (already accepted or revoked)
        - 410 Gone: INVITATION_EXPIRED
    """
    result = await AcceptInvitationUseCase(uow, audit).execute(
        actor, body.token, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


@router.post(
    "/{invitation_id}/revoke",
    status_code=status.HTTP_200_OK,
    response_model=RevokeInvitationResponse,
)
async def revoke_invitation(
    invitation_id: UUID,
    request: Request,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    result = await RevokeInvitationUseCase(uow, audit).execute(
        actor, invitation_id, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


@router.get("/pending", status_code=status.HTTP_200_OK, response_model=PendingInvitationsResponse)
async def list_pending_invitations(
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Pending invitations addressed to the caller"""
    result = await ListPendingInvitationsUseCase(uow).execute(actor)
    if result.is_err():
        raise to_http_error(result.error)
    return result.value
