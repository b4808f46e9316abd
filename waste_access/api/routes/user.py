from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, ConfigDict, Field

from waste_access.api.error import to_http_error
from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.identity_provider import IIdentityProvider
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.app.use_cases.profile import (
    ChangePasswordResponse,
    ChangePasswordUseCase,
    EnableTwoFactorUseCase,
    GetProfileUseCase,
    MeResponse,
    ProfileDetails,
    TwoFactorSetupResponse,
    UpdateProfileCommand,
    UpdateProfileUseCase,
)
from waste_access.app.use_cases.users import (
    AccountStatusResponse,
    SetUserActiveUseCase,
    UnlockAccountUseCase,
)
from waste_access.depends import (
    authenticate,
    get_audit_recorder,
    get_identity_provider,
    get_request_meta,
    get_unit_of_work,
    require_admin,
)

router = APIRouter(tags=["User"])


@router.get("/me", status_code=status.HTTP_200_OK, response_model=MeResponse)
async def get_me(
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Current user's profile and effective company grants"""
    result = await GetProfileUseCase(uow).execute(actor)
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


class UpdateProfileRequest(BaseModel):
    """Only these fields are editable; anything else is rejected"""

    model_config = ConfigDict(extra="forbid")

    full_name: Optional[str] = Field(None, max_length=255)
    username: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[str] = Field(None, max_length=500)
    job_title: Optional[str] = Field(None, max_length=255)
    department: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    timezone: Optional[str] = Field(None, max_length=64)
    language: Optional[str] = Field(None, max_length=16)


@router.patch("/me", status_code=status.HTTP_200_OK, response_model=ProfileDetails)
async def update_me(
    body: UpdateProfileRequest,
    request: Request,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    command = UpdateProfileCommand(**body.model_dump(exclude_unset=True))
    result = await UpdateProfileUseCase(uow, audit).execute(
        actor, command, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., max_length=72)
    new_password: str = Field(..., min_length=8, max_length=72)


@router.post("/me/password", status_code=status.HTTP_200_OK, response_model=ChangePasswordResponse)
async def change_password(
    body: ChangePasswordRequest,
    request: Request,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
    identity_provider: IIdentityProvider = Depends(get_identity_provider),
):
    """
    Change password. Every other session of the user is ended.

    Raises:
        - 400 Bad Request: New password equals the current one
        - 401 Unauthorized: Current password is wrong
    """
    result = await ChangePasswordUseCase(uow, audit, identity_provider).execute(
        actor, body.current_password, body.new_password, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


@router.post(
    "/me/two-factor", status_code=status.HTTP_200_OK, response_model=TwoFactorSetupResponse
)
async def enable_two_factor(
    request: Request,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Enable TOTP two-factor and return the secret and otpauth:// URI"""
    result = await EnableTwoFactorUseCase(uow, audit).execute(actor, get_request_meta(request))
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


# ============================================================================
# Operator actions (platform admins)
# ============================================================================


@router.post(
    "/users/{user_id}/unlock",
    status_code=status.HTTP_200_OK,
    response_model=AccountStatusResponse,
)
async def unlock_user(
    user_id: UUID,
    request: Request,
    actor: AccessContext = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Clear a lockout and reset the failed sign in counter"""
    result = await UnlockAccountUseCase(uow, audit).execute(
        actor, user_id, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


async def _set_active(actor, user_id, active, request, uow, audit):
    result = await SetUserActiveUseCase(uow, audit).execute(
        actor, user_id, active, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


@router.post(
    "/users/{user_id}/deactivate",
    status_code=status.HTTP_200_OK,
    response_model=AccountStatusResponse,
)
async def deactivate_user(
    user_id: UUID,
    request: Request,
    actor: AccessContext = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Soft-deactivate an account and end all of its sessions"""
    return await _set_active(actor, user_id, False, request, uow, audit)


@router.post(
    "/users/{user_id}/activate",
    status_code=status.HTTP_200_OK,
    response_model=AccountStatusResponse,
)
async def activate_user(
    user_id: UUID,
    request: Request,
    actor: AccessContext = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    return await _set_active(actor, user_id, True, request, uow, audit)
