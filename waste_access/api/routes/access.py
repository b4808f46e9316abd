from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from waste_access.api.error import to_http_error
from waste_access.app.services.access_context import AccessContext, CompanyGrantView
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.app.use_cases.access import (
    ChangeCompanyRoleUseCase,
    CompanyAccessInfo,
    CompanyAccessListResponse,
    GrantAccessCommand,
    GrantCompanyAccessUseCase,
    ListCompanyAccessUseCase,
    RevokeAccessResponse,
    RevokeCompanyAccessUseCase,
)
from waste_access.depends import (
    authenticate,
    get_audit_recorder,
    get_request_meta,
    get_unit_of_work,
    require_company_access,
)
from waste_access.domain.base import to_naive_utc
from waste_access.domain.entities import PermissionSet, UserRole

router = APIRouter(prefix="/companies/{company_id}/access", tags=["Company Access"])


@router.get("", status_code=status.HTTP_200_OK, response_model=CompanyAccessListResponse)
async def list_company_access(
    company_id: UUID,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Effective grants on the company. Platform admins or manage_users on it."""
    result = await ListCompanyAccessUseCase(uow).execute(actor, company_id)
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


@router.get("/me", status_code=status.HTTP_200_OK, response_model=CompanyGrantView)
async def my_company_access(
    company_id: UUID,
    actor: AccessContext = Depends(require_company_access()),
):
    """Caller's own role and permissions on the company"""
    return actor.grant_for(company_id)


class GrantAccessRequest(BaseModel):
    user_id: UUID
    role: UserRole
    permissions: Optional[PermissionSet] = Field(
        None, description="Defaults to the role's permissions"
    )
    expires_at: Optional[datetime] = None


@router.post("", status_code=status.HTTP_200_OK, response_model=CompanyAccessInfo)
async def grant_company_access(
    company_id: UUID,
    body: GrantAccessRequest,
    request: Request,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Grant or re-grant access to a company.

    Raises:
        - 403 Forbidden: Caller lacks manage_users, targets self, or assigns
          super_admin without being one
        - 404 Not Found: Company or user missing
        - 422 Unprocessable Entity: Unknown permission key
    """
    command = GrantAccessCommand(
        user_id=body.user_id,
        company_id=company_id,
        role=body.role,
        permissions=body.permissions,
        expires_at=to_naive_utc(body.expires_at),
    )
    result = await GrantCompanyAccessUseCase(uow, audit).execute(
        actor, command, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


@router.delete("/{user_id}", status_code=status.HTTP_200_OK, response_model=RevokeAccessResponse)
async def revoke_company_access(
    company_id: UUID,
    user_id: UUID,
    request: Request,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    result = await RevokeCompanyAccessUseCase(uow, audit).execute(
        actor, user_id, company_id, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


class ChangeRoleRequest(BaseModel):
    role: UserRole


@router.patch("/{user_id}/role", status_code=status.HTTP_200_OK, response_model=CompanyAccessInfo)
async def change_company_role(
    company_id: UUID,
    user_id: UUID,
    body: ChangeRoleRequest,
    request: Request,
    actor: AccessContext = Depends(authenticate),
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Change the role on a grant; permissions reset to the role defaults"""
    result = await ChangeCompanyRoleUseCase(uow, audit).execute(
        actor, user_id, company_id, body.role, get_request_meta(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value
