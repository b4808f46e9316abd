"""
Admin API Routes - System Administration Endpoints

These endpoints are for operators and scheduled jobs.
Authentication is via Admin API Key, not user tokens.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from waste_access.api.error import ClientError, to_http_error
from waste_access.api.utils.admin_auth import verify_admin_api_key
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.auth_policy import AuthPolicy
from waste_access.app.services.security_guard import SecurityGuard
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.app.use_cases.companies import CompanyInfo, CreateCompanyUseCase
from waste_access.app.use_cases.maintenance import (
    CleanupExpiredDataUseCase,
    CleanupReport,
    SecurityReport,
    SecurityReportUseCase,
)
from waste_access.depends import (
    get_audit_recorder,
    get_auth_policy,
    get_request_meta,
    get_security_guard,
    get_unit_of_work,
)
from waste_access.libs.result import Error

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin", tags=["Admin"], dependencies=[Depends(verify_admin_api_key)]
)


class CreateCompanyRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    id: Optional[UUID] = Field(None, description="Reuse the dashboard's company id")


@router.post("/companies", status_code=status.HTTP_201_CREATED, response_model=CompanyInfo)
async def create_company(
    body: CreateCompanyRequest,
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Register a company that access can be granted on.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
        - 409 Conflict: COMPANY_ALREADY_EXISTS
    """
    result = await CreateCompanyUseCase(uow, audit).execute(
        body.name, get_request_meta(request), company_id=body.id
    )
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


class MaintenanceResponse(BaseModel):
    report: CleanupReport
    limiter_keys_swept: int


@router.post(
    "/maintenance/cleanup", status_code=status.HTTP_200_OK, response_model=MaintenanceResponse
)
async def cleanup_expired_data(
    uow: UnitOfWork = Depends(get_unit_of_work),
    policy: AuthPolicy = Depends(get_auth_policy),
    guard: SecurityGuard = Depends(get_security_guard),
):
    """
    Expire sessions and invitations, purge old sessions, clear elapsed locks
    and drop idle rate limiter state. Meant to be called on a schedule.
    """
    result = await CleanupExpiredDataUseCase(uow, policy).execute()
    if result.is_err():
        raise to_http_error(result.error)

    swept = guard.sweep()
    logger.info("Maintenance cleanup done: %s, limiter keys swept=%d", result.value, swept)
    return MaintenanceResponse(report=result.value, limiter_keys_swept=swept)


@router.get("/security/report", status_code=status.HTTP_200_OK, response_model=SecurityReport)
async def security_report(
    uow: UnitOfWork = Depends(get_unit_of_work),
    policy: AuthPolicy = Depends(get_auth_policy),
    guard: SecurityGuard = Depends(get_security_guard),
):
    result = await SecurityReportUseCase(uow, policy).execute(guard.brute_force.suspicious_ips())
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


class ClearSuspiciousIpResponse(BaseModel):
    ip: str
    status: str


@router.delete(
    "/security/suspicious-ips/{ip}",
    status_code=status.HTTP_200_OK,
    response_model=ClearSuspiciousIpResponse,
)
async def clear_suspicious_ip(
    ip: str,
    guard: SecurityGuard = Depends(get_security_guard),
):
    """
    Lift a brute force block on an IP.

    Raises:
        - 404 Not Found: IP_NOT_SUSPICIOUS
    """
    if not guard.brute_force.clear_suspicious(ip):
        raise ClientError(
            Error("IP_NOT_SUSPICIOUS", "IP is not flagged as suspicious"),
            status_code=status.HTTP_404_NOT_FOUND,
        )
    logger.warning("Suspicious IP cleared by operator: %s", ip)
    return ClearSuspiciousIpResponse(ip=ip, status="cleared")
