"""
Audit API Routes

Read access to the audit trail for platform operators.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from waste_access.api.error import to_http_error
from waste_access.app.repositories.audit_log_repository import AuditLogFilter
from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.security_events import SECURITY_EVENTS_RESOURCE
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.app.use_cases.audit import AuditLogPage, GetAuditLogsUseCase
from waste_access.app.use_cases.audit.get_audit_logs_use_case import MAX_PAGE_SIZE
from waste_access.depends import get_unit_of_work, require_admin, require_super_admin
from waste_access.domain.base import to_naive_utc

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("/logs", status_code=status.HTTP_200_OK, response_model=AuditLogPage)
async def get_audit_logs(
    actor: AccessContext = Depends(require_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
    user_id: Optional[UUID] = Query(None),
    action: Optional[str] = Query(None, description="e.g. USER_LOGIN"),
    resource_type: Optional[str] = Query(None),
    success: Optional[bool] = Query(None),
    since: Optional[datetime] = Query(None),
    until: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE, description="Maximum number of rows"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
):
    """
    Audit rows, newest first.

    Returns:
        - items: audit rows
        - next_cursor: Cursor for next page (null if no more rows)

    Raises:
        - 401 Unauthorized: Missing or invalid token
        - 403 Forbidden: Caller is not a platform admin
    """
    filters = AuditLogFilter(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        success=success,
        since=to_naive_utc(since),
        until=to_naive_utc(until),
    )
    result = await GetAuditLogsUseCase(uow).execute(actor, filters, limit=limit, cursor=cursor)
    if result.is_err():
        raise to_http_error(result.error)
    return result.value


@router.get("/security-events", status_code=status.HTTP_200_OK, response_model=AuditLogPage)
async def get_security_events(
    actor: AccessContext = Depends(require_super_admin),
    uow: UnitOfWork = Depends(get_unit_of_work),
    since: Optional[datetime] = Query(None),
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    cursor: Optional[str] = Query(None),
):
    """Rate limit rejections, brute force detections and blocked IPs"""
    filters = AuditLogFilter(resource_type=SECURITY_EVENTS_RESOURCE, since=to_naive_utc(since))
    result = await GetAuditLogsUseCase(uow).execute(actor, filters, limit=limit, cursor=cursor)
    if result.is_err():
        raise to_http_error(result.error)
    return result.value
