"""
Get Audit Logs Use Case

Lists audit rows for platform administrators with pagination.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel

from waste_access.app.repositories.audit_log_repository import AuditLogFilter
from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.libs.result import Error, Result, Return

MAX_PAGE_SIZE = 200


class AuditLogItem(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    session_id: Optional[UUID] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    success: bool
    timestamp: datetime


class AuditLogPage(BaseModel):
    items: List[AuditLogItem]
    next_cursor: Optional[str] = None


class GetAuditLogsUseCase:
    """
    Use case for retrieving audit log rows.

    Business Rules:
    - Caller must be an active platform admin
    - Filters: user_id, action, resource_type, success, since, until
    - Results ordered by newest first
    - Supports cursor-based pagination
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        actor: AccessContext,
        filters: AuditLogFilter,
        limit: int = 50,
        cursor: Optional[str] = None,
    ) -> Result[AuditLogPage]:
        if not actor.is_platform_admin:
            return Return.err(Error("ADMIN_REQUIRED", "Admin access required"))

        limit = max(1, min(limit, MAX_PAGE_SIZE))
        async with self.uow:
            entries, next_cursor = await self.uow.audit_logs.list(
                filters, limit=limit, cursor=cursor
            )
            items = [
                AuditLogItem(
                    id=e.id,
                    user_id=e.user_id,
                    session_id=e.session_id,
                    action=e.action,
                    resource_type=e.resource_type,
                    resource_id=e.resource_id,
                    old_values=e.old_values,
                    new_values=e.new_values,
                    metadata=e.event_metadata,
                    ip_address=e.ip_address,
                    user_agent=e.user_agent,
                    success=e.success,
                    timestamp=e.timestamp,
                )
                for e in entries
            ]

        return Return.ok(AuditLogPage(items=items, next_cursor=next_cursor))
