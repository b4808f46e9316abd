import base64
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from waste_access.app.repositories.audit_log_repository import (
    AuditLogFilter,
    IAuditLogRepository,
)
from waste_access.domain.entities import AuditLogEntry


class AuditLogRepository(IAuditLogRepository):
    """AuditLogEntry repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Insert an audit row (immutable)"""
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def list(
        self, filters: AuditLogFilter, limit: int = 50, cursor: Optional[str] = None
    ) -> Tuple[List[AuditLogEntry], Optional[str]]:
        """
        List audit rows with cursor-based pagination.

        Cursor format: base64-encoded ISO timestamp of the last returned row
        """
        stmt = select(AuditLogEntry)

        if filters.user_id is not None:
            stmt = stmt.where(AuditLogEntry.user_id == filters.user_id)
        if filters.action:
            stmt = stmt.where(AuditLogEntry.action == filters.action)
        if filters.resource_type:
            stmt = stmt.where(AuditLogEntry.resource_type == filters.resource_type)
        if filters.success is not None:
            stmt = stmt.where(AuditLogEntry.success == filters.success)
        if filters.since is not None:
            stmt = stmt.where(AuditLogEntry.timestamp >= filters.since)
        if filters.until is not None:
            stmt = stmt.where(AuditLogEntry.timestamp <= filters.until)

        if cursor:
            try:
                cursor_timestamp_str = base64.b64decode(cursor).decode("utf-8")
                cursor_timestamp = datetime.fromisoformat(cursor_timestamp_str)
                stmt = stmt.where(AuditLogEntry.timestamp < cursor_timestamp)
            except (ValueError, TypeError):
                # Invalid cursor, ignore and return from beginning
                pass

        stmt = stmt.order_by(AuditLogEntry.timestamp.desc()).limit(limit + 1)

        result = await self.session.execute(stmt)
        entries = list(result.scalars().all())

        has_more = len(entries) > limit
        if has_more:
            entries = entries[:limit]

        next_cursor = None
        if has_more and entries:
            cursor_timestamp_str = entries[-1].timestamp.isoformat()
            next_cursor = base64.b64encode(cursor_timestamp_str.encode("utf-8")).decode("utf-8")

        return entries, next_cursor

    async def count_since(self, since: datetime, action: Optional[str] = None) -> int:
        stmt = (
            select(func.count())
            .select_from(AuditLogEntry)
            .where(AuditLogEntry.timestamp >= since)
        )
        if action:
            stmt = stmt.where(AuditLogEntry.action == action)
        result = await self.session.execute(stmt)
        return result.scalar_one()
