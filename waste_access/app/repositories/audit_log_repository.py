from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from waste_access.domain.entities import AuditLogEntry


@dataclass
class AuditLogFilter:
    user_id: Optional[UUID] = None
    action: Optional[str] = None
    resource_type: Optional[str] = None
    success: Optional[bool] = None
    since: Optional[datetime] = None
    until: Optional[datetime] = None


class IAuditLogRepository(ABC):
    """AuditLogEntry repository interface - application layer"""

    @abstractmethod
    async def append(self, entry: AuditLogEntry) -> AuditLogEntry:
        """Insert an audit row (immutable)"""
        pass

    @abstractmethod
    async def list(
        self, filters: AuditLogFilter, limit: int = 50, cursor: Optional[str] = None
    ) -> Tuple[List[AuditLogEntry], Optional[str]]:
        """
        List audit rows with cursor-based pagination.

        Returns:
            Tuple of (entries list, next_cursor)
            - entries: ordered by timestamp DESC
            - next_cursor: Cursor for next page, None if no more rows
        """
        pass

    @abstractmethod
    async def count_since(self, since: datetime, action: Optional[str] = None) -> int:
        pass
