"""
Cleanup Expired Data Use Case

Periodic housekeeping for sessions, invitations and lockouts.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel

from waste_access.app.services.auth_policy import AuthPolicy
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.libs.result import Result, Return

logger = logging.getLogger(__name__)


class CleanupReport(BaseModel):
    expired_sessions: int
    deleted_sessions: int
    expired_invitations: int
    unlocked_accounts: int


class CleanupExpiredDataUseCase:
    """
    Business Rules:
    - Active sessions past expires_at are ended with reason expired
    - Ended sessions older than the retention window are deleted
    - Pending invitations past expires_at become expired
    - Locks whose locked_until has passed are cleared with their counter
    - Audit rows are never touched
    """

    def __init__(self, uow: UnitOfWork, policy: AuthPolicy):
        self.uow = uow
        self.policy = policy

    async def execute(self, now: Optional[datetime] = None) -> Result[CleanupReport]:
        now = now or utcnow()
        cutoff = now - timedelta(days=self.policy.inactive_session_retention_days)

        async with self.uow:
            report = CleanupReport(
                expired_sessions=await self.uow.sessions.expire_stale(now),
                deleted_sessions=await self.uow.sessions.delete_inactive_before(cutoff),
                expired_invitations=await self.uow.invitations.expire_pending(now),
                unlocked_accounts=await self.uow.profiles.reset_elapsed_locks(now),
            )
            await self.uow.commit()

        logger.info("Expired data cleanup finished: %s", report.model_dump())
        return Return.ok(report)
