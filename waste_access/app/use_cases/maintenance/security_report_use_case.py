"""
Security Report Use Case

Point-in-time counters for the security dashboard.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel

from waste_access.app.services.auth_policy import AuthPolicy
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction
from waste_access.libs.result import Result, Return


class SecurityReport(BaseModel):
    generated_at: datetime
    active_users: int
    locked_accounts: int
    users_with_failed_attempts: int
    failed_logins_24h: int
    live_sessions: int
    stale_sessions: int
    recent_password_changes: int
    two_factor_users: int
    active_admins: int
    pending_invitations: int
    audit_events_24h: int
    suspicious_ips: List[str]


class SecurityReportUseCase:
    def __init__(self, uow: UnitOfWork, policy: AuthPolicy):
        self.uow = uow
        self.policy = policy

    async def execute(
        self, suspicious_ips: List[str], now: Optional[datetime] = None
    ) -> Result[SecurityReport]:
        now = now or utcnow()
        day_ago = now - timedelta(hours=24)
        password_window = now - timedelta(days=self.policy.password_change_report_days)

        async with self.uow:
            report = SecurityReport(
                generated_at=now,
                active_users=await self.uow.profiles.count_active(),
                locked_accounts=await self.uow.profiles.count_locked(now),
                users_with_failed_attempts=await self.uow.profiles.count_with_failed_attempts(),
                failed_logins_24h=await self.uow.audit_logs.count_since(
                    day_ago, AuditAction.user_login_failed.value
                ),
                live_sessions=await self.uow.sessions.count_live(now),
                stale_sessions=await self.uow.sessions.count_stale(now),
                recent_password_changes=await self.uow.profiles.count_password_changed_since(
                    password_window
                ),
                two_factor_users=await self.uow.profiles.count_two_factor_enabled(),
                active_admins=await self.uow.profiles.count_active_admins(),
                pending_invitations=await self.uow.invitations.count_pending(now),
                audit_events_24h=await self.uow.audit_logs.count_since(day_ago),
                suspicious_ips=sorted(suspicious_ips),
            )

        return Return.ok(report)
