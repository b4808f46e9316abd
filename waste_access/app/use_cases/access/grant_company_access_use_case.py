"""
Grant Company Access Use Case

Creates or overwrites the (user, company) grant.
"""

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction, default_permissions
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import CompanyAccessInfo, GrantAccessCommand, grant_snapshot
from .policy import (
    CANNOT_MODIFY_SELF,
    SUPER_ADMIN_REQUIRED,
    can_manage_company,
    manage_users_denied,
    may_assign_role,
)


class GrantCompanyAccessUseCase:
    """
    Use case for granting company access.

    Business Rules:
    - Granter is a platform admin or holds manage_users on the company
    - Only super admins may grant the super_admin role
    - Nobody changes their own grant
    - Omitted permissions fall back to the role defaults
    - Re-granting reactivates and overwrites the existing row
    - Audited once with before/after values, atomically with the upsert
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self, actor: AccessContext, command: GrantAccessCommand, meta: RequestMeta
    ) -> Result[CompanyAccessInfo]:
        if command.user_id == actor.user_id:
            return Return.err(CANNOT_MODIFY_SELF)
        if not may_assign_role(actor, command.role):
            return Return.err(SUPER_ADMIN_REQUIRED)

        now = utcnow()
        if command.expires_at is not None and command.expires_at <= now:
            return Return.err(Error("INVALID_EXPIRY", "expires_at must be in the future"))

        async with self.uow:
            if not await can_manage_company(self.uow, actor, command.company_id, now):
                return Return.err(manage_users_denied(command.company_id))

            company = await self.uow.companies.get_by_id(command.company_id)
            if company is None:
                return Return.err(Error("COMPANY_NOT_FOUND", "Company not found"))

            target = await self.uow.profiles.get_by_id(command.user_id)
            if target is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            existing = await self.uow.company_access.get_by_user_and_company(
                command.user_id, command.company_id
            )
            old_values = grant_snapshot(existing) if existing else None

            permissions = command.permissions or default_permissions(command.role)
            grant = await self.uow.company_access.upsert(
                user_id=command.user_id,
                company_id=command.company_id,
                role=command.role,
                permissions=permissions,
                granted_by=actor.user_id,
                expires_at=command.expires_at,
            )

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.company_access_granted,
                    "user_company_access",
                    grant.id,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                    old_values=old_values,
                    new_values=grant_snapshot(grant),
                    metadata={
                        "target_user_id": str(command.user_id),
                        "company_id": str(command.company_id),
                    },
                ),
                self.uow,
            )

            response = CompanyAccessInfo.from_entity(grant)
            await self.uow.commit()

        return Return.ok(response)
