from uuid import UUID

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction, UserRole, default_permissions
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import CompanyAccessInfo, grant_snapshot
from .policy import (
    CANNOT_MODIFY_SELF,
    SUPER_ADMIN_REQUIRED,
    can_manage_company,
    manage_users_denied,
    may_assign_role,
)


class ChangeCompanyRoleUseCase:
    """
    Use case for changing a user's role on a company.

    Business Rules:
    - Same granter rules as granting
    - Grant must be effective
    - Permissions are reset to the new role's defaults
    - Audited with before/after role and permissions
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self,
        actor: AccessContext,
        user_id: UUID,
        company_id: UUID,
        new_role: UserRole,
        meta: RequestMeta,
    ) -> Result[CompanyAccessInfo]:
        if user_id == actor.user_id:
            return Return.err(CANNOT_MODIFY_SELF)
        if not may_assign_role(actor, new_role):
            return Return.err(SUPER_ADMIN_REQUIRED)

        now = utcnow()
        async with self.uow:
            if not await can_manage_company(self.uow, actor, company_id, now):
                return Return.err(manage_users_denied(company_id))

            grant = await self.uow.company_access.get_by_user_and_company(user_id, company_id)
            if grant is None or not grant.is_effective(now):
                return Return.err(Error("ACCESS_NOT_FOUND", "User has no access to this company"))

            old_values = grant_snapshot(grant)
            grant.role = new_role
            grant.apply_permissions(default_permissions(new_role))
            grant = await self.uow.company_access.update(grant)

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.company_role_changed,
                    "user_company_access",
                    grant.id,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                    old_values=old_values,
                    new_values=grant_snapshot(grant),
                    metadata={"target_user_id": str(user_id), "company_id": str(company_id)},
                ),
                self.uow,
            )

            response = CompanyAccessInfo.from_entity(grant)
            await self.uow.commit()

        return Return.ok(response)
