from uuid import UUID

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import RevokeAccessResponse, grant_snapshot
from .policy import CANNOT_MODIFY_SELF, can_manage_company, manage_users_denied


class RevokeCompanyAccessUseCase:
    """
    Use case for revoking company access.

    Business Rules:
    - Same granter rules as granting
    - Only an effective grant can be revoked (ACCESS_NOT_FOUND otherwise)
    - The row is deactivated, never deleted
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self, actor: AccessContext, user_id: UUID, company_id: UUID, meta: RequestMeta
    ) -> Result[RevokeAccessResponse]:
        if user_id == actor.user_id:
            return Return.err(CANNOT_MODIFY_SELF)

        now = utcnow()
        async with self.uow:
            if not await can_manage_company(self.uow, actor, company_id, now):
                return Return.err(manage_users_denied(company_id))

            grant = await self.uow.company_access.get_by_user_and_company(user_id, company_id)
            if grant is None or not grant.is_effective(now):
                return Return.err(Error("ACCESS_NOT_FOUND", "User has no access to this company"))

            grant_id = grant.id
            old_values = grant_snapshot(grant)
            await self.uow.company_access.deactivate(user_id, company_id)

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.company_access_revoked,
                    "user_company_access",
                    grant_id,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                    old_values=old_values,
                    new_values={**old_values, "is_active": False},
                    metadata={"target_user_id": str(user_id), "company_id": str(company_id)},
                ),
                self.uow,
            )
            await self.uow.commit()

        return Return.ok(RevokeAccessResponse(status="revoked"))
