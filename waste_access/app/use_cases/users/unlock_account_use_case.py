from uuid import UUID

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.entities import AuditAction
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import AccountStatusResponse


class UnlockAccountUseCase:
    """
    Operator reset of a lockout.

    Business Rules:
    - Platform admins only (enforced at the route)
    - Clears locked_until and resets failed_login_attempts to 0
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self, actor: AccessContext, user_id: UUID, meta: RequestMeta
    ) -> Result[AccountStatusResponse]:
        async with self.uow:
            profile = await self.uow.profiles.get_by_id(user_id)
            if profile is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            old_values = {
                "failed_login_attempts": profile.failed_login_attempts,
                "locked_until": profile.locked_until.isoformat() if profile.locked_until else None,
            }
            profile.failed_login_attempts = 0
            profile.locked_until = None
            await self.uow.profiles.update(profile)

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.account_unlocked,
                    "user_profiles",
                    user_id,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                    old_values=old_values,
                    new_values={"failed_login_attempts": 0, "locked_until": None},
                ),
                self.uow,
            )
            response = AccountStatusResponse(
                user_id=user_id,
                is_active=profile.is_active,
                failed_login_attempts=0,
                locked=False,
            )
            await self.uow.commit()

        return Return.ok(response)
