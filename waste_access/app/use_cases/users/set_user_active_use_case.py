from uuid import UUID

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction, LogoutReason, UserRole
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import AccountStatusResponse


class SetUserActiveUseCase:
    """
    Soft (de)activation of an account.

    Business Rules:
    - Platform admins only (enforced at the route)
    - Admins cannot deactivate themselves
    - Only super admins may change a super admin's status
    - Deactivation ends every session (reason account_deactivated)
    - Profiles are never deleted
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self, actor: AccessContext, user_id: UUID, active: bool, meta: RequestMeta
    ) -> Result[AccountStatusResponse]:
        if user_id == actor.user_id:
            return Return.err(
                Error("CANNOT_MODIFY_SELF", "You cannot change your own account status")
            )

        now = utcnow()
        async with self.uow:
            profile = await self.uow.profiles.get_by_id(user_id)
            if profile is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))
            if profile.role == UserRole.super_admin and not actor.is_super_admin:
                return Return.err(
                    Error("SUPER_ADMIN_REQUIRED", "Super admin access required")
                )

            was_active = profile.is_active
            profile.is_active = active
            await self.uow.profiles.update(profile)

            ended = None
            if not active:
                ended = await self.uow.sessions.end_all_for_user(
                    user_id, LogoutReason.account_deactivated.value, now
                )

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.user_activated if active else AuditAction.user_deactivated,
                    "user_profiles",
                    user_id,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                    old_values={"is_active": was_active},
                    new_values={"is_active": active},
                    metadata={"sessions_ended": ended} if ended is not None else None,
                ),
                self.uow,
            )
            response = AccountStatusResponse(
                user_id=user_id,
                is_active=active,
                failed_login_attempts=profile.failed_login_attempts,
                locked=profile.is_locked(now),
                sessions_ended=ended,
            )
            await self.uow.commit()

        return Return.ok(response)
