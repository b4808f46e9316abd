from typing import Optional
from uuid import UUID

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction, LogoutReason
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import TerminateSessionsResponse


class TerminateAllSessionsUseCase:
    """
    End every session of a user.

    Business Rules:
    - Without user_id: the caller's other sessions; the current one survives
    - With user_id: platform admins only, every session of that user
    - One SESSION_TERMINATED audit row for the whole batch
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self,
        actor: AccessContext,
        meta: RequestMeta,
        user_id: Optional[UUID] = None,
    ) -> Result[TerminateSessionsResponse]:
        target_id = user_id or actor.user_id
        own = target_id == actor.user_id
        if not own and not actor.is_platform_admin:
            return Return.err(Error("ADMIN_REQUIRED", "Admin access required"))

        reason = LogoutReason.user_logout if own else LogoutReason.admin_logout
        async with self.uow:
            ended = await self.uow.sessions.end_all_for_user(
                target_id,
                reason.value,
                utcnow(),
                except_session_id=actor.session_id if own else None,
            )
            await self.audit.record(
                AuditEvent.build(
                    AuditAction.session_terminated,
                    "user_sessions",
                    None,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                    metadata={
                        "owner_id": str(target_id),
                        "reason": reason.value,
                        "sessions_ended": ended,
                    },
                ),
                self.uow,
            )
            await self.uow.commit()

        return Return.ok(TerminateSessionsResponse(status="terminated", sessions_ended=ended))
