from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction, LogoutReason
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Result, Return

from .dtos import SignOutResponse


class SignOutUseCase:
    """End the caller's current session"""

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(self, actor: AccessContext, meta: RequestMeta) -> Result[SignOutResponse]:
        async with self.uow:
            await self.uow.sessions.end(
                actor.session_id, LogoutReason.user_logout.value, utcnow()
            )
            await self.audit.record(
                AuditEvent.build(
                    AuditAction.user_logout,
                    "user_sessions",
                    actor.session_id,
                    user_id=actor.user_id,
                    session_id=actor.session_id,
                    meta=meta,
                ),
                self.uow,
            )
            await self.uow.commit()

        return Return.ok(SignOutResponse(status="signed_out"))
