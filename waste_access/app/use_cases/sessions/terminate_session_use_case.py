from uuid import UUID

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction, LogoutReason
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import TerminateSessionsResponse


class TerminateSessionUseCase:
    """
    End one session.

    Business Rules:
    - Users may end their own sessions (reason user_logout)
    - Platform admins may end anyone's (reason admin_logout)
    - Sessions of other users are reported as not found to non-admins
    """

    def __init__(self, uow: UnitOfWork, audit: AuditRecorder):
        self.uow = uow
        self.audit = audit

    async def execute(
        self, actor: AccessContext, session_id: UUID, meta: RequestMeta
    ) -> Result[TerminateSessionsResponse]:
        async with self.uow:
            session = await self.uow.sessions.get_by_id(session_id)
            own = session is not None and session.user_id == actor.user_id
            if session is None or not (own or actor.is_platform_admin):
                return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))

            reason = LogoutReason.user_logout if own else LogoutReason.admin_logout
            owner_id = session.user_id
            ended = await self.uow.sessions.end(session_id, reason.value, utcnow())
            if ended:
                await self.audit.record(
                    AuditEvent.build(
                        AuditAction.session_terminated,
                        "user_sessions",
                        session_id,
                        user_id=actor.user_id,
                        session_id=actor.session_id,
                        meta=meta,
                        metadata={"owner_id": str(owner_id), "reason": reason.value},
                    ),
                    self.uow,
                )
            await self.uow.commit()

        return Return.ok(
            TerminateSessionsResponse(status="terminated", sessions_ended=int(ended))
        )
