from typing import Optional
from uuid import UUID

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.libs.result import Error, Result, Return

from .dtos import SessionInfo, SessionListResponse


class ListSessionsUseCase:
    """
    List live sessions.

    Business Rules:
    - Users see their own sessions
    - Platform admins may list any user's sessions
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, actor: AccessContext, user_id: Optional[UUID] = None
    ) -> Result[SessionListResponse]:
        target_id = user_id or actor.user_id
        if target_id != actor.user_id and not actor.is_platform_admin:
            return Return.err(Error("ADMIN_REQUIRED", "Admin access required"))

        async with self.uow:
            sessions = await self.uow.sessions.list_live_by_user(target_id, utcnow())
            items = [SessionInfo.from_entity(s, actor.session_id) for s in sessions]

        return Return.ok(SessionListResponse(sessions=items))
