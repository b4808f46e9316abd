from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.libs.result import Result, Return

from .dtos import InvitationInfo, PendingInvitationsResponse


class ListPendingInvitationsUseCase:
    """Pending, unexpired invitations addressed to the caller's email"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, actor: AccessContext) -> Result[PendingInvitationsResponse]:
        async with self.uow:
            invitations = await self.uow.invitations.list_pending_by_email(
                actor.profile.email, utcnow()
            )
            items = [InvitationInfo.from_entity(i) for i in invitations]

        return Return.ok(PendingInvitationsResponse(invitations=items))
