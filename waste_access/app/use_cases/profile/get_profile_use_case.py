from waste_access.app.services.access_context import AccessContext, AccessContextBuilder
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.libs.result import Error, Result, Return

from .dtos import MeResponse, ProfileDetails


class GetProfileUseCase:
    """Full profile of the caller plus their effective company grants"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(self, actor: AccessContext) -> Result[MeResponse]:
        async with self.uow:
            profile = await self.uow.profiles.get_by_id(actor.user_id)
            if profile is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            grants = await AccessContextBuilder(self.uow).load_grants(profile.id)
            return Return.ok(
                MeResponse(user=ProfileDetails.from_entity(profile), companies=list(grants))
            )
