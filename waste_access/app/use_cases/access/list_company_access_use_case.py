from uuid import UUID

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.libs.result import Result, Return

from .dtos import CompanyAccessInfo, CompanyAccessListResponse
from .policy import can_manage_company, manage_users_denied


class ListCompanyAccessUseCase:
    """Effective grants on a company, for platform admins and its user managers"""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self, actor: AccessContext, company_id: UUID
    ) -> Result[CompanyAccessListResponse]:
        now = utcnow()
        async with self.uow:
            if not await can_manage_company(self.uow, actor, company_id, now):
                return Return.err(manage_users_denied(company_id))
            grants = await self.uow.company_access.list_effective_for_company(company_id, now)
            items = [CompanyAccessInfo.from_entity(g) for g in grants]

        return Return.ok(CompanyAccessListResponse(company_id=company_id, grants=items))
