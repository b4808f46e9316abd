from typing import Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from waste_access.app.repositories.company_repository import ICompanyRepository
from waste_access.domain.entities import Company


class CompanyRepository(ICompanyRepository):
    """Company repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, company_id: UUID) -> Optional[Company]:
        """Get company by ID"""
        stmt = select(Company).where(Company.id == company_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, company: Company) -> Company:
        """Create a company reference row"""
        self.session.add(company)
        await self.session.flush()
        await self.session.refresh(company)
        return company
