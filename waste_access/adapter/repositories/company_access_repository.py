from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import or_, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from waste_access.app.repositories.company_access_repository import ICompanyAccessRepository
from waste_access.domain.base import utcnow
from waste_access.domain.entities import (
    Company,
    CompanyAccessGrant,
    PermissionSet,
    UserRole,
)


def _effective(now: datetime):
    return (
        CompanyAccessGrant.is_active == True,
        or_(CompanyAccessGrant.expires_at.is_(None), CompanyAccessGrant.expires_at > now),
    )


class CompanyAccessRepository(ICompanyAccessRepository):
    """CompanyAccessGrant repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_and_company(
        self, user_id: UUID, company_id: UUID
    ) -> Optional[CompanyAccessGrant]:
        stmt = select(CompanyAccessGrant).where(
            CompanyAccessGrant.user_id == user_id,
            CompanyAccessGrant.company_id == company_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_effective_for_user(
        self, user_id: UUID, now: datetime
    ) -> List[Tuple[CompanyAccessGrant, str]]:
        stmt = (
            select(CompanyAccessGrant, Company.name)
            .join(Company, Company.id == CompanyAccessGrant.company_id)
            .where(CompanyAccessGrant.user_id == user_id, *_effective(now))
            .order_by(Company.name)
        )
        result = await self.session.execute(stmt)
        return [(grant, name) for grant, name in result.all()]

    async def list_effective_for_company(
        self, company_id: UUID, now: datetime
    ) -> List[CompanyAccessGrant]:
        stmt = (
            select(CompanyAccessGrant)
            .where(CompanyAccessGrant.company_id == company_id, *_effective(now))
            .order_by(CompanyAccessGrant.granted_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(
        self,
        user_id: UUID,
        company_id: UUID,
        role: UserRole,
        permissions: PermissionSet,
        granted_by: Optional[UUID],
        expires_at: Optional[datetime],
    ) -> CompanyAccessGrant:
        now = utcnow()
        grant = await self.get_by_user_and_company(user_id, company_id)
        if grant is None:
            grant = CompanyAccessGrant(user_id=user_id, company_id=company_id, role=role)

        grant.role = role
        grant.apply_permissions(permissions)
        grant.granted_by = granted_by
        grant.granted_at = now
        grant.expires_at = expires_at
        grant.is_active = True
        grant.updated_at = now

        self.session.add(grant)
        await self.session.flush()
        await self.session.refresh(grant)
        return grant

    async def update(self, grant: CompanyAccessGrant) -> CompanyAccessGrant:
        grant.updated_at = utcnow()
        self.session.add(grant)
        await self.session.flush()
        await self.session.refresh(grant)
        return grant

    async def deactivate(self, user_id: UUID, company_id: UUID) -> bool:
        stmt = (
            update(CompanyAccessGrant)
            .where(
                CompanyAccessGrant.user_id == user_id,
                CompanyAccessGrant.company_id == company_id,
                CompanyAccessGrant.is_active == True,
            )
            .values(is_active=False, updated_at=utcnow())
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0
