"""
Permission Resolver

Point reads against the grant store. Expired or inactive grants count as
no grant; platform roles never imply company access.
"""

from typing import Optional, Tuple, Union
from uuid import UUID

from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import Permission, PermissionSet, UserRole


class PermissionResolver:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def _effective_grant(
        self, user_id: UUID, company_id: UUID
    ) -> Optional[Tuple[UserRole, PermissionSet]]:
        async with self.uow:
            grant = await self.uow.company_access.get_by_user_and_company(user_id, company_id)
            if grant is None or not grant.is_effective(utcnow()):
                return None
            return grant.role, grant.permissions

    async def has_company_access(self, user_id: UUID, company_id: UUID) -> bool:
        return await self._effective_grant(user_id, company_id) is not None

    async def has_permission(
        self, user_id: UUID, company_id: UUID, permission: Union[Permission, str]
    ) -> bool:
        try:
            permission = Permission(permission)
        except ValueError:
            return False
        grant = await self._effective_grant(user_id, company_id)
        return grant is not None and grant[1].allows(permission)

    async def role_for(self, user_id: UUID, company_id: UUID) -> Optional[UserRole]:
        grant = await self._effective_grant(user_id, company_id)
        return grant[0] if grant is not None else None

    async def _platform_role(self, user_id: UUID) -> Optional[UserRole]:
        async with self.uow:
            profile = await self.uow.profiles.get_by_id(user_id)
            if profile is None or not profile.is_active:
                return None
            return profile.role

    async def is_admin(self, user_id: UUID) -> bool:
        return await self._platform_role(user_id) in (UserRole.admin, UserRole.super_admin)

    async def is_super_admin(self, user_id: UUID) -> bool:
        return await self._platform_role(user_id) == UserRole.super_admin
