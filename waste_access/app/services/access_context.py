"""
Access Context

Immutable per-request view of the caller: profile, session and effective
company grants.
"""

from datetime import datetime
from typing import List, Optional, Tuple, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import (
    ADMIN_ROLES,
    CompanyAccessGrant,
    Permission,
    PermissionSet,
    UserProfile,
    UserRole,
)


class ProfileView(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str
    full_name: Optional[str] = None
    role: UserRole
    is_active: bool
    email_verified: bool = False
    two_factor_enabled: bool = False
    locked_until: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, profile: UserProfile) -> "ProfileView":
        return cls(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            role=profile.role,
            is_active=profile.is_active,
            email_verified=profile.email_verified,
            two_factor_enabled=profile.two_factor_enabled,
            locked_until=profile.locked_until,
            last_login_at=profile.last_login_at,
        )


class CompanyGrantView(BaseModel):
    model_config = ConfigDict(frozen=True)

    company_id: UUID
    company_name: str
    role: UserRole
    permissions: PermissionSet
    expires_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, grant: CompanyAccessGrant, company_name: str) -> "CompanyGrantView":
        return cls(
            company_id=grant.company_id,
            company_name=company_name,
            role=grant.role,
            permissions=grant.permissions,
            expires_at=grant.expires_at,
        )


class AccessContext(BaseModel):
    """Authenticated caller. Built once per request, never mutated."""

    model_config = ConfigDict(frozen=True)

    profile: ProfileView
    session_id: UUID
    grants: Tuple[CompanyGrantView, ...] = ()

    @property
    def user_id(self) -> UUID:
        return self.profile.id

    @property
    def role(self) -> UserRole:
        return self.profile.role

    @property
    def is_platform_admin(self) -> bool:
        return self.profile.is_active and self.profile.role in ADMIN_ROLES

    @property
    def is_super_admin(self) -> bool:
        return self.profile.is_active and self.profile.role == UserRole.super_admin

    @property
    def company_ids(self) -> List[UUID]:
        return [g.company_id for g in self.grants]

    def grant_for(self, company_id: UUID) -> Optional[CompanyGrantView]:
        for grant in self.grants:
            if grant.company_id == company_id:
                return grant
        return None

    def has_company_access(self, company_id: UUID) -> bool:
        return self.grant_for(company_id) is not None

    def has_permission(self, company_id: UUID, permission: Union[Permission, str]) -> bool:
        grant = self.grant_for(company_id)
        return grant is not None and grant.permissions.allows(permission)


class AccessContextBuilder:
    """
    Assembles an AccessContext from the store.

    The caller owns the unit of work: build() must run inside an entered
    `async with uow` block.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def load_grants(
        self, user_id: UUID, now: Optional[datetime] = None
    ) -> Tuple[CompanyGrantView, ...]:
        rows = await self.uow.company_access.list_effective_for_user(user_id, now or utcnow())
        return tuple(CompanyGrantView.from_entity(grant, name) for grant, name in rows)

    async def build(
        self, user_id: UUID, session_id: UUID, now: Optional[datetime] = None
    ) -> Optional[AccessContext]:
        """Returns None when the profile does not exist"""
        profile = await self.uow.profiles.get_by_id(user_id)
        if profile is None:
            return None

        grants = await self.load_grants(user_id, now)
        return AccessContext(
            profile=ProfileView.from_entity(profile),
            session_id=session_id,
            grants=grants,
        )
