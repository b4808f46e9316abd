"""
Writes the records described in test_data.json straight into the test
database, bypassing the API.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import sessionmaker

from tests.fixtures.json_loader import FixtureData
from waste_access.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from waste_access.app.services.identity_provider import IIdentityProvider
from waste_access.domain.entities import (
    Company,
    PermissionSet,
    UserCredential,
    UserProfile,
    UserRole,
    default_permissions,
)


class DataSeeder:
    def __init__(self, session_factory: sessionmaker, identity_provider: IIdentityProvider):
        self.session_factory = session_factory
        self.identity_provider = identity_provider

    async def user(self, key: str, **overrides) -> UUID:
        data = {**FixtureData.user(key), **overrides}
        async with self.session_factory() as session:
            async with SqlAlchemyUnitOfWork(session) as uow:
                profile = UserProfile(
                    email=data["email"],
                    full_name=data.get("full_name"),
                    role=UserRole(data["role"]),
                    is_active=data.get("is_active", True),
                )
                await uow.profiles.create(profile)
                await uow.credentials.create(
                    UserCredential(
                        user_id=profile.id,
                        password_hash=self.identity_provider.hash_password(data["password"]),
                    )
                )
                user_id = profile.id
                await uow.commit()
        return user_id

    async def company(self, key: str) -> UUID:
        data = FixtureData.company(key)
        async with self.session_factory() as session:
            async with SqlAlchemyUnitOfWork(session) as uow:
                company = await uow.companies.create(Company(name=data["name"]))
                company_id = company.id
                await uow.commit()
        return company_id

    async def grant(
        self,
        user_id: UUID,
        company_id: UUID,
        role: UserRole,
        permissions: Optional[PermissionSet] = None,
        expires_at: Optional[datetime] = None,
    ) -> None:
        async with self.session_factory() as session:
            async with SqlAlchemyUnitOfWork(session) as uow:
                await uow.company_access.upsert(
                    user_id=user_id,
                    company_id=company_id,
                    role=role,
                    permissions=permissions or default_permissions(role),
                    granted_by=None,
                    expires_at=expires_at,
                )
                await uow.commit()

    async def profile(self, user_id: UUID) -> UserProfile:
        async with self.session_factory() as session:
            async with SqlAlchemyUnitOfWork(session) as uow:
                profile = await uow.profiles.get_by_id(user_id)
                session.expunge(profile)
                return profile
