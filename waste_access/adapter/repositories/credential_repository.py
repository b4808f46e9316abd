from typing import Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from waste_access.app.repositories.credential_repository import ICredentialRepository
from waste_access.domain.entities import UserCredential


class CredentialRepository(ICredentialRepository):
    """UserCredential repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id(self, user_id: UUID) -> Optional[UserCredential]:
        stmt = select(UserCredential).where(UserCredential.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, credential: UserCredential) -> UserCredential:
        self.session.add(credential)
        await self.session.flush()
        return credential

    async def update(self, credential: UserCredential) -> UserCredential:
        self.session.add(credential)
        await self.session.flush()
        return credential
