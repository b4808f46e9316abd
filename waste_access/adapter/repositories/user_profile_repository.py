from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from waste_access.app.repositories.user_profile_repository import IUserProfileRepository
from waste_access.domain.base import utcnow
from waste_access.domain.entities import ADMIN_ROLES, UserProfile


class UserProfileRepository(IUserProfileRepository):
    """UserProfile repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: UUID) -> Optional[UserProfile]:
        """Get profile by ID"""
        stmt = select(UserProfile).where(UserProfile.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[UserProfile]:
        """Get profile by email address"""
        stmt = select(UserProfile).where(UserProfile.email == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, profile: UserProfile) -> UserProfile:
        """Create a new profile"""
        profile.email = profile.email.lower()
        self.session.add(profile)
        await self.session.flush()
        await self.session.refresh(profile)
        return profile

    async def update(self, profile: UserProfile) -> UserProfile:
        """Update existing profile"""
        profile.updated_at = utcnow()
        self.session.add(profile)
        await self.session.flush()
        await self.session.refresh(profile)
        return profile

    async def reset_elapsed_locks(self, now: datetime) -> int:
        stmt = (
            update(UserProfile)
            .where(UserProfile.locked_until.is_not(None), UserProfile.locked_until <= now)
            .values(locked_until=None, failed_login_attempts=0, updated_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def _count(self, *conditions) -> int:
        stmt = select(func.count()).select_from(UserProfile).where(*conditions)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_active(self) -> int:
        return await self._count(UserProfile.is_active == True)

    async def count_locked(self, now: datetime) -> int:
        return await self._count(UserProfile.locked_until > now)

    async def count_with_failed_attempts(self) -> int:
        return await self._count(UserProfile.failed_login_attempts > 0)

    async def count_password_changed_since(self, since: datetime) -> int:
        return await self._count(UserProfile.password_changed_at > since)

    async def count_two_factor_enabled(self) -> int:
        return await self._count(UserProfile.two_factor_enabled == True)

    async def count_active_admins(self) -> int:
        return await self._count(
            UserProfile.is_active == True, UserProfile.role.in_(list(ADMIN_ROLES))
        )
