from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from waste_access.app.repositories.session_repository import ISessionRepository
from waste_access.domain.entities import LogoutReason, UserSession


class SessionRepository(ISessionRepository):
    """UserSession repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, session_id: UUID) -> Optional[UserSession]:
        """Get session by ID"""
        stmt = select(UserSession).where(UserSession.id == session_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_refresh_token_hash(self, token_hash: str) -> Optional[UserSession]:
        """
        Find session by the SHA-256 digest of a refresh token.

        Liveness is checked in the use case so it can pick the error code.
        """
        stmt = select(UserSession).where(UserSession.refresh_token_hash == token_hash)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_live_by_user(self, user_id: UUID, now: datetime) -> List[UserSession]:
        stmt = (
            select(UserSession)
            .where(
                UserSession.user_id == user_id,
                UserSession.is_active == True,
                UserSession.expires_at > now,
            )
            .order_by(UserSession.last_activity_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, session_obj: UserSession) -> UserSession:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def update(self, session_obj: UserSession) -> UserSession:
        """Update existing session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def touch(self, session_id: UUID, at: datetime) -> None:
        stmt = (
            update(UserSession)
            .where(UserSession.id == session_id)
            .values(last_activity_at=at)
        )
        await self.session.execute(stmt)
        await self.session.flush()

    async def end(self, session_id: UUID, reason: str, at: datetime) -> bool:
        """End a specific session by ID"""
        stmt = (
            update(UserSession)
            .where(UserSession.id == session_id, UserSession.is_active == True)
            .values(is_active=False, logout_at=at, logout_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def end_all_for_user(
        self,
        user_id: UUID,
        reason: str,
        at: datetime,
        except_session_id: Optional[UUID] = None,
    ) -> int:
        """End all active sessions for a user, optionally keeping one"""
        stmt = update(UserSession).where(
            UserSession.user_id == user_id, UserSession.is_active == True
        )
        if except_session_id is not None:
            stmt = stmt.where(UserSession.id != except_session_id)
        stmt = stmt.values(is_active=False, logout_at=at, logout_reason=reason)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def expire_stale(self, now: datetime) -> int:
        stmt = (
            update(UserSession)
            .where(UserSession.is_active == True, UserSession.expires_at <= now)
            .values(
                is_active=False,
                logout_at=now,
                logout_reason=LogoutReason.expired.value,
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def delete_inactive_before(self, cutoff: datetime) -> int:
        stmt = delete(UserSession).where(
            UserSession.is_active == False, UserSession.logout_at < cutoff
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def count_live(self, now: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(UserSession)
            .where(UserSession.is_active == True, UserSession.expires_at > now)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_stale(self, now: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(UserSession)
            .where(UserSession.is_active == True, UserSession.expires_at <= now)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()
