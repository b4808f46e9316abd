from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from waste_access.domain.entities import UserSession


class ISessionRepository(ABC):
    """UserSession repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, session_id: UUID) -> Optional[UserSession]:
        """Get session by ID"""
        pass

    @abstractmethod
    async def get_by_refresh_token_hash(self, token_hash: str) -> Optional[UserSession]:
        """Get session by SHA-256 digest of its refresh token"""
        pass

    @abstractmethod
    async def list_live_by_user(self, user_id: UUID, now: datetime) -> List[UserSession]:
        """Live sessions for a user, most recent activity first"""
        pass

    @abstractmethod
    async def create(self, session: UserSession) -> UserSession:
        """Create a new session"""
        pass

    @abstractmethod
    async def update(self, session: UserSession) -> UserSession:
        """Update existing session"""
        pass

    @abstractmethod
    async def touch(self, session_id: UUID, at: datetime) -> None:
        """Set last_activity_at"""
        pass

    @abstractmethod
    async def end(self, session_id: UUID, reason: str, at: datetime) -> bool:
        """End an active session. Returns True if it was active."""
        pass

    @abstractmethod
    async def end_all_for_user(
        self,
        user_id: UUID,
        reason: str,
        at: datetime,
        except_session_id: Optional[UUID] = None,
    ) -> int:
        """End every active session of a user. Returns count."""
        pass

    @abstractmethod
    async def expire_stale(self, now: datetime) -> int:
        """Deactivate active sessions past expires_at. Returns count."""
        pass

    @abstractmethod
    async def delete_inactive_before(self, cutoff: datetime) -> int:
        """Delete ended sessions whose logout_at is older than cutoff"""
        pass

    @abstractmethod
    async def count_live(self, now: datetime) -> int:
        pass

    @abstractmethod
    async def count_stale(self, now: datetime) -> int:
        """Sessions still flagged active although expired"""
        pass
