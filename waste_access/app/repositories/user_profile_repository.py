from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from waste_access.domain.entities import UserProfile


class IUserProfileRepository(ABC):
    """UserProfile repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[UserProfile]:
        """Get profile by ID"""
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[UserProfile]:
        """Get profile by email address"""
        pass

    @abstractmethod
    async def create(self, profile: UserProfile) -> UserProfile:
        """Create a new profile"""
        pass

    @abstractmethod
    async def update(self, profile: UserProfile) -> UserProfile:
        """Update existing profile"""
        pass

    @abstractmethod
    async def reset_elapsed_locks(self, now: datetime) -> int:
        """Clear locks whose locked_until has passed. Returns count."""
        pass

    @abstractmethod
    async def count_active(self) -> int:
        pass

    @abstractmethod
    async def count_locked(self, now: datetime) -> int:
        pass

    @abstractmethod
    async def count_with_failed_attempts(self) -> int:
        pass

    @abstractmethod
    async def count_password_changed_since(self, since: datetime) -> int:
        pass

    @abstractmethod
    async def count_two_factor_enabled(self) -> int:
        pass

    @abstractmethod
    async def count_active_admins(self) -> int:
        pass
