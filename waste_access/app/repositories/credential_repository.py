from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from waste_access.domain.entities import UserCredential


class ICredentialRepository(ABC):
    """UserCredential repository interface - application layer"""

    @abstractmethod
    async def get_by_user_id(self, user_id: UUID) -> Optional[UserCredential]:
        """Get credential row for a user"""
        pass

    @abstractmethod
    async def create(self, credential: UserCredential) -> UserCredential:
        """Create credential row"""
        pass

    @abstractmethod
    async def update(self, credential: UserCredential) -> UserCredential:
        """Update credential row"""
        pass
