from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from waste_access.domain.entities import Invitation


class IInvitationRepository(ABC):
    """Invitation repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, invitation_id: UUID) -> Optional[Invitation]:
        """Get invitation by ID"""
        pass

    @abstractmethod
    async def get_by_token_hash(self, token_hash: str) -> Optional[Invitation]:
        """Get invitation by the digest of its token"""
        pass

    @abstractmethod
    async def get_pending_by_company_and_email(
        self, company_id: Optional[UUID], email: str
    ) -> Optional[Invitation]:
        """Get pending invitation for an email, platform-level when company_id is None"""
        pass

    @abstractmethod
    async def list_pending_by_email(self, email: str, now: datetime) -> List[Invitation]:
        """Pending, unexpired invitations for an email"""
        pass

    @abstractmethod
    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation"""
        pass

    @abstractmethod
    async def update(self, invitation: Invitation) -> Invitation:
        """Update existing invitation"""
        pass

    @abstractmethod
    async def mark_accepted(
        self, invitation_id: UUID, user_id: UUID, at: datetime
    ) -> bool:
        """
        Transition pending -> accepted.

        Returns False when the row was no longer pending, so two concurrent
        acceptances cannot both succeed.
        """
        pass

    @abstractmethod
    async def expire_pending(self, now: datetime) -> int:
        """Mark pending invitations past expires_at as expired"""
        pass

    @abstractmethod
    async def count_pending(self, now: datetime) -> int:
        pass
