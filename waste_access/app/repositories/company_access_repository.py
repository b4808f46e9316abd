from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from waste_access.domain.entities import CompanyAccessGrant, PermissionSet, UserRole


class ICompanyAccessRepository(ABC):
    """CompanyAccessGrant repository interface - application layer"""

    @abstractmethod
    async def get_by_user_and_company(
        self, user_id: UUID, company_id: UUID
    ) -> Optional[CompanyAccessGrant]:
        """Get the grant row for a pair, effective or not"""
        pass

    @abstractmethod
    async def list_effective_for_user(
        self, user_id: UUID, now: datetime
    ) -> List[Tuple[CompanyAccessGrant, str]]:
        """
        Effective grants for a user with the company name.

        Returns:
            List of (grant, company_name) ordered by company name
        """
        pass

    @abstractmethod
    async def list_effective_for_company(
        self, company_id: UUID, now: datetime
    ) -> List[CompanyAccessGrant]:
        """Effective grants on a company"""
        pass

    @abstractmethod
    async def upsert(
        self,
        user_id: UUID,
        company_id: UUID,
        role: UserRole,
        permissions: PermissionSet,
        granted_by: Optional[UUID],
        expires_at: Optional[datetime],
    ) -> CompanyAccessGrant:
        """Create the grant or reactivate/overwrite the existing row for the pair"""
        pass

    @abstractmethod
    async def update(self, grant: CompanyAccessGrant) -> CompanyAccessGrant:
        """Update existing grant"""
        pass

    @abstractmethod
    async def deactivate(self, user_id: UUID, company_id: UUID) -> bool:
        """Set is_active=False. Returns True if an active row was changed."""
        pass
