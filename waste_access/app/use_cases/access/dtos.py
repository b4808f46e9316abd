"""
Company Access Use Case DTOs (Data Transfer Objects)
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel

from waste_access.domain.entities import CompanyAccessGrant, PermissionSet, UserRole


class GrantAccessCommand(BaseModel):
    user_id: UUID
    company_id: UUID
    role: UserRole
    permissions: Optional[PermissionSet] = None
    expires_at: Optional[datetime] = None


class CompanyAccessInfo(BaseModel):
    id: UUID
    user_id: UUID
    company_id: UUID
    role: UserRole
    permissions: PermissionSet
    granted_by: Optional[UUID] = None
    granted_at: datetime
    expires_at: Optional[datetime] = None
    is_active: bool

    @classmethod
    def from_entity(cls, grant: CompanyAccessGrant) -> "CompanyAccessInfo":
        return cls(
            id=grant.id,
            user_id=grant.user_id,
            company_id=grant.company_id,
            role=grant.role,
            permissions=grant.permissions,
            granted_by=grant.granted_by,
            granted_at=grant.granted_at,
            expires_at=grant.expires_at,
            is_active=grant.is_active,
        )


class CompanyAccessListResponse(BaseModel):
    company_id: UUID
    grants: List[CompanyAccessInfo]


class RevokeAccessResponse(BaseModel):
    status: str


def grant_snapshot(grant: CompanyAccessGrant) -> Dict[str, Any]:
    """Before/after values recorded in the audit log"""
    return {
        "role": grant.role.value,
        "permissions": grant.permissions.model_dump(),
        "is_active": grant.is_active,
        "expires_at": grant.expires_at.isoformat() if grant.expires_at else None,
    }
