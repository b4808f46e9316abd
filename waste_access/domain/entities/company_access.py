"""
CompanyAccessGrant Entity

Links a user to a company with a role and a fixed permission set.
"""

from datetime import datetime
from typing import Optional, Union
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from ..base import utcnow
from .enums import Permission, UserRole
from .permissions import PermissionSet


class CompanyAccessGrant(SQLModel, table=True):
    """
    CompanyAccessGrant entity - (user, company, role) plus permissions.

    Business Rules:
    - (user_id, company_id) is unique; re-granting updates the row
    - Effective iff is_active and (expires_at is null or in the future)
    - Revoked by setting is_active=False, never deleted
    """

    __tablename__ = "user_company_access"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="user_profiles.id", nullable=False, index=True)
    company_id: UUID = Field(foreign_key="companies.id", nullable=False, index=True)

    role: UserRole = Field(nullable=False)

    can_read: bool = Field(default=False)
    can_write: bool = Field(default=False)
    can_delete: bool = Field(default=False)
    can_export: bool = Field(default=False)
    can_manage_users: bool = Field(default=False)
    can_view_financials: bool = Field(default=False)
    can_view_opportunities: bool = Field(default=False)
    can_manage_opportunities: bool = Field(default=False)

    granted_by: Optional[UUID] = Field(default=None, foreign_key="user_profiles.id")
    granted_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    is_active: bool = Field(default=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_company_access_user_company", "user_id", "company_id", unique=True),
        Index("idx_company_access_active", "is_active"),
    )

    def is_effective(self, now: datetime) -> bool:
        if not self.is_active:
            return False
        return self.expires_at is None or self.expires_at > now

    @property
    def permissions(self) -> PermissionSet:
        return PermissionSet(
            **{p.value: bool(getattr(self, f"can_{p.value}")) for p in Permission}
        )

    def apply_permissions(self, permissions: PermissionSet) -> None:
        for p in Permission:
            setattr(self, f"can_{p.value}", getattr(permissions, p.value))

    def allows(self, permission: Union[Permission, str]) -> bool:
        return self.permissions.allows(permission)
