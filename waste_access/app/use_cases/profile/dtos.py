"""
Profile Use Case DTOs (Data Transfer Objects)
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from waste_access.app.services.access_context import CompanyGrantView
from waste_access.domain.entities import UserProfile, UserRole

# Fields a user may change on their own profile
EDITABLE_PROFILE_FIELDS = (
    "full_name",
    "username",
    "avatar_url",
    "job_title",
    "department",
    "phone",
    "timezone",
    "language",
)


class UpdateProfileCommand(BaseModel):
    full_name: Optional[str] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    timezone: Optional[str] = None
    language: Optional[str] = None


class ProfileDetails(BaseModel):
    id: UUID
    email: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    phone: Optional[str] = None
    timezone: Optional[str] = None
    language: Optional[str] = None
    role: UserRole
    is_active: bool
    email_verified: bool
    two_factor_enabled: bool
    login_count: int
    last_login_at: Optional[datetime] = None
    password_changed_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, profile: UserProfile) -> "ProfileDetails":
        return cls.model_validate(profile, from_attributes=True)


class MeResponse(BaseModel):
    user: ProfileDetails
    companies: List[CompanyGrantView]


class ChangePasswordResponse(BaseModel):
    status: str
    sessions_ended: int


class TwoFactorSetupResponse(BaseModel):
    secret: str
    otpauth_uri: str
