"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for auth domain.
Provides type safety and clear contracts between layers.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from waste_access.app.services.access_context import CompanyGrantView, ProfileView


# ============================================================================
# Command DTOs
# ============================================================================


class SignUpCommand(BaseModel):
    email: str
    password: str
    full_name: Optional[str] = None


class SignInCommand(BaseModel):
    email: str
    password: str


# ============================================================================
# Response DTOs
# ============================================================================


class SignUpResponse(BaseModel):
    """Response for sign up use case"""

    user: ProfileView


class SessionTokens(BaseModel):
    """Token pair issued on sign in and refresh"""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    session_id: str
    access_token_expires_at: datetime
    session_expires_at: datetime


class SignInResponse(BaseModel):
    """Response for sign in use case"""

    tokens: SessionTokens
    user: ProfileView
    companies: List[CompanyGrantView]


class SignOutResponse(BaseModel):
    status: str
