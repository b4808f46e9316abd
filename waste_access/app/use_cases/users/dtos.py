"""
User Administration DTOs (Data Transfer Objects)
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class AccountStatusResponse(BaseModel):
    user_id: UUID
    is_active: bool
    failed_login_attempts: int
    locked: bool
    sessions_ended: Optional[int] = None
