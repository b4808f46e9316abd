"""
Session Use Case DTOs (Data Transfer Objects)
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from waste_access.domain.entities import UserSession


class SessionInfo(BaseModel):
    id: UUID
    user_id: UUID
    login_method: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    login_at: datetime
    last_activity_at: datetime
    expires_at: datetime
    current: bool = False

    @classmethod
    def from_entity(cls, session: UserSession, current_session_id: Optional[UUID] = None):
        return cls(
            id=session.id,
            user_id=session.user_id,
            login_method=session.login_method,
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            login_at=session.login_at,
            last_activity_at=session.last_activity_at,
            expires_at=session.expires_at,
            current=session.id == current_session_id,
        )


class SessionListResponse(BaseModel):
    sessions: List[SessionInfo]


class TerminateSessionsResponse(BaseModel):
    """Response for session termination use cases"""

    status: str
    sessions_ended: int
