"""
Session Use Cases

Listing and ending sessions.
"""

from .list_sessions_use_case import ListSessionsUseCase
from .terminate_session_use_case import TerminateSessionUseCase
from .terminate_all_sessions_use_case import TerminateAllSessionsUseCase
from .dtos import SessionInfo, SessionListResponse, TerminateSessionsResponse

__all__ = [
    "ListSessionsUseCase",
    "TerminateSessionUseCase",
    "TerminateAllSessionsUseCase",
    "SessionInfo",
    "SessionListResponse",
    "TerminateSessionsResponse",
]
