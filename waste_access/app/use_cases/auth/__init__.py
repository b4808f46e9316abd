"""
Authentication Use Cases

Sign up, sign in, sign out and session refresh.
"""

from .sign_up_use_case import SignUpUseCase
from .sign_in_use_case import SignInUseCase
from .sign_out_use_case import SignOutUseCase
from .refresh_session_use_case import RefreshSessionUseCase
from .dtos import (
    SessionTokens,
    SignInCommand,
    SignInResponse,
    SignOutResponse,
    SignUpCommand,
    SignUpResponse,
)

__all__ = [
    # Use Cases
    "SignUpUseCase",
    "SignInUseCase",
    "SignOutUseCase",
    "RefreshSessionUseCase",
    # DTOs - Commands
    "SignUpCommand",
    "SignInCommand",
    # DTOs - Responses
    "SignUpResponse",
    "SignInResponse",
    "SignOutResponse",
    "SessionTokens",
]
