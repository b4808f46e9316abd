"""
Profile Use Cases

Self-service operations on the caller's own account.
"""

from .get_profile_use_case import GetProfileUseCase
from .update_profile_use_case import UpdateProfileUseCase
from .change_password_use_case import ChangePasswordUseCase
from .enable_two_factor_use_case import EnableTwoFactorUseCase
from .dtos import (
    ChangePasswordResponse,
    MeResponse,
    ProfileDetails,
    TwoFactorSetupResponse,
    UpdateProfileCommand,
)

__all__ = [
    "GetProfileUseCase",
    "UpdateProfileUseCase",
    "ChangePasswordUseCase",
    "EnableTwoFactorUseCase",
    "ChangePasswordResponse",
    "MeResponse",
    "ProfileDetails",
    "TwoFactorSetupResponse",
    "UpdateProfileCommand",
]
