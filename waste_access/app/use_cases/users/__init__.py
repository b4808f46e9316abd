"""
User Administration Use Cases

Operator actions on other users' accounts.
"""

from .unlock_account_use_case import UnlockAccountUseCase
from .set_user_active_use_case import SetUserActiveUseCase
from .dtos import AccountStatusResponse

__all__ = [
    "UnlockAccountUseCase",
    "SetUserActiveUseCase",
    "AccountStatusResponse",
]
