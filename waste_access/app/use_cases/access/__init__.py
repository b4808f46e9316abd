"""
Company Access Use Cases

Granting, revoking and re-roling company access.
"""

from .grant_company_access_use_case import GrantCompanyAccessUseCase
from .revoke_company_access_use_case import RevokeCompanyAccessUseCase
from .change_company_role_use_case import ChangeCompanyRoleUseCase
from .list_company_access_use_case import ListCompanyAccessUseCase
from .dtos import (
    CompanyAccessInfo,
    CompanyAccessListResponse,
    GrantAccessCommand,
    RevokeAccessResponse,
)

__all__ = [
    "GrantCompanyAccessUseCase",
    "RevokeCompanyAccessUseCase",
    "ChangeCompanyRoleUseCase",
    "ListCompanyAccessUseCase",
    "CompanyAccessInfo",
    "CompanyAccessListResponse",
    "GrantAccessCommand",
    "RevokeAccessResponse",
]
