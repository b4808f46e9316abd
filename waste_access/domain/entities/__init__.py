"""
Access Control Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    ADMIN_ROLES,
    AuditAction,
    InvitationStatus,
    LogoutReason,
    Permission,
    UserRole,
)
from .permissions import PermissionSet, ROLE_DEFAULT_PERMISSIONS, default_permissions

# Export all entities
from .user_profile import UserProfile
from .user_credential import UserCredential
from .company import Company
from .company_access import CompanyAccessGrant
from .user_session import UserSession
from .invitation import Invitation
from .audit_log import AuditLogEntry

__all__ = [
    # Enums
    "ADMIN_ROLES",
    "AuditAction",
    "InvitationStatus",
    "LogoutReason",
    "Permission",
    "UserRole",
    # Permissions
    "PermissionSet",
    "ROLE_DEFAULT_PERMISSIONS",
    "default_permissions",
    # Entities
    "UserProfile",
    "UserCredential",
    "Company",
    "CompanyAccessGrant",
    "UserSession",
    "Invitation",
    "AuditLogEntry",
]
