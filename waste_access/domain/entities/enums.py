"""
Access Control Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class UserRole(str, Enum):
    """Platform role on a profile, also used as the role of a company grant"""

    super_admin = "super_admin"
    admin = "admin"
    manager = "manager"
    analyst = "analyst"
    viewer = "viewer"


ADMIN_ROLES = frozenset({UserRole.admin, UserRole.super_admin})


class Permission(str, Enum):
    """Closed set of per-company permissions"""

    read = "read"
    write = "write"
    delete = "delete"
    export = "export"
    manage_users = "manage_users"
    view_financials = "view_financials"
    view_opportunities = "view_opportunities"
    manage_opportunities = "manage_opportunities"


class InvitationStatus(str, Enum):
    """Invitation status"""

    pending = "pending"
    accepted = "accepted"
    expired = "expired"
    revoked = "revoked"


class LogoutReason(str, Enum):
    """Why a session stopped being active"""

    user_logout = "user_logout"
    admin_logout = "admin_logout"
    expired = "expired"
    password_changed = "password_changed"
    account_deactivated = "account_deactivated"


class AuditAction(str, Enum):
    """Actions written to the audit log"""

    user_signup = "USER_SIGNUP"
    user_login = "USER_LOGIN"
    user_login_failed = "USER_LOGIN_FAILED"
    user_logout = "USER_LOGOUT"
    session_refreshed = "SESSION_REFRESHED"
    session_terminated = "SESSION_TERMINATED"
    profile_update = "PROFILE_UPDATE"
    password_change = "PASSWORD_CHANGE"
    two_factor_enabled = "TWO_FACTOR_ENABLED"
    company_access_granted = "COMPANY_ACCESS_GRANTED"
    company_access_revoked = "COMPANY_ACCESS_REVOKED"
    company_role_changed = "COMPANY_ROLE_CHANGED"
    user_invited = "USER_INVITED"
    invitation_accepted = "INVITATION_ACCEPTED"
    invitation_revoked = "INVITATION_REVOKED"
    account_unlocked = "ACCOUNT_UNLOCKED"
    user_deactivated = "USER_DEACTIVATED"
    user_activated = "USER_ACTIVATED"
    auth_denied = "AUTH_DENIED"
    permission_denied = "PERMISSION_DENIED"
    company_created = "COMPANY_CREATED"
