"""
Use Cases

Organized into domain folders:
- auth/: Sign up, sign in, sign out, refresh
- profile/: Self-service account operations
- sessions/: Session listing and termination
- access/: Company access grants
- invitations/: Platform and company invitations
- users/: Operator actions on accounts
- audit/: Audit log listing
- companies/: Company reference rows
- maintenance/: Cleanup and security reporting
"""

from .auth import (
    RefreshSessionUseCase,
    SignInUseCase,
    SignOutUseCase,
    SignUpUseCase,
)
from .profile import (
    ChangePasswordUseCase,
    EnableTwoFactorUseCase,
    GetProfileUseCase,
    UpdateProfileUseCase,
)
from .sessions import (
    ListSessionsUseCase,
    TerminateAllSessionsUseCase,
    TerminateSessionUseCase,
)
from .access import (
    ChangeCompanyRoleUseCase,
    GrantCompanyAccessUseCase,
    ListCompanyAccessUseCase,
    RevokeCompanyAccessUseCase,
)
from .invitations import (
    AcceptInvitationUseCase,
    InviteUserUseCase,
    ListPendingInvitationsUseCase,
    RevokeInvitationUseCase,
)
from .users import SetUserActiveUseCase, UnlockAccountUseCase
from .audit import GetAuditLogsUseCase
from .companies import CreateCompanyUseCase
from .maintenance import CleanupExpiredDataUseCase, SecurityReportUseCase

__all__ = [
    # Auth
    "SignUpUseCase",
    "SignInUseCase",
    "SignOutUseCase",
    "RefreshSessionUseCase",
    # Profile
    "GetProfileUseCase",
    "UpdateProfileUseCase",
    "ChangePasswordUseCase",
    "EnableTwoFactorUseCase",
    # Sessions
    "ListSessionsUseCase",
    "TerminateSessionUseCase",
    "TerminateAllSessionsUseCase",
    # Access
    "GrantCompanyAccessUseCase",
    "RevokeCompanyAccessUseCase",
    "ChangeCompanyRoleUseCase",
    "ListCompanyAccessUseCase",
    # Invitations
    "InviteUserUseCase",
    "AcceptInvitationUseCase",
    "RevokeInvitationUseCase",
    "ListPendingInvitationsUseCase",
    # Users
    "UnlockAccountUseCase",
    "SetUserActiveUseCase",
    # Audit
    "GetAuditLogsUseCase",
    # Companies
    "CreateCompanyUseCase",
    # Maintenance
    "CleanupExpiredDataUseCase",
    "SecurityReportUseCase",
]
