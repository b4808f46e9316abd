"""
Who may manage grants on a company.
"""

from datetime import datetime
from uuid import UUID

from waste_access.app.services.access_context import AccessContext
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.entities import Permission, UserRole
from waste_access.libs.result import Error

CANNOT_MODIFY_SELF = Error("CANNOT_MODIFY_SELF", "You cannot change your own company access")
SUPER_ADMIN_REQUIRED = Error(
    "SUPER_ADMIN_REQUIRED", "Only super admins can assign the super_admin role"
)


def manage_users_denied(company_id: UUID) -> Error:
    return Error(
        "PERMISSION_DENIED",
        "Permission denied",
        {"requiredPermission": Permission.manage_users.value, "companyId": str(company_id)},
    )


async def can_manage_company(
    uow: UnitOfWork, actor: AccessContext, company_id: UUID, now: datetime
) -> bool:
    """Platform admins, or holders of an effective manage_users grant on the company"""
    if actor.is_platform_admin:
        return True
    grant = await uow.company_access.get_by_user_and_company(actor.user_id, company_id)
    return (
        grant is not None
        and grant.is_effective(now)
        and grant.allows(Permission.manage_users)
    )


def may_assign_role(actor: AccessContext, role: UserRole) -> bool:
    return role != UserRole.super_admin or actor.is_super_admin
