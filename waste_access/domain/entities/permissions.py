"""
Permission Set

Fixed-shape permission record carried by grants and invitations.
"""

from typing import Dict, List, Union

from pydantic import BaseModel, ConfigDict

from .enums import Permission, UserRole


class PermissionSet(BaseModel):
    """
    One boolean per Permission member.

    Unknown keys are rejected, so a misspelled permission fails at the
    boundary instead of silently evaluating to False later.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    read: bool = False
    write: bool = False
    delete: bool = False
    export: bool = False
    manage_users: bool = False
    view_financials: bool = False
    view_opportunities: bool = False
    manage_opportunities: bool = False

    def allows(self, permission: Union[Permission, str]) -> bool:
        try:
            permission = Permission(permission)
        except ValueError:
            return False
        return bool(getattr(self, permission.value))

    def granted(self) -> List[str]:
        return [p.value for p in Permission if getattr(self, p.value)]

    @classmethod
    def of(cls, *permissions: Permission) -> "PermissionSet":
        return cls(**{Permission(p).value: True for p in permissions})

    @classmethod
    def all(cls) -> "PermissionSet":
        return cls.of(*Permission)


ROLE_DEFAULT_PERMISSIONS: Dict[UserRole, PermissionSet] = {
    UserRole.viewer: PermissionSet.of(Permission.read),
    UserRole.analyst: PermissionSet.of(
        Permission.read, Permission.export, Permission.view_opportunities
    ),
    UserRole.manager: PermissionSet.of(
        Permission.read,
        Permission.write,
        Permission.export,
        Permission.view_financials,
        Permission.view_opportunities,
        Permission.manage_opportunities,
    ),
    UserRole.admin: PermissionSet.all(),
    UserRole.super_admin: PermissionSet.all(),
}


def default_permissions(role: UserRole) -> PermissionSet:
    return ROLE_DEFAULT_PERMISSIONS[UserRole(role)]
