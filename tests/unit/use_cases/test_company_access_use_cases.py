from datetime import timedelta
from uuid import uuid4

import pytest

from tests.utils.factories import make_actor, make_grant, make_profile, recorded_actions
from waste_access.app.use_cases.access import (
    ChangeCompanyRoleUseCase,
    GrantAccessCommand,
    GrantCompanyAccessUseCase,
    ListCompanyAccessUseCase,
    RevokeCompanyAccessUseCase,
)
from waste_access.domain.base import utcnow
from waste_access.domain.entities import Company, Permission, PermissionSet, UserRole


@pytest.fixture
def company():
    return Company(id=uuid4(), name="Acme Waste")


@pytest.fixture
def target():
    return make_profile(UserRole.viewer, email="target@acme.com")


def grants_by_user(mock_uow, *grants):
    """get_by_user_and_company answers from the given grants"""
    index = {(g.user_id, g.company_id): g for g in grants}

    async def lookup(user_id, company_id):
        return index.get((user_id, company_id))

    mock_uow.company_access.get_by_user_and_company.side_effect = lookup


def upsert_returns_grant(mock_uow):
    async def upsert(user_id, company_id, role, permissions, granted_by, expires_at):
        grant = make_grant(user_id, company_id, role)
        grant.apply_permissions(permissions)
        grant.granted_by = granted_by
        grant.expires_at = expires_at
        return grant

    mock_uow.company_access.upsert.side_effect = upsert


# ============================================================================
# Grant
# ============================================================================


@pytest.mark.asyncio
async def test_admin_grants_role_defaults(mock_uow, mock_audit, meta, company, target):
    actor = make_actor(UserRole.admin)
    mock_uow.companies.get_by_id.return_value = company
    mock_uow.profiles.get_by_id.return_value = target
    upsert_returns_grant(mock_uow)

    result = await GrantCompanyAccessUseCase(mock_uow, mock_audit).execute(
        actor,
        GrantAccessCommand(user_id=target.id, company_id=company.id, role=UserRole.analyst),
        meta,
    )

    assert result.is_ok()
    assert result.value.role == UserRole.analyst
    assert result.value.permissions == PermissionSet.of(
        Permission.read, Permission.export, Permission.view_opportunities
    )
    assert result.value.granted_by == actor.user_id
    assert recorded_actions(mock_audit) == ["COMPANY_ACCESS_GRANTED"]
    event, uow = mock_audit.record.await_args.args
    assert uow is mock_uow
    assert event.old_values is None
    assert event.new_values["role"] == "analyst"
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_manager_with_manage_users_can_grant(mock_uow, mock_audit, meta, company, target):
    manager_profile = make_profile(UserRole.viewer)
    manager_grant = make_grant(manager_profile.id, company.id, UserRole.manager)
    manager_grant.can_manage_users = True
    actor = make_actor(profile=manager_profile, grants=[manager_grant])
    grants_by_user(mock_uow, manager_grant)
    mock_uow.companies.get_by_id.return_value = company
    mock_uow.profiles.get_by_id.return_value = target
    upsert_returns_grant(mock_uow)

    permissions = PermissionSet.of(Permission.read, Permission.export)
    result = await GrantCompanyAccessUseCase(mock_uow, mock_audit).execute(
        actor,
        GrantAccessCommand(
            user_id=target.id,
            company_id=company.id,
            role=UserRole.viewer,
            permissions=permissions,
        ),
        meta,
    )

    assert result.is_ok()
    assert result.value.permissions == permissions


@pytest.mark.asyncio
async def test_viewer_cannot_grant(mock_uow, mock_audit, meta, company, target):
    viewer_profile = make_profile(UserRole.viewer)
    viewer_grant = make_grant(viewer_profile.id, company.id, UserRole.viewer)
    actor = make_actor(profile=viewer_profile, grants=[viewer_grant])
    grants_by_user(mock_uow, viewer_grant)

    result = await GrantCompanyAccessUseCase(mock_uow, mock_audit).execute(
        actor,
        GrantAccessCommand(user_id=target.id, company_id=company.id, role=UserRole.viewer),
        meta,
    )

    assert result.is_err()
    assert result.error.code == "PERMISSION_DENIED"
    assert result.error.details == {
        "requiredPermission": "manage_users",
        "companyId": str(company.id),
    }
    mock_uow.company_access.upsert.assert_not_called()
    mock_audit.record.assert_not_called()


@pytest.mark.asyncio
async def test_only_super_admin_assigns_super_admin(mock_uow, mock_audit, meta, company, target):
    result = await GrantCompanyAccessUseCase(mock_uow, mock_audit).execute(
        make_actor(UserRole.admin),
        GrantAccessCommand(user_id=target.id, company_id=company.id, role=UserRole.super_admin),
        meta,
    )

    assert result.error.code == "SUPER_ADMIN_REQUIRED"
    mock_uow.company_access.upsert.assert_not_called()


@pytest.mark.asyncio
async def test_cannot_grant_to_self(mock_uow, mock_audit, meta, company):
    actor = make_actor(UserRole.admin)

    result = await GrantCompanyAccessUseCase(mock_uow, mock_audit).execute(
        actor,
        GrantAccessCommand(user_id=actor.user_id, company_id=company.id, role=UserRole.manager),
        meta,
    )

    assert result.error.code == "CANNOT_MODIFY_SELF"


@pytest.mark.asyncio
async def test_grant_rejects_past_expiry(mock_uow, mock_audit, meta, company, target):
    result = await GrantCompanyAccessUseCase(mock_uow, mock_audit).execute(
        make_actor(UserRole.admin),
        GrantAccessCommand(
            user_id=target.id,
            company_id=company.id,
            role=UserRole.viewer,
            expires_at=utcnow() - timedelta(minutes=1),
        ),
        meta,
    )

    assert result.error.code == "INVALID_EXPIRY"


@pytest.mark.asyncio
async def test_grant_unknown_company(mock_uow, mock_audit, meta, target):
    mock_uow.companies.get_by_id.return_value = None

    result = await GrantCompanyAccessUseCase(mock_uow, mock_audit).execute(
        make_actor(UserRole.admin),
        GrantAccessCommand(user_id=target.id, company_id=uuid4(), role=UserRole.viewer),
        meta,
    )

    assert result.error.code == "COMPANY_NOT_FOUND"


# ============================================================================
# Revoke
# ============================================================================


@pytest.mark.asyncio
async def test_revoke_effective_grant(mock_uow, mock_audit, meta, company, target):
    grant = make_grant(target.id, company.id, UserRole.analyst)
    grants_by_user(mock_uow, grant)

    result = await RevokeCompanyAccessUseCase(mock_uow, mock_audit).execute(
        make_actor(UserRole.admin), target.id, company.id, meta
    )

    assert result.is_ok()
    assert result.value.status == "revoked"
    mock_uow.company_access.deactivate.assert_called_once_with(target.id, company.id)
    event = mock_audit.record.await_args.args[0]
    assert event.action_name == "COMPANY_ACCESS_REVOKED"
    assert event.old_values["is_active"] is True
    assert event.new_values["is_active"] is False


@pytest.mark.asyncio
async def test_revoke_expired_grant_is_not_found(mock_uow, mock_audit, meta, company, target):
    grant = make_grant(target.id, company.id, expires_in=timedelta(seconds=-1))
    grants_by_user(mock_uow, grant)

    result = await RevokeCompanyAccessUseCase(mock_uow, mock_audit).execute(
        make_actor(UserRole.admin), target.id, company.id, meta
    )

    assert result.error.code == "ACCESS_NOT_FOUND"
    mock_uow.company_access.deactivate.assert_not_called()


@pytest.mark.asyncio
async def test_cannot_revoke_own_access(mock_uow, mock_audit, meta, company):
    actor = make_actor(UserRole.admin)

    result = await RevokeCompanyAccessUseCase(mock_uow, mock_audit).execute(
        actor, actor.user_id, company.id, meta
    )

    assert result.error.code == "CANNOT_MODIFY_SELF"


# ============================================================================
# Change role
# ============================================================================


@pytest.mark.asyncio
async def test_role_change_resets_permissions(mock_uow, mock_audit, meta, company, target):
    grant = make_grant(target.id, company.id, UserRole.analyst)
    grant.can_manage_users = True
    grants_by_user(mock_uow, grant)
    mock_uow.company_access.update.side_effect = lambda g: g

    result = await ChangeCompanyRoleUseCase(mock_uow, mock_audit).execute(
        make_actor(UserRole.admin), target.id, company.id, UserRole.viewer, meta
    )

    assert result.is_ok()
    assert result.value.role == UserRole.viewer
    assert result.value.permissions == PermissionSet.of(Permission.read)
    event = mock_audit.record.await_args.args[0]
    assert event.action_name == "COMPANY_ROLE_CHANGED"
    assert event.old_values["role"] == "analyst"
    assert event.old_values["permissions"]["manage_users"] is True
    assert event.new_values["role"] == "viewer"
    assert event.new_values["permissions"]["manage_users"] is False


# ============================================================================
# List
# ============================================================================


@pytest.mark.asyncio
async def test_admin_lists_company_grants_without_own_grant(mock_uow, company, target):
    grant = make_grant(target.id, company.id, UserRole.analyst)
    mock_uow.company_access.list_effective_for_company.return_value = [grant]

    result = await ListCompanyAccessUseCase(mock_uow).execute(
        make_actor(UserRole.admin), company.id
    )

    assert result.is_ok()
    assert result.value.company_id == company.id
    assert [g.user_id for g in result.value.grants] == [target.id]


@pytest.mark.asyncio
async def test_list_requires_manage_users(mock_uow, company):
    actor = make_actor(UserRole.viewer)
    grants_by_user(mock_uow, make_grant(actor.user_id, company.id, UserRole.manager))

    result = await ListCompanyAccessUseCase(mock_uow).execute(actor, company.id)

    assert result.is_err()
    assert result.error.code == "PERMISSION_DENIED"
    mock_uow.company_access.list_effective_for_company.assert_not_called()
