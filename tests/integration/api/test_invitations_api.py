from uuid import UUID

import pytest
from httpx import AsyncClient

from waste_access.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from waste_access.api.routes.invitation import INVITE_RATE_LIMIT
from waste_access.app.services.identity_provider import token_digest
from waste_access.domain.entities import InvitationStatus, UserRole


async def _invite(client: AsyncClient, headers: dict, email: str, company_id=None, role="analyst"):
    payload = {"email": email, "role": role}
    if company_id is not None:
        payload["company_id"] = str(company_id)
    return await client.post("/invitations", json=payload, headers=headers)


@pytest.mark.asyncio
async def test_company_invitation_accepted_exactly_once(
    client: AsyncClient, seed, sign_in, test_data
):
    """Invitation redemption

    Given an admin invites the analyst to Acme
    When the analyst accepts the invitation
    Then the analyst holds an analyst grant on Acme
    When the same token is accepted again
    Then 409 INVITATION_NOT_PENDING is returned
    And the invitation stays accepted
    """
    await seed.user("admin")
    await seed.user("analyst")
    acme = await seed.company("acme")
    admin = await sign_in("admin")
    analyst = await sign_in("analyst")
    email = test_data.user("analyst")["email"]

    invited = await _invite(client, admin, email, acme)
    assert invited.status_code == 201
    token = invited.json()["invitation_token"]
    assert invited.json()["invitation"]["status"] == "pending"

    pending = await client.get("/invitations/pending", headers=analyst)
    assert [i["id"] for i in pending.json()["invitations"]] == [invited.json()["invitation"]["id"]]

    accepted = await client.post("/invitations/accept", json={"token": token}, headers=analyst)
    assert accepted.status_code == 200
    assert accepted.json() == {"status": "accepted", "company_id": str(acme), "role": "analyst"}

    mine = await client.get(f"/companies/{acme}/access/me", headers=analyst)
    assert mine.status_code == 200
    assert mine.json()["role"] == "analyst"

    second = await client.post("/invitations/accept", json={"token": token}, headers=analyst)
    assert second.status_code == 409
    assert second.json()["code"] == "INVITATION_NOT_PENDING"
    assert second.json()["status"] == InvitationStatus.accepted.value
    assert (await client.get("/invitations/pending", headers=analyst)).json()["invitations"] == []


@pytest.mark.asyncio
async def test_platform_invitation_sets_platform_role(client: AsyncClient, seed, sign_in, test_data):
    await seed.user("admin")
    viewer_id = await seed.user("viewer")
    admin = await sign_in("admin")
    viewer = await sign_in("viewer")

    invited = await _invite(
        client, admin, test_data.user("viewer")["email"], role="admin"
    )
    accepted = await client.post(
        "/invitations/accept", json={"token": invited.json()["invitation_token"]}, headers=viewer
    )

    assert accepted.status_code == 200
    assert accepted.json()["company_id"] is None
    assert (await seed.profile(viewer_id)).role == UserRole.admin


@pytest.mark.asyncio
async def test_accept_requires_matching_email(client: AsyncClient, seed, sign_in, test_data):
    await seed.user("admin")
    await seed.user("viewer")
    acme = await seed.company("acme")
    admin = await sign_in("admin")
    viewer = await sign_in("viewer")

    invited = await _invite(client, admin, test_data.user("analyst")["email"], acme)
    response = await client.post(
        "/invitations/accept", json={"token": invited.json()["invitation_token"]}, headers=viewer
    )

    assert response.status_code == 403
    assert response.json()["code"] == "INVITATION_EMAIL_MISMATCH"


@pytest.mark.asyncio
async def test_duplicate_pending_invitation_conflicts(client: AsyncClient, seed, sign_in):
    await seed.user("admin")
    acme = await seed.company("acme")
    admin = await sign_in("admin")

    first = await _invite(client, admin, "consultant@example.com", acme)
    second = await _invite(client, admin, "Consultant@Example.com", acme)

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["code"] == "INVITE_ALREADY_EXISTS"


@pytest.mark.asyncio
async def test_viewer_cannot_invite(client: AsyncClient, seed, sign_in):
    viewer_id = await seed.user("viewer")
    acme = await seed.company("acme")
    await seed.grant(viewer_id, acme, UserRole.viewer)
    viewer = await sign_in("viewer")

    company_invite = await _invite(client, viewer, "someone@example.com", acme)
    platform_invite = await _invite(client, viewer, "someone@example.com")

    assert company_invite.status_code == 403
    assert company_invite.json()["code"] == "PERMISSION_DENIED"
    assert platform_invite.status_code == 403
    assert platform_invite.json()["code"] == "ADMIN_REQUIRED"


@pytest.mark.asyncio
async def test_only_super_admin_invites_super_admins(client: AsyncClient, seed, sign_in):
    await seed.user("admin")
    await seed.user("super_admin")
    admin = await sign_in("admin")
    root = await sign_in("super_admin")

    denied = await _invite(client, admin, "deputy@wasteintel.io", role="super_admin")
    allowed = await _invite(client, root, "deputy@wasteintel.io", role="super_admin")

    assert denied.status_code == 403
    assert denied.json()["code"] == "SUPER_ADMIN_REQUIRED"
    assert allowed.status_code == 201


@pytest.mark.asyncio
async def test_revoked_invitation_cannot_be_accepted(client: AsyncClient, seed, sign_in, test_data):
    await seed.user("admin")
    await seed.user("analyst")
    acme = await seed.company("acme")
    admin = await sign_in("admin")
    analyst = await sign_in("analyst")

    invited = await _invite(client, admin, test_data.user("analyst")["email"], acme)
    invitation_id = invited.json()["invitation"]["id"]

    revoked = await client.post(f"/invitations/{invitation_id}/revoke", headers=admin)
    assert revoked.status_code == 200
    assert revoked.json()["status"] == "revoked"

    response = await client.post(
        "/invitations/accept", json={"token": invited.json()["invitation_token"]}, headers=analyst
    )
    assert response.status_code == 409
    assert response.json()["status"] == "revoked"


@pytest.mark.asyncio
async def test_unknown_token_is_not_found(client: AsyncClient, seed, sign_in):
    await seed.user("viewer")
    viewer = await sign_in("viewer")

    response = await client.post(
        "/invitations/accept", json={"token": "no-such-token"}, headers=viewer
    )

    assert response.status_code == 404
    assert response.json()["code"] == "INVITATION_NOT_FOUND"


@pytest.mark.asyncio
async def test_invitations_are_rate_limited_per_ip(client: AsyncClient, app, seed, sign_in):
    await seed.user("admin")
    admin = await sign_in("admin")
    limiter = app.state.security_guard.route_limiter("invitations", INVITE_RATE_LIMIT)
    for _ in range(INVITE_RATE_LIMIT.max_requests):
        limiter.hit("127.0.0.1")

    response = await _invite(client, admin, "late@example.com")

    assert response.status_code == 429
    assert response.json()["code"] == "INVITE_RATE_LIMIT_EXCEEDED"
    assert "Retry-After" in response.headers


@pytest.mark.asyncio
async def test_invitation_token_is_stored_as_digest(client: AsyncClient, seed, sign_in, session_factory):
    await seed.user("admin")
    acme = await seed.company("acme")
    admin = await sign_in("admin")

    invited = await _invite(client, admin, "consultant@example.com", acme)
    token = invited.json()["invitation_token"]

    async with session_factory() as session:
        async with SqlAlchemyUnitOfWork(session) as uow:
            stored = await uow.invitations.get_by_id(UUID(invited.json()["invitation"]["id"]))

    assert stored.invitation_token_hash == token_digest(token)
    assert stored.invitation_token_hash != token
