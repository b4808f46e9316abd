from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient

from waste_access.domain.entities import UserRole


@pytest.mark.asyncio
async def test_admin_views_audit_log_newest_first(client: AsyncClient, seed, sign_in, test_data):
    """Audit trail

    Given a failed and a successful sign in
    When a platform admin lists the audit log
    Then both events are present with request metadata
    And rows are sorted newest first
    """
    viewer_id = await seed.user("viewer")
    await seed.user("admin")
    viewer = test_data.user("viewer")
    await client.post("/auth/signin", json={"email": viewer["email"], "password": "nope-nope"})
    await sign_in("viewer")
    admin = await sign_in("admin")

    response = await client.get("/audit/logs", params={"user_id": str(viewer_id)}, headers=admin)

    assert response.status_code == 200
    items = response.json()["items"]
    assert [i["action"] for i in items] == ["USER_LOGIN", "USER_LOGIN_FAILED"]
    failed = items[1]
    assert failed["success"] is False
    assert failed["metadata"]["reason"] == "invalid_password"
    assert failed["ip_address"] == "127.0.0.1"
    timestamps = [datetime.fromisoformat(i["timestamp"]) for i in items]
    assert timestamps == sorted(timestamps, reverse=True)


@pytest.mark.asyncio
async def test_audit_log_pagination(client: AsyncClient, seed, sign_in):
    await seed.user("admin")
    for _ in range(3):
        await sign_in("admin")
    admin = await sign_in("admin")

    first = await client.get(
        "/audit/logs", params={"action": "USER_LOGIN", "limit": 2}, headers=admin
    )
    assert first.status_code == 200
    assert len(first.json()["items"]) == 2
    cursor = first.json()["next_cursor"]
    assert cursor

    second = await client.get(
        "/audit/logs",
        params={"action": "USER_LOGIN", "limit": 2, "cursor": cursor},
        headers=admin,
    )
    assert len(second.json()["items"]) == 2
    assert second.json()["next_cursor"] is None
    ids = [i["id"] for i in first.json()["items"] + second.json()["items"]]
    assert len(set(ids)) == 4


@pytest.mark.asyncio
async def test_company_access_changes_record_old_and_new_values(client: AsyncClient, seed, sign_in):
    admin_id = await seed.user("admin")
    analyst_id = await seed.user("analyst")
    acme = await seed.company("acme")
    await seed.grant(analyst_id, acme, UserRole.analyst)
    admin = await sign_in("admin")

    await client.patch(
        f"/companies/{acme}/access/{analyst_id}/role", json={"role": "viewer"}, headers=admin
    )
    response = await client.get(
        "/audit/logs", params={"action": "COMPANY_ROLE_CHANGED"}, headers=admin
    )

    [row] = response.json()["items"]
    assert row["user_id"] == str(admin_id)
    assert row["resource_type"] == "user_company_access"
    assert row["old_values"]["role"] == "analyst"
    assert row["new_values"]["role"] == "viewer"
    assert row["new_values"]["permissions"]["export"] is False


@pytest.mark.asyncio
async def test_permission_denial_is_audited(client: AsyncClient, seed, sign_in):
    viewer_id = await seed.user("viewer")
    await seed.user("admin")
    acme = await seed.company("acme")
    viewer = await sign_in("viewer")
    await client.get(f"/companies/{acme}/access/me", headers=viewer)
    admin = await sign_in("admin")

    response = await client.get(
        "/audit/logs", params={"action": "PERMISSION_DENIED", "success": False}, headers=admin
    )

    [row] = response.json()["items"]
    assert row["user_id"] == str(viewer_id)
    assert row["resource_id"] == str(acme)
    assert row["metadata"]["path"] == f"/companies/{acme}/access/me"


@pytest.mark.asyncio
async def test_audit_log_requires_platform_admin(client: AsyncClient, seed, sign_in):
    await seed.user("viewer")
    viewer = await sign_in("viewer")

    response = await client.get("/audit/logs", headers=viewer)

    assert response.status_code == 403
    assert response.json()["code"] == "ADMIN_REQUIRED"


@pytest.mark.asyncio
async def test_security_events_for_super_admin_only(app_factory, seed, test_data):
    app = app_factory(AUTH_RATE_LIMIT_MAX_REQUESTS=1)
    await seed.user("admin")
    await seed.user("super_admin")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        await client.post("/auth/signin", json={"email": "x@acme-waste.com", "password": "nope-nope"})
        limited = await client.post(
            "/auth/signin", json={"email": "x@acme-waste.com", "password": "nope-nope"}
        )
        assert limited.status_code == 429
        # Reaching the auth limit flags the IP; lift it so the admins can sign in
        assert app.state.security_guard.brute_force.clear_suspicious("127.0.0.1")

        tokens = {}
        for key in ("admin", "super_admin"):
            signin = await client.post(
                "/auth/signin",
                json=test_data.credentials(key),
            )
            tokens[key] = {"Authorization": f"Bearer {signin.json()['tokens']['access_token']}"}

        denied = await client.get("/audit/security-events", headers=tokens["admin"])
        allowed = await client.get("/audit/security-events", headers=tokens["super_admin"])

    assert denied.status_code == 403
    assert denied.json()["code"] == "SUPER_ADMIN_REQUIRED"
    assert allowed.status_code == 200
    [event] = allowed.json()["items"]
    assert event["action"] == "AUTH_RATE_LIMIT_EXCEEDED"
    assert event["resource_type"] == "security_events"
    assert event["metadata"]["severity"] == "high"
    assert event["metadata"]["identifier"] == "x@acme-waste.com"
    assert event["metadata"]["ipFlagged"] is True
