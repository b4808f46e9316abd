import logging
from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

from config import ApplicationConfig


@asynccontextmanager
async def client_for(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_general_rate_limit_returns_429_with_retry_after(app_factory):
    """General rate limit

    Given a limit of 5 requests per second per IP
    When the same IP sends a sixth request inside the window
    Then 429 RATE_LIMIT_EXCEEDED is returned with Retry-After
    """
    app = app_factory(RATE_LIMIT_MAX_REQUESTS=5, RATE_LIMIT_WINDOW_MS=1000)
    async with client_for(app) as client:
        allowed = [await client.get("/me") for _ in range(5)]
        limited = await client.get("/me")

    assert [r.status_code for r in allowed] == [401] * 5
    assert limited.status_code == 429
    assert limited.json()["code"] == "RATE_LIMIT_EXCEEDED"
    assert limited.headers["Retry-After"] == "1"
    assert limited.json()["retryAfter"] == 1


@pytest.mark.asyncio
async def test_health_check_is_exempt_from_rate_limit(app_factory):
    app = app_factory(RATE_LIMIT_MAX_REQUESTS=2, RATE_LIMIT_WINDOW_MS=60000)
    async with client_for(app) as client:
        responses = [await client.get("/health") for _ in range(5)]

    assert {r.status_code for r in responses} == {200}


@pytest.mark.asyncio
async def test_whitelisted_ip_skips_rate_limit(app_factory):
    app = app_factory(
        RATE_LIMIT_MAX_REQUESTS=2, RATE_LIMIT_WINDOW_MS=60000, WHITELISTED_IPS=["127.0.0.1"]
    )
    async with client_for(app) as client:
        responses = [await client.get("/me") for _ in range(5)]

    assert {r.status_code for r in responses} == {401}


@pytest.mark.asyncio
async def test_auth_rate_limit_is_keyed_by_email(app_factory, seed, test_data):
    """Auth rate limit

    Given an auth limit of 3 and three failed sign ins for the viewer
    When the analyst signs in from the same IP
    Then the analyst is let through because the budget is per email
    When the viewer tries a fourth time
    Then 429 AUTH_RATE_LIMIT_EXCEEDED is returned
    And the IP is flagged, so the analyst is now blocked too
    """
    app = app_factory(AUTH_RATE_LIMIT_MAX_REQUESTS=3)
    await seed.user("viewer")
    await seed.user("analyst")
    viewer = test_data.user("viewer")

    async with client_for(app) as client:
        for _ in range(3):
            await client.post(
                "/auth/signin", json={"email": viewer["email"], "password": "WrongPass123!"}
            )
        other = await client.post("/auth/signin", json=test_data.credentials("analyst"))
        limited = await client.post("/auth/signin", json=test_data.credentials("viewer"))
        after = await client.post("/auth/signin", json=test_data.credentials("analyst"))

    assert other.status_code == 200
    assert limited.status_code == 429
    assert limited.json()["code"] == "AUTH_RATE_LIMIT_EXCEEDED"
    assert int(limited.headers["Retry-After"]) >= 1
    assert after.status_code == 403
    assert after.json()["code"] == "SUSPICIOUS_ACTIVITY_BLOCKED"
    assert app.state.security_guard.is_blocked("127.0.0.1")


@pytest.mark.asyncio
async def test_rapid_attack_is_blocked_under_default_auth_limit(app_factory, seed, test_data):
    """Brute force under the shipped auth limit

    Given the default auth limit
    When one IP sends twenty bad passwords for one email in a burst
    Then the attempts past the limit are refused and the IP ends up suspicious
    And a valid sign in for another user from that IP is blocked
    """
    limit = ApplicationConfig.AUTH_RATE_LIMIT_MAX_REQUESTS
    app = app_factory(AUTH_RATE_LIMIT_MAX_REQUESTS=limit)
    await seed.user("viewer")
    await seed.user("analyst")
    viewer = test_data.user("viewer")

    async with client_for(app) as client:
        attempts = [
            await client.post(
                "/auth/signin", json={"email": viewer["email"], "password": "WrongPass123!"}
            )
            for _ in range(20)
        ]
        valid = await client.post("/auth/signin", json=test_data.credentials("analyst"))

    codes = [r.status_code for r in attempts]
    assert codes[:limit] == [401] * limit
    assert codes[limit] == 429
    assert set(codes[limit + 1:]) == {403}
    assert app.state.security_guard.brute_force.suspicious_ips() == ["127.0.0.1"]
    assert valid.status_code == 403
    assert valid.json()["code"] == "SUSPICIOUS_ACTIVITY_BLOCKED"


@pytest.mark.asyncio
async def test_brute_force_blocks_ip_even_with_valid_credentials(
    client: AsyncClient, app, seed, test_data
):
    """Brute force detection

    Given ten failed sign ins for one email from one IP
    When that IP signs in with valid credentials
    Then 403 SUSPICIOUS_ACTIVITY_BLOCKED is returned
    And the IP is flagged as suspicious
    """
    await seed.user("viewer")
    await seed.user("analyst")
    viewer = test_data.user("viewer")
    analyst = test_data.user("analyst")

    failures = [
        await client.post(
            "/auth/signin", json={"email": viewer["email"], "password": "WrongPass123!"}
        )
        for _ in range(10)
    ]
    assert {r.status_code for r in failures} <= {401, 423}

    response = await client.post(
        "/auth/signin", json={"email": analyst["email"], "password": analyst["password"]}
    )

    assert response.status_code == 403
    assert response.json()["code"] == "SUSPICIOUS_ACTIVITY_BLOCKED"
    assert app.state.security_guard.brute_force.suspicious_ips() == ["127.0.0.1"]


@pytest.mark.asyncio
async def test_operator_clears_suspicious_ip(client: AsyncClient, app, admin_headers):
    guard = app.state.security_guard
    for _ in range(guard.brute_force.threshold):
        guard.brute_force.record_failure("target@acme-waste.com", "203.0.113.9")

    report = await client.get("/admin/security/report", headers=admin_headers)
    assert report.json()["suspicious_ips"] == ["203.0.113.9"]

    cleared = await client.delete(
        "/admin/security/suspicious-ips/203.0.113.9", headers=admin_headers
    )
    assert cleared.status_code == 200
    assert cleared.json() == {"ip": "203.0.113.9", "status": "cleared"}
    assert guard.is_blocked("203.0.113.9") is False

    again = await client.delete(
        "/admin/security/suspicious-ips/203.0.113.9", headers=admin_headers
    )
    assert again.status_code == 404
    assert again.json()["code"] == "IP_NOT_SUSPICIOUS"


@pytest.mark.asyncio
async def test_oversized_payload_is_rejected(app_factory):
    app = app_factory(MAX_PAYLOAD_SIZE=64)
    async with client_for(app) as client:
        response = await client.post(
            "/auth/signup",
            json={"email": "big@acme-waste.com", "password": "x" * 200},
        )

    assert response.status_code == 413
    assert response.json()["code"] == "PAYLOAD_TOO_LARGE"


async def _bearer(client: AsyncClient, credentials: dict) -> dict:
    response = await client.post("/auth/signin", json=credentials)
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['tokens']['access_token']}"}


@pytest.mark.asyncio
async def test_general_limit_is_per_user_when_authenticated(app_factory, seed, test_data):
    """Per-user budget

    Given a general limit of 3 and two users signed in from one IP
    When the viewer uses up their budget
    Then the analyst still gets through
    And anonymous calls from the IP keep a budget of their own
    """
    app = app_factory(RATE_LIMIT_MAX_REQUESTS=3, RATE_LIMIT_WINDOW_MS=60000)
    await seed.user("viewer")
    await seed.user("analyst")

    async with client_for(app) as client:
        viewer = await _bearer(client, test_data.credentials("viewer"))
        analyst = await _bearer(client, test_data.credentials("analyst"))

        viewer_calls = [await client.get("/me", headers=viewer) for _ in range(4)]
        analyst_call = await client.get("/me", headers=analyst)
        anonymous = [await client.get("/me") for _ in range(2)]

    assert [r.status_code for r in viewer_calls] == [200, 200, 200, 429]
    assert analyst_call.status_code == 200
    # Two sign ins already used the IP budget
    assert [r.status_code for r in anonymous] == [401, 429]


@pytest.mark.asyncio
async def test_injection_in_query_is_rejected(client: AsyncClient):
    response = await client.get("/me", params={"q": "<script>alert(1)</script>"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request detected", "code": "INVALID_REQUEST"}


@pytest.mark.asyncio
async def test_injection_in_body_is_rejected_and_audited(
    client: AsyncClient, seed, sign_in, test_data
):
    """Request validation

    Given a signed in super admin
    When a sign in body carries a SQL union select
    Then 400 INVALID_REQUEST is returned before the credentials are checked
    And a critical MALICIOUS_REQUEST_BLOCKED security event is recorded
    """
    await seed.user("super_admin")
    root = await sign_in("super_admin")
    viewer = test_data.user("viewer")

    response = await client.post(
        "/auth/signin",
        json={"email": viewer["email"], "password": "x' UNION SELECT password FROM users --"},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"

    events = (await client.get("/audit/security-events", headers=root)).json()["items"]
    [event] = [e for e in events if e["action"] == "MALICIOUS_REQUEST_BLOCKED"]
    assert event["metadata"]["severity"] == "critical"
    assert event["metadata"]["pattern"] == "sql_union_select"
    assert event["metadata"]["method"] == "POST"


@pytest.mark.asyncio
async def test_bot_traffic_is_logged_but_allowed(client: AsyncClient, caplog):
    caplog.set_level(logging.INFO, logger="waste_access.app.services.security_events")

    response = await client.get("/me", headers={"User-Agent": "curl/8.4.0"})

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"
    assert any("BOT_TRAFFIC_DETECTED" in record.getMessage() for record in caplog.records)
