import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from tests.fixtures.json_loader import FixtureData
from tests.fixtures.seeder import DataSeeder
from waste_access.adapter.database import create_engine
from waste_access.api.app import create_app
from waste_access.depends import get_session_factory

ADMIN_API_KEY = "integration-admin-key"


class IntegrationConfig(ApplicationConfig):
    DB_URI = "sqlite+aiosqlite:///:memory:"
    DB_CREATE_TABLES = False
    API_PREFIX = ""
    ENABLE_LOGGING_MIDDLEWARE = False
    JWT_SECRET = "integration-secret"
    ADMIN_API_KEY = ADMIN_API_KEY
    BCRYPT_ROUNDS = 4
    # Lockout and brute force tests hammer sign in for a single email
    AUTH_RATE_LIMIT_MAX_REQUESTS = 1000
    WHITELISTED_IPS = []


def config_with(**overrides):
    return type("IntegrationConfig", (IntegrationConfig,), overrides)


@pytest.fixture
def test_data():
    return FixtureData()


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", timeout_seconds=5)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def app_factory(session_factory):
    """Build an app on the test database, optionally with config overrides"""
    apps = []

    def build(**overrides):
        app = create_app(config_with(**overrides))
        app.dependency_overrides[get_session_factory] = lambda: session_factory
        apps.append(app)
        return app

    yield build
    for app in apps:
        await app.state.engine.dispose()


@pytest_asyncio.fixture
async def app(app_factory):
    return app_factory()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def seed(app, session_factory):
    return DataSeeder(session_factory, app.state.identity_provider)


@pytest.fixture
def sign_in(client, test_data):
    """Sign a seeded user in and return the Authorization header"""

    async def _sign_in(key: str) -> dict:
        response = await client.post("/auth/signin", json=test_data.credentials(key))
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['tokens']['access_token']}"}

    return _sign_in


@pytest.fixture
def admin_headers():
    return {"X-Admin-API-Key": ADMIN_API_KEY}
