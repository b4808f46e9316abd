from unittest.mock import AsyncMock, MagicMock

import pytest

from waste_access.adapter.services.jwt_identity_provider import JwtIdentityProvider
from waste_access.app.services.auth_policy import AuthPolicy
from waste_access.domain.events import RequestMeta


@pytest.fixture
def mock_uow():
    """Mock UnitOfWork with all repositories"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    uow.savepoint = MagicMock()

    uow.profiles = AsyncMock()
    uow.profiles.get_by_id.return_value = None
    uow.profiles.get_by_email.return_value = None

    uow.credentials = AsyncMock()
    uow.companies = AsyncMock()

    uow.company_access = AsyncMock()
    uow.company_access.get_by_user_and_company.return_value = None
    uow.company_access.list_effective_for_user.return_value = []

    uow.sessions = AsyncMock()
    uow.invitations = AsyncMock()
    uow.audit_logs = AsyncMock()
    return uow


@pytest.fixture
def mock_audit():
    audit = MagicMock()
    audit.record = AsyncMock()
    return audit


@pytest.fixture
def identity_provider():
    return JwtIdentityProvider(secret="unit-test-secret", bcrypt_rounds=4)


@pytest.fixture
def policy():
    return AuthPolicy()


@pytest.fixture
def meta():
    return RequestMeta(ip_address="10.0.0.1", user_agent="pytest")
