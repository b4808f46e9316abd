from uuid import uuid4

import pytest
from jose import jwt

from waste_access.adapter.services.jwt_identity_provider import JwtIdentityProvider
from waste_access.app.services.identity_provider import token_digest


@pytest.mark.asyncio
async def test_access_token_round_trip(identity_provider):
    user_id, session_id = uuid4(), uuid4()

    token, expires_at = identity_provider.issue_access_token(user_id, session_id, "analyst")
    result = await identity_provider.verify_access_token(token)

    assert result.is_ok()
    claims = result.value
    assert claims.user_id == user_id
    assert claims.session_id == session_id
    assert claims.role == "analyst"
    assert expires_at.tzinfo is None


def test_tokens_for_same_session_differ(identity_provider):
    user_id, session_id = uuid4(), uuid4()

    first, _ = identity_provider.issue_access_token(user_id, session_id, "viewer")
    second, _ = identity_provider.issue_access_token(user_id, session_id, "viewer")

    assert first != second
    assert token_digest(first) != token_digest(second)
    assert len(token_digest(first)) == 64


@pytest.mark.asyncio
async def test_token_signed_with_other_secret_rejected(identity_provider):
    other = JwtIdentityProvider(secret="someone-else", bcrypt_rounds=4)
    token, _ = other.issue_access_token(uuid4(), uuid4(), "viewer")

    result = await identity_provider.verify_access_token(token)

    assert result.error.code == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_token_without_session_claim_rejected(identity_provider):
    token = jwt.encode({"sub": str(uuid4())}, "unit-test-secret", algorithm="HS256")

    result = await identity_provider.verify_access_token(token)

    assert result.error.code == "INVALID_TOKEN"


def test_password_hashing(identity_provider):
    password_hash = identity_provider.hash_password("SecurePass123!")

    assert password_hash.startswith("$2")
    assert identity_provider.verify_password("SecurePass123!", password_hash)
    assert not identity_provider.verify_password("securepass123!", password_hash)
    assert not identity_provider.verify_password("SecurePass123!", "not-a-bcrypt-hash")


def test_verify_without_hash_is_false(identity_provider):
    assert identity_provider.verify_password("anything", None) is False
