"""
Session issuing shared by sign in and refresh.
"""

from datetime import datetime, timedelta
from uuid import UUID, uuid4

from waste_access.app.services.identity_provider import IIdentityProvider, token_digest
from waste_access.domain.entities import UserProfile, UserSession
from waste_access.domain.events import RequestMeta

from .dtos import SessionTokens


def issue_tokens(
    identity_provider: IIdentityProvider,
    session: UserSession,
    profile: UserProfile,
    now: datetime,
    ttl_hours: int,
) -> SessionTokens:
    """Issue a fresh token pair and store their digests on the session"""
    access_token, access_expires_at = identity_provider.issue_access_token(
        profile.id, session.id, profile.role.value
    )
    refresh_token = identity_provider.issue_refresh_token()

    session.session_token_hash = token_digest(access_token)
    session.refresh_token_hash = token_digest(refresh_token)
    session.expires_at = now + timedelta(hours=ttl_hours)
    session.last_activity_at = now

    return SessionTokens(
        access_token=access_token,
        refresh_token=refresh_token,
        session_id=str(session.id),
        access_token_expires_at=min(access_expires_at, session.expires_at),
        session_expires_at=session.expires_at,
    )


def new_session(user_id: UUID, meta: RequestMeta, now: datetime) -> UserSession:
    return UserSession(
        id=uuid4(),
        user_id=user_id,
        session_token_hash="",
        refresh_token_hash="",
        ip_address=meta.ip_address,
        user_agent=meta.user_agent,
        login_method="password",
        login_at=now,
        last_activity_at=now,
        expires_at=now,
    )
