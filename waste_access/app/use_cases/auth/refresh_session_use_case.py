"""
Refresh Session Use Case

Exchanges a refresh token for a new token pair on the same session.
"""

from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.auth_policy import AuthPolicy
from waste_access.app.services.identity_provider import IIdentityProvider, token_digest
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction, LogoutReason
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import SessionTokens
from .sessions import issue_tokens


class RefreshSessionUseCase:
    """
    Use case for refreshing a session.

    Business Rules:
    - Refresh token must match a live session
    - Both tokens rotate; the previous pair stops working immediately
    - Session expiry is extended by the session TTL
    - Expired sessions are ended and report SESSION_EXPIRED
    - Deactivated or locked accounts cannot refresh
    """

    def __init__(
        self,
        uow: UnitOfWork,
        audit: AuditRecorder,
        identity_provider: IIdentityProvider,
        policy: AuthPolicy,
    ):
        self.uow = uow
        self.audit = audit
        self.identity_provider = identity_provider
        self.policy = policy

    async def execute(self, refresh_token: str, meta: RequestMeta) -> Result[SessionTokens]:
        now = utcnow()

        async with self.uow:
            session = await self.uow.sessions.get_by_refresh_token_hash(
                token_digest(refresh_token)
            )
            if session is None or not session.is_active:
                return Return.err(Error("INVALID_TOKEN", "Invalid refresh token"))

            if session.expires_at <= now:
                await self.uow.sessions.end(session.id, LogoutReason.expired.value, now)
                await self.uow.commit()
                return Return.err(Error("SESSION_EXPIRED", "Session has expired"))

            profile = await self.uow.profiles.get_by_id(session.user_id)
            if profile is None:
                return Return.err(Error("INVALID_TOKEN", "Invalid refresh token"))
            if not profile.is_active:
                return Return.err(Error("ACCOUNT_DEACTIVATED", "Account is deactivated"))
            if profile.is_locked(now):
                return Return.err(
                    Error(
                        "ACCOUNT_LOCKED",
                        "Account is temporarily locked",
                        {"lockedUntil": profile.locked_until.isoformat()},
                    )
                )

            tokens = issue_tokens(
                self.identity_provider, session, profile, now, self.policy.session_ttl_hours
            )
            await self.uow.sessions.update(session)

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.session_refreshed,
                    "user_sessions",
                    session.id,
                    user_id=profile.id,
                    session_id=session.id,
                    meta=meta,
                ),
                self.uow,
            )
            await self.uow.commit()

        return Return.ok(tokens)
