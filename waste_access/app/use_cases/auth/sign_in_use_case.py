"""
Sign In Use Case

Password authentication with account lockout.
"""

import logging
from datetime import timedelta

from waste_access.app.services.access_context import AccessContextBuilder, ProfileView
from waste_access.app.services.audit_recorder import AuditRecorder
from waste_access.app.services.auth_policy import AuthPolicy
from waste_access.app.services.identity_provider import IIdentityProvider
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.domain.entities import AuditAction
from waste_access.domain.events import AuditEvent, RequestMeta
from waste_access.libs.result import Error, Result, Return

from .dtos import SignInCommand, SignInResponse
from .sessions import issue_tokens, new_session

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = Error("INVALID_CREDENTIALS", "Invalid email or password")


class SignInUseCase:
    """
    Use case for sign in and session creation.

    Business Rules:
    - A locked account is rejected before the password is checked
    - Each bad password increments failed_login_attempts; reaching the
      policy maximum locks the account for lockout_minutes
    - A lock that has run out clears the counter before the next attempt
    - Unknown emails cost the same bcrypt work as known ones
    - Success resets the counter and lock, bumps login_count and
      last_login_at, and opens a new session
    - password_changed_at is never touched here
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

    async def _failed(self, meta: RequestMeta, email: str, reason: str, user_id=None):
        await self.audit.record(
            AuditEvent.build(
                AuditAction.user_login_failed,
                "user_profiles",
                user_id,
                user_id=user_id,
                meta=meta,
                metadata={"email": email, "reason": reason},
                success=False,
            ),
            self.uow,
        )
        await self.uow.commit()

    async def execute(self, command: SignInCommand, meta: RequestMeta) -> Result[SignInResponse]:
        email = command.email.strip().lower()
        now = utcnow()

        async with self.uow:
            profile = await self.uow.profiles.get_by_email(email)
            if profile is None:
                self.identity_provider.verify_password(command.password, None)
                await self._failed(meta, email, "unknown_email")
                return Return.err(INVALID_CREDENTIALS)

            if profile.is_locked(now):
                locked_until = profile.locked_until
                await self._failed(meta, email, "account_locked", profile.id)
                return Return.err(
                    Error(
                        "ACCOUNT_LOCKED",
                        "Account is temporarily locked due to too many failed login attempts",
                        {"lockedUntil": locked_until.isoformat()},
                    )
                )

            if profile.locked_until is not None:
                profile.locked_until = None
                profile.failed_login_attempts = 0

            credential = await self.uow.credentials.get_by_user_id(profile.id)
            password_hash = credential.password_hash if credential else None
            if not self.identity_provider.verify_password(command.password, password_hash):
                profile.failed_login_attempts += 1
                if profile.failed_login_attempts >= self.policy.max_failed_login_attempts:
                    profile.locked_until = now + timedelta(minutes=self.policy.lockout_minutes)
                    logger.warning(
                        "Account %s locked after %d failed sign in attempts",
                        profile.id,
                        profile.failed_login_attempts,
                    )
                await self.uow.profiles.update(profile)
                await self._failed(meta, email, "invalid_password", profile.id)
                return Return.err(INVALID_CREDENTIALS)

            if not profile.is_active:
                await self._failed(meta, email, "account_deactivated", profile.id)
                return Return.err(Error("ACCOUNT_DEACTIVATED", "Account is deactivated"))

            profile.failed_login_attempts = 0
            profile.locked_until = None
            profile.login_count += 1
            profile.last_login_at = now
            await self.uow.profiles.update(profile)

            session = new_session(profile.id, meta, now)
            tokens = issue_tokens(
                self.identity_provider, session, profile, now, self.policy.session_ttl_hours
            )
            await self.uow.sessions.create(session)

            grants = await AccessContextBuilder(self.uow).load_grants(profile.id, now)

            await self.audit.record(
                AuditEvent.build(
                    AuditAction.user_login,
                    "user_sessions",
                    session.id,
                    user_id=profile.id,
                    session_id=session.id,
                    meta=meta,
                    metadata={"email": email, "login_method": session.login_method},
                ),
                self.uow,
            )

            response = SignInResponse(
                tokens=tokens,
                user=ProfileView.from_entity(profile),
                companies=list(grants),
            )
            await self.uow.commit()

        return Return.ok(response)
