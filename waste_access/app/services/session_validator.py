"""
Session Validator

Authorization header -> AccessContext, or a stable error code.
"""

import asyncio
import hmac
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from waste_access.app.services.access_context import AccessContext, AccessContextBuilder
from waste_access.app.services.identity_provider import IIdentityProvider, token_digest
from waste_access.app.services.unit_of_work import UnitOfWork
from waste_access.domain.base import utcnow
from waste_access.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

INVALID_TOKEN = Error("INVALID_TOKEN", "Invalid or expired token")


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


class SessionValidator:
    """
    Validate a bearer token against the session store.

    Business Rules:
    - Token must verify through the identity provider
    - Referenced session must exist, belong to the token's user, be live
      and hold the digest of this exact token
    - Profile must exist, be active and not locked
    - Success bumps last_activity_at; a failed bump is only logged
    - The whole check is bounded by timeout_seconds
    """

    def __init__(
        self,
        uow: UnitOfWork,
        identity_provider: IIdentityProvider,
        timeout_seconds: float = 5.0,
    ):
        self.uow = uow
        self.identity_provider = identity_provider
        self.timeout_seconds = timeout_seconds

    async def validate(self, authorization: Optional[str]) -> Result[AccessContext]:
        token = parse_bearer(authorization)
        if token is None:
            return Return.err(Error("UNAUTHORIZED", "Authentication required"))

        try:
            return await asyncio.wait_for(self._validate_token(token), self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Session validation timed out after %ss", self.timeout_seconds)
            return Return.err(INVALID_TOKEN)
        except SQLAlchemyError:
            logger.exception("Session store failure during authentication")
            return Return.err(Error("AUTH_ERROR", "Authentication failed"))

    async def _validate_token(self, token: str) -> Result[AccessContext]:
        claims_result = await self.identity_provider.verify_access_token(token)
        if claims_result.is_err():
            return claims_result
        claims = claims_result.value

        now = utcnow()
        async with self.uow:
            session = await self.uow.sessions.get_by_id(claims.session_id)
            if (
                session is None
                or session.user_id != claims.user_id
                or not session.is_active
                or not hmac.compare_digest(session.session_token_hash, token_digest(token))
            ):
                return Return.err(INVALID_TOKEN)
            if session.expires_at <= now:
                return Return.err(Error("TOKEN_EXPIRED", "Session has expired"))

            context = await AccessContextBuilder(self.uow).build(
                claims.user_id, session.id, now
            )
            if context is None:
                logger.error(
                    "Live session %s references missing profile %s",
                    session.id,
                    claims.user_id,
                )
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            profile = context.profile
            if not profile.is_active:
                return Return.err(Error("ACCOUNT_DEACTIVATED", "Account is deactivated"))
            if profile.locked_until is not None and profile.locked_until > now:
                return Return.err(
                    Error(
                        "ACCOUNT_LOCKED",
                        "Account is temporarily locked",
                        {"lockedUntil": profile.locked_until.isoformat()},
                    )
                )

            try:
                await self.uow.sessions.touch(session.id, now)
                await self.uow.commit()
            except SQLAlchemyError as exc:
                logger.warning("Failed to update activity for session %s: %s", session.id, exc)

        return Return.ok(context)
