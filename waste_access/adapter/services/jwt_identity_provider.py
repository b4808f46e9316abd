import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Optional, Tuple
from uuid import UUID

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from waste_access.app.services.identity_provider import AccessTokenClaims, IIdentityProvider
from waste_access.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)


class JwtIdentityProvider(IIdentityProvider):
    """HS256 access tokens via python-jose, bcrypt password hashes"""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_token_ttl_minutes: int = 15,
        bcrypt_rounds: int = 12,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.access_token_ttl = timedelta(minutes=access_token_ttl_minutes)
        self.bcrypt_rounds = bcrypt_rounds
        self._dummy_hash: Optional[str] = None

    def issue_access_token(
        self, user_id: UUID, session_id: UUID, role: str
    ) -> Tuple[str, datetime]:
        now = datetime.now(UTC)
        expires_at = now + self.access_token_ttl
        payload = {
            "sub": str(user_id),
            "sid": str(session_id),
            "role": role,
            "exp": expires_at,
            "iat": now,
            # Two tokens for the same session in the same second must differ
            "jti": secrets.token_hex(8),
        }
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return token, expires_at.replace(tzinfo=None)

    def issue_refresh_token(self) -> str:
        return secrets.token_urlsafe(48)

    async def verify_access_token(self, token: str) -> Result[AccessTokenClaims]:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            return Return.err(Error("TOKEN_EXPIRED", "Token has expired"))
        except JWTError:
            return Return.err(Error("INVALID_TOKEN", "Invalid or expired token"))

        try:
            claims = AccessTokenClaims(
                user_id=UUID(payload["sub"]),
                session_id=UUID(payload["sid"]),
                role=payload.get("role", ""),
                expires_at=datetime.fromtimestamp(payload["exp"], UTC).replace(tzinfo=None),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Access token with malformed claims rejected")
            return Return.err(Error("INVALID_TOKEN", "Invalid or expired token"))

        return Return.ok(claims)

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify_password(self, password: str, password_hash: Optional[str]) -> bool:
        if password_hash is None:
            if self._dummy_hash is None:
                self._dummy_hash = self.hash_password(secrets.token_urlsafe(16))
            bcrypt.checkpw(password.encode("utf-8"), self._dummy_hash.encode("utf-8"))
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False
