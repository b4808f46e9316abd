"""
Identity Provider Interface

Token issuing/verification and password hashing behind one seam, so the
validator and use cases never touch JWT or bcrypt directly.
"""

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple
from uuid import UUID

from waste_access.libs.result import Result


@dataclass(frozen=True)
class AccessTokenClaims:
    user_id: UUID
    session_id: UUID
    role: str
    expires_at: datetime


def token_digest(token: str) -> str:
    """SHA-256 hex digest stored in place of a session or invitation token"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class IIdentityProvider(ABC):
    @abstractmethod
    def issue_access_token(
        self, user_id: UUID, session_id: UUID, role: str
    ) -> Tuple[str, datetime]:
        """Returns (token, naive UTC expiry)"""
        pass

    @abstractmethod
    def issue_refresh_token(self) -> str:
        pass

    @abstractmethod
    async def verify_access_token(self, token: str) -> Result[AccessTokenClaims]:
        """
        Verify signature and expiry.

        Errors:
            INVALID_TOKEN: malformed, bad signature or missing claims
            TOKEN_EXPIRED: signature valid but exp has passed
        """
        pass

    @abstractmethod
    def hash_password(self, password: str) -> str:
        pass

    @abstractmethod
    def verify_password(self, password: str, password_hash: Optional[str]) -> bool:
        """
        Compare a password against a stored hash.

        With no stored hash the comparison still runs against a throwaway
        hash and returns False, so unknown emails take as long as known ones.
        """
        pass
