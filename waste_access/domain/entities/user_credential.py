"""
UserCredential Entity

Password material owned by the identity provider adapter.
"""

from typing import Optional
from uuid import UUID

from sqlmodel import Field, SQLModel


class UserCredential(SQLModel, table=True):
    """
    UserCredential entity - bcrypt password hash and 2FA secret.

    Kept apart from UserProfile so profile reads never load secrets.
    """

    __tablename__ = "user_credentials"

    user_id: UUID = Field(foreign_key="user_profiles.id", primary_key=True)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars
    two_factor_secret: Optional[str] = Field(default=None, max_length=64)
