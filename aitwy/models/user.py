"""User account models."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class User(BaseModel):
    """A registered dashboard account (no credential fields)."""

    id: UUID
    name: str
    email: str
    is_email_verified: bool = False
    is_active: bool = False
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @property
    def can_login(self) -> bool:
        """Accounts may log in only once verified and active."""
        return self.is_email_verified and self.is_active


class UserRecord(User):
    """Full stored row, including the password hash and verification token fields.

    Only returned by lookups that need credentials; never serialized in responses.
    """

    password_hash: str
    email_verification_token: Optional[str] = None
    email_verification_expires: Optional[datetime] = None

    def to_user(self) -> User:
        return User(**self.model_dump(include=set(User.model_fields)))
