"""Auth request and response models with validation."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

_EMAIL_ADAPTER = TypeAdapter(EmailStr)
TLD_MIN_LENGTH = 2

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6


def normalize_email(value: str) -> str:
    """Trim and lower-case an email address for storage and lookup."""
    return value.strip().lower()


def _validate_email(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Email is required")
    try:
        v = _EMAIL_ADAPTER.validate_python(v)
    except ValidationError:
        raise ValueError("Please provide a valid email")
    tld = v.rsplit(".", 1)[-1]
    if len(tld) < TLD_MIN_LENGTH or not tld.isalpha():
        raise ValueError("Please provide a valid email")
    return normalize_email(v)


class SignupRequest(BaseModel):
    """Registration payload.

    Attributes:
        name: Display name (2-50 chars after trimming)
        email: Email address, normalized to lower case
        password: Plain-text password (min 6 chars)
    """

    name: str = Field(default="", validate_default=True)
    email: str = Field(default="", validate_default=True)
    password: str = Field(default="", validate_default=True)

    @field_validator("name")
    @classmethod
    def name_length(cls, v: str) -> str:
        """Trim the name and enforce its length bounds."""
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        if not NAME_MIN_LENGTH <= len(v) <= NAME_MAX_LENGTH:
            raise ValueError(
                f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
            )
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _validate_email(v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"
            )
        return v


class LoginRequest(BaseModel):
    """Login credentials."""

    email: str = Field(default="", validate_default=True)
    password: str = Field(default="", validate_default=True)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _validate_email(v)

    @field_validator("password")
    @classmethod
    def password_present(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class ResendVerificationRequest(BaseModel):
    """Request a fresh verification email."""

    email: str = Field(default="", validate_default=True)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _validate_email(v)


class _CamelModel(BaseModel):
    """Response model serialized with the camelCase keys the dashboard expects."""

    model_config = ConfigDict(populate_by_name=True)


class SignupUser(_CamelModel):
    id: UUID
    name: str
    email: str
    is_email_verified: bool = Field(alias="isEmailVerified")
    created_at: datetime = Field(alias="createdAt")


class SignupData(_CamelModel):
    user: SignupUser
    requires_verification: bool = Field(default=True, alias="requiresVerification")


class LoginUser(_CamelModel):
    id: UUID
    name: str
    email: str
    last_login: Optional[datetime] = Field(default=None, alias="lastLogin")


class LoginData(BaseModel):
    """Successful login payload.

    Attributes:
        user: Summary of the authenticated user
        token: Bearer token valid for the configured number of days
    """

    user: LoginUser
    token: str


class ProfileUser(_CamelModel):
    id: UUID
    name: str
    email: str
    created_at: datetime = Field(alias="createdAt")
    last_login: Optional[datetime] = Field(default=None, alias="lastLogin")


class ProfileData(BaseModel):
    user: ProfileUser


class VerifiedUser(_CamelModel):
    id: UUID
    name: str
    email: str
    is_email_verified: bool = Field(alias="isEmailVerified")


class VerifiedData(BaseModel):
    user: VerifiedUser
