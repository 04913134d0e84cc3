"""Authentication service for JWT tokens, password hashing and verification tokens."""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog

from aitwy.config import Settings, get_settings

logger = structlog.get_logger(__name__)

# Constants
JWT_ALGORITHM = "HS256"
VERIFICATION_TOKEN_BYTES = 32
BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class VerificationToken:
    """A freshly generated email verification token.

    Attributes:
        raw: Value emailed to the user (never stored)
        digest: SHA-256 hex digest persisted on the account
        expires_at: Moment after which the token is rejected
    """

    raw: str
    digest: str
    expires_at: datetime


def hash_token(raw_token: str) -> str:
    """Return the SHA-256 hex digest used to store and look up a token."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def _password_bytes(password: str) -> bytes:
    # bcrypt only reads the first 72 bytes; newer releases reject longer input
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class AuthService:
    """Service for password hashing, bearer token issuance and verification tokens."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string
        """
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(_password_bytes(password), salt)
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            password: Plain-text password to check
            password_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches, False otherwise
        """
        return bcrypt.checkpw(
            _password_bytes(password),
            password_hash.encode("utf-8"),
        )

    def create_access_token(self, user_id: str) -> str:
        """Create a signed bearer token carrying only the account id.

        Args:
            user_id: User UUID as string (placed in the 'id' claim)

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        payload = {
            "id": user_id,
            "iat": now,
            "exp": now + timedelta(days=self.settings.jwt_expire_days),
        }
        token = jwt.encode(payload, self.settings.jwt_secret, algorithm=JWT_ALGORITHM)
        logger.debug(
            "access_token_created",
            user_id=user_id,
            expires_days=self.settings.jwt_expire_days,
        )
        return token

    def validate_access_token(self, token: str) -> dict:
        """Decode and validate a bearer token.

        Args:
            token: Encoded JWT string

        Returns:
            Decoded payload dict with id, iat, exp

        Raises:
            ValueError: If the token is invalid, expired, or malformed
        """
        try:
            return jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[JWT_ALGORITHM],
            )
        except jwt.ExpiredSignatureError:
            raise ValueError("Access token has expired")
        except jwt.InvalidTokenError as e:
            raise ValueError(f"Invalid access token: {e}")

    def generate_verification_token(
        self, now: Optional[datetime] = None
    ) -> VerificationToken:
        """Generate a one-time email verification token.

        Only the digest is meant to be persisted; the raw value goes into
        the verification link.
        """
        now = now or datetime.now(timezone.utc)
        raw_token = secrets.token_hex(VERIFICATION_TOKEN_BYTES)
        return VerificationToken(
            raw=raw_token,
            digest=hash_token(raw_token),
            expires_at=now + timedelta(hours=self.settings.verification_token_ttl_hours),
        )
