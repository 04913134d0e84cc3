"""User account persistence service."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import asyncpg
import structlog

from aitwy.database import Database
from aitwy.models.auth import normalize_email
from aitwy.models.user import User, UserRecord
from aitwy.services.auth_service import AuthService, VerificationToken

logger = structlog.get_logger(__name__)

_USER_COLUMNS = (
    "id, name, email, is_email_verified, is_active, last_login, created_at, updated_at"
)
_RECORD_COLUMNS = (
    f"{_USER_COLUMNS}, password_hash, email_verification_token, email_verification_expires"
)


class DuplicateEmailError(Exception):
    """Raised when an account with the same email already exists."""


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        is_email_verified=row["is_email_verified"],
        is_active=row["is_active"],
        last_login=row["last_login"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_record(row) -> UserRecord:
    return UserRecord(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        is_email_verified=row["is_email_verified"],
        is_active=row["is_active"],
        last_login=row["last_login"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        password_hash=row["password_hash"],
        email_verification_token=row["email_verification_token"],
        email_verification_expires=row["email_verification_expires"],
    )


class UserService:
    """Service for account CRUD and the verification token lifecycle."""

    def __init__(self, db: Database, auth_service: Optional[AuthService] = None):
        self.db = db
        self.auth_service = auth_service or AuthService()

    async def create_user(self, name: str, email: str, password: str) -> User:
        """Create a new unverified, inactive account with a hashed password.

        Args:
            name: Display name
            email: Email address (normalized before storage)
            password: Plain-text password (will be hashed)

        Returns:
            Created User model

        Raises:
            DuplicateEmailError: If the email is already registered
        """
        user_id = uuid4()
        now = datetime.now(timezone.utc)
        email = normalize_email(email)
        password_hash = self.auth_service.hash_password(password)

        try:
            async with self.db.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO users (id, name, email, password_hash, is_email_verified, is_active, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, FALSE, FALSE, $5, $6)
                    """,
                    user_id,
                    name,
                    email,
                    password_hash,
                    now,
                    now,
                )
        except asyncpg.UniqueViolationError:
            raise DuplicateEmailError(email)

        logger.info("user_created", user_id=str(user_id))

        return User(
            id=user_id,
            name=name,
            email=email,
            is_email_verified=False,
            is_active=False,
            created_at=now,
            updated_at=now,
        )

    async def get_by_email(self, email: str) -> Optional[UserRecord]:
        """Get an account by email (case-insensitive), including credentials.

        Args:
            email: Email to look up

        Returns:
            UserRecord or None if not found
        """
        async with self.db.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM users
                WHERE LOWER(email) = LOWER($1)
                """,
                normalize_email(email),
            )

        if row is None:
            return None
        return _row_to_record(row)

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Get an account by UUID.

        Args:
            user_id: User UUID

        Returns:
            User model or None if not found
        """
        async with self.db.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users
                WHERE id = $1
                """,
                user_id,
            )

        if row is None:
            return None
        return _row_to_user(row)

    async def set_verification_token(
        self, user_id: UUID, token: VerificationToken
    ) -> None:
        """Store the digest and expiry of a freshly issued verification token.

        Any previously issued token for the account stops working.
        """
        async with self.db.acquire() as conn:
            await conn.execute(
                """
                UPDATE users
                SET email_verification_token = $1,
                    email_verification_expires = $2,
                    updated_at = $3
                WHERE id = $4
                """,
                token.digest,
                token.expires_at,
                datetime.now(timezone.utc),
                user_id,
            )

        logger.info(
            "verification_token_issued",
            user_id=str(user_id),
            expires_at=token.expires_at.isoformat(),
        )

    async def verify_email_token(
        self, token_digest: str, now: Optional[datetime] = None
    ) -> Optional[User]:
        """Consume an unexpired verification token and activate its account.

        The lookup and the update are one statement, so a token is accepted
        at most once even under concurrent requests.

        Args:
            token_digest: SHA-256 hex digest of the presented token
            now: Reference time for the expiry check

        Returns:
            Verified User model, or None if no account holds a live token
        """
        now = now or datetime.now(timezone.utc)

        async with self.db.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE users
                SET is_email_verified = TRUE,
                    is_active = TRUE,
                    email_verification_token = NULL,
                    email_verification_expires = NULL,
                    updated_at = $2
                WHERE email_verification_token = $1
                  AND email_verification_expires > $2
                RETURNING {_USER_COLUMNS}
                """,
                token_digest,
                now,
            )

        if row is None:
            return None

        logger.info("user_email_verified", user_id=str(row["id"]))
        return _row_to_user(row)

    async def record_login(self, user_id: UUID) -> datetime:
        """Stamp the account's last login time.

        Returns:
            The recorded login timestamp
        """
        now = datetime.now(timezone.utc)

        async with self.db.acquire() as conn:
            await conn.execute(
                "UPDATE users SET last_login = $1, updated_at = $1 WHERE id = $2",
                now,
                user_id,
            )

        return now

    async def set_active(self, user_id: UUID, is_active: bool) -> bool:
        """Activate or deactivate an account.

        Returns:
            True if the account exists
        """
        async with self.db.acquire() as conn:
            result = await conn.execute(
                "UPDATE users SET is_active = $1, updated_at = $2 WHERE id = $3",
                is_active,
                datetime.now(timezone.utc),
                user_id,
            )

        updated = result == "UPDATE 1"
        if updated:
            logger.info("user_active_changed", user_id=str(user_id), is_active=is_active)
        return updated
