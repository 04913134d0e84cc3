"""FastAPI dependencies for service wiring and authentication."""

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from aitwy.database import Database
from aitwy.models.user import User
from aitwy.services.auth_service import AuthService
from aitwy.services.email_service import EmailService
from aitwy.services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def get_database(request: Request) -> Database:
    """Database owned by the application lifespan."""
    return request.app.state.database


def get_email_service(request: Request) -> EmailService:
    """Email service owned by the application lifespan."""
    return request.app.state.email_service


def get_auth_service() -> AuthService:
    return AuthService()


def get_user_service(
    db: Database = Depends(get_database),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserService:
    return UserService(db, auth_service)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Extract and validate the current user from a Bearer token.

    Args:
        credentials: Bearer token from Authorization header, if any

    Returns:
        Authenticated User model

    Raises:
        HTTPException 401: If the token is missing, invalid, expired, or the
            account no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authorized, no token")

    try:
        payload = auth_service.validate_access_token(credentials.credentials)
        user_id = UUID(str(payload.get("id")))
    except ValueError:
        raise _unauthorized("Not authorized, token failed")

    user = await user_service.get_by_id(user_id)

    if user is None:
        raise _unauthorized("Not authorized, user not found")

    return user
