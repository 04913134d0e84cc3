"""Models package exports."""

from aitwy.models.auth import (
    LoginRequest,
    ResendVerificationRequest,
    SignupRequest,
    normalize_email,
)
from aitwy.models.response import ApiResponse, FieldError, error_response, success_response
from aitwy.models.user import User, UserRecord

__all__ = [
    "ApiResponse",
    "FieldError",
    "LoginRequest",
    "ResendVerificationRequest",
    "SignupRequest",
    "User",
    "UserRecord",
    "error_response",
    "normalize_email",
    "success_response",
]
