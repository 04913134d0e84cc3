"""Services package exports."""

from aitwy.services.auth_service import AuthService, hash_token
from aitwy.services.email_service import EmailDeliveryError, EmailService
from aitwy.services.logging_service import configure_logging, get_logger
from aitwy.services.user_service import DuplicateEmailError, UserService

__all__ = [
    "AuthService",
    "DuplicateEmailError",
    "EmailDeliveryError",
    "EmailService",
    "UserService",
    "configure_logging",
    "get_logger",
    "hash_token",
]
