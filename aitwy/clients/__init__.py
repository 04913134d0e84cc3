"""HTTP clients for the account service and the external chatbot API."""

from aitwy.clients.auth_client import AuthApiClient
from aitwy.clients.chatbot_client import ChatbotApiClient
from aitwy.clients.errors import ApiError
from aitwy.clients.token_store import FileTokenStore, MemoryTokenStore
from aitwy.clients.wizard import (
    WizardFailedError,
    WizardResult,
    WizardTimeoutError,
    create_chatbot,
)

__all__ = [
    "ApiError",
    "AuthApiClient",
    "ChatbotApiClient",
    "FileTokenStore",
    "MemoryTokenStore",
    "WizardFailedError",
    "WizardResult",
    "WizardTimeoutError",
    "create_chatbot",
]
