"""Endpoint tables for the account service and the external chatbot API."""

from urllib.parse import quote

AUTH_ENDPOINTS = {
    "signup": "/auth/signup",
    "login": "/auth/login",
    "logout": "/auth/logout",
    "me": "/auth/me",
    "verify_email": "/auth/verify-email/:token",
    "resend_verification": "/auth/resend-verification",
}

CHATBOT_ENDPOINTS = {
    # Wizard
    "wizard_start": "/api/v1/chatbots/wizard/start",
    "status": "/api/v1/chatbots/:chatbotId/status",
    "finalize": "/api/v1/chatbots/:chatbotId/finalize",
    # Chatbot CRUD
    "list": "/api/v1/chatbots/list",
    "get": "/api/v1/chatbots/:chatbotId",
    "delete": "/api/v1/chatbots/:chatbotId",
    # Chat
    "chat": "/api/v1/chatbots/:chatbotId/chat",
    # Knowledge base
    "knowledge_list": "/api/v1/chatbots/:chatbotId/knowledge",
    "knowledge_create": "/api/v1/chatbots/:chatbotId/knowledge",
    "knowledge_update": "/api/v1/chatbots/:chatbotId/knowledge/:itemId",
    "knowledge_delete": "/api/v1/chatbots/:chatbotId/knowledge/:itemId",
    # Scraping jobs
    "scraping_job": "/api/v1/scraping-jobs/:jobId",
    "scraping_retry": "/api/v1/scraping-jobs/:jobId/retry",
    # Conversations
    "conversations_list": "/api/v1/chatbots/:chatbotId/conversations",
    "conversations_delete_all": "/api/v1/chatbots/:chatbotId/conversations",
    "conversation_get": "/api/v1/chatbots/:chatbotId/conversations/:conversationId",
    "conversation_delete": "/api/v1/chatbots/:chatbotId/conversations/:conversationId",
}


def replace_params(endpoint: str, **params: str) -> str:
    """Substitute ``:name`` placeholders with URL-quoted values.

    Raises:
        ValueError: If a placeholder is left without a value
    """
    segments = []
    for segment in endpoint.split("/"):
        if segment.startswith(":"):
            name = segment[1:]
            if name not in params:
                raise ValueError(f"Missing path parameter '{name}' for {endpoint}")
            segment = quote(str(params[name]), safe="")
        segments.append(segment)
    return "/".join(segments)


def build_url(base_url: str, endpoint: str) -> str:
    return f"{base_url.rstrip('/')}{endpoint}"
