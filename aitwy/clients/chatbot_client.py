"""Client for the external chatbot service (wizard, chat, knowledge, history)."""

from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from aitwy.clients.base import BaseApiClient
from aitwy.clients.endpoints import CHATBOT_ENDPOINTS, replace_params
from aitwy.clients.errors import ApiError
from aitwy.models.chatbot import (
    ChatbotResponse,
    ChatbotStatusResponse,
    ChatbotWizardResponse,
    ChatbotWizardStart,
    ChatRequest,
    ChatResponse,
    ConversationHistoryResponse,
    ConversationListResponse,
    DeleteAllResponse,
    KnowledgeItemCreate,
    KnowledgeItemResponse,
    KnowledgeItemUpdate,
    MessageOnlyResponse,
    ScrapingJobResponse,
)

UNEXPECTED_RESPONSE = "Unexpected response from chatbot service"
EMPTY_ACK_MESSAGE = "Request completed"

M = TypeVar("M", bound=BaseModel)
A = TypeVar("A", bound=MessageOnlyResponse)


class _SubApi:
    def __init__(self, client: "ChatbotApiClient"):
        self._client = client

    async def _call(
        self,
        method: str,
        name: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        **path_params: str,
    ):
        endpoint = CHATBOT_ENDPOINTS[name]
        return await self._client.request(
            method,
            replace_params(endpoint, **path_params),
            json=json,
            params=params,
            endpoint=endpoint,
        )

    @staticmethod
    def _parse(model: Type[M], body: Any) -> M:
        """Validate a 2xx body, raising ApiError when it does not fit the model."""
        try:
            return model.model_validate(body)
        except ValidationError:
            raise ApiError(UNEXPECTED_RESPONSE, details=body)

    def _parse_list(self, model: Type[M], body: Any) -> List[M]:
        if body is None:
            return []
        if not isinstance(body, list):
            raise ApiError(UNEXPECTED_RESPONSE, details=body)
        return [self._parse(model, item) for item in body]

    def _ack(self, body: Any, model: Type[A] = MessageOnlyResponse) -> A:
        # 204 and other empty acknowledgements carry no body
        if body is None:
            return model(message=EMPTY_ACK_MESSAGE)
        return self._parse(model, body)


class WizardApi(_SubApi):
    """Chatbot creation wizard."""

    async def start(self, data: ChatbotWizardStart) -> ChatbotWizardResponse:
        body = await self._call("POST", "wizard_start", json=data.model_dump(exclude_none=True))
        return self._parse(ChatbotWizardResponse, body)

    async def get_status(self, chatbot_id: str) -> ChatbotStatusResponse:
        body = await self._call("GET", "status", chatbotId=chatbot_id)
        return self._parse(ChatbotStatusResponse, body)

    async def finalize(self, chatbot_id: str) -> MessageOnlyResponse:
        body = await self._call("POST", "finalize", chatbotId=chatbot_id)
        return self._ack(body)


class ChatbotsApi(_SubApi):
    async def list(self, skip: int = 0, limit: int = 100) -> List[ChatbotResponse]:
        body = await self._call("GET", "list", params={"skip": skip, "limit": limit})
        return self._parse_list(ChatbotResponse, body)

    async def get(self, chatbot_id: str) -> ChatbotResponse:
        body = await self._call("GET", "get", chatbotId=chatbot_id)
        return self._parse(ChatbotResponse, body)

    async def delete(self, chatbot_id: str) -> MessageOnlyResponse:
        body = await self._call("DELETE", "delete", chatbotId=chatbot_id)
        return self._ack(body)


class ChatApi(_SubApi):
    async def send_message(self, chatbot_id: str, request: ChatRequest) -> ChatResponse:
        body = await self._call(
            "POST", "chat", json=request.model_dump(exclude_none=True), chatbotId=chatbot_id
        )
        return self._parse(ChatResponse, body)


class KnowledgeApi(_SubApi):
    """Knowledge base items attached to a chatbot."""

    async def list(
        self,
        chatbot_id: str,
        content_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[KnowledgeItemResponse]:
        body = await self._call(
            "GET",
            "knowledge_list",
            params={"content_type": content_type, "skip": skip, "limit": limit},
            chatbotId=chatbot_id,
        )
        return self._parse_list(KnowledgeItemResponse, body)

    async def create(
        self, chatbot_id: str, data: KnowledgeItemCreate
    ) -> KnowledgeItemResponse:
        body = await self._call(
            "POST",
            "knowledge_create",
            json=data.model_dump(exclude_none=True),
            chatbotId=chatbot_id,
        )
        return self._parse(KnowledgeItemResponse, body)

    async def update(
        self, chatbot_id: str, item_id: str, data: KnowledgeItemUpdate
    ) -> KnowledgeItemResponse:
        body = await self._call(
            "PUT",
            "knowledge_update",
            json=data.model_dump(exclude_none=True),
            chatbotId=chatbot_id,
            itemId=item_id,
        )
        return self._parse(KnowledgeItemResponse, body)

    async def delete(self, chatbot_id: str, item_id: str) -> MessageOnlyResponse:
        body = await self._call(
            "DELETE", "knowledge_delete", chatbotId=chatbot_id, itemId=item_id
        )
        return self._ack(body)


class ScrapingApi(_SubApi):
    async def get_job(self, job_id: str) -> ScrapingJobResponse:
        body = await self._call("GET", "scraping_job", jobId=job_id)
        return self._parse(ScrapingJobResponse, body)

    async def retry(self, job_id: str) -> MessageOnlyResponse:
        body = await self._call("POST", "scraping_retry", jobId=job_id)
        return self._ack(body)


class ConversationsApi(_SubApi):
    """Conversation history for a chatbot."""

    async def list(
        self, chatbot_id: str, skip: int = 0, limit: int = 20
    ) -> ConversationListResponse:
        body = await self._call(
            "GET",
            "conversations_list",
            params={"skip": skip, "limit": limit},
            chatbotId=chatbot_id,
        )
        return self._parse(ConversationListResponse, body)

    async def get_history(
        self, chatbot_id: str, conversation_id: str
    ) -> ConversationHistoryResponse:
        body = await self._call(
            "GET",
            "conversation_get",
            chatbotId=chatbot_id,
            conversationId=conversation_id,
        )
        return self._parse(ConversationHistoryResponse, body)

    async def delete_one(self, chatbot_id: str, conversation_id: str) -> MessageOnlyResponse:
        body = await self._call(
            "DELETE",
            "conversation_delete",
            chatbotId=chatbot_id,
            conversationId=conversation_id,
        )
        return self._ack(body)

    async def delete_all(self, chatbot_id: str) -> DeleteAllResponse:
        body = await self._call("DELETE", "conversations_delete_all", chatbotId=chatbot_id)
        return self._ack(body, DeleteAllResponse)


class ChatbotApiClient(BaseApiClient):
    """Wrapper around the external chatbot API.

    Sends the stored bearer token and the header that skips the tunnel
    provider's browser interstitial.
    """

    default_headers = {
        "Content-Type": "application/json",
        "ngrok-skip-browser-warning": "true",
    }

    def __init__(self, base_url: str, token_store=None, **kwargs):
        super().__init__(base_url, token_store, **kwargs)
        self.wizard = WizardApi(self)
        self.chatbots = ChatbotsApi(self)
        self.chat = ChatApi(self)
        self.knowledge = KnowledgeApi(self)
        self.scraping = ScrapingApi(self)
        self.conversations = ConversationsApi(self)
