"""Request and response models for the external chatbot API."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ChatbotStatus(str, Enum):
    """Lifecycle states reported by the chatbot service."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    READY = "ready"
    FAILED = "failed"

    @classmethod
    def is_usable(cls, status: str) -> bool:
        """Chatbots accept messages once completed or ready."""
        return status in (cls.COMPLETED.value, cls.READY.value)


class ChatbotWizardStart(BaseModel):
    """Payload that starts the creation wizard."""

    website_url: str
    name: str
    description: Optional[str] = None


class ChatbotWizardResponse(BaseModel):
    chatbot_id: str
    scraping_job_id: str
    status: str
    message: str


class ChatbotStatusResponse(BaseModel):
    chatbot_id: str
    name: str
    status: str
    website_url: str
    progress: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class ChatbotResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    website_url: str
    status: str
    created_at: datetime
    updated_at: datetime
    is_active: bool = True


class ChatRequest(BaseModel):
    message: str
    conversation_id: Optional[str] = None


class ChatResponse(BaseModel):
    response: str
    conversation_id: str
    sources: Optional[List[str]] = None


class KnowledgeItemCreate(BaseModel):
    title: str
    content: str
    content_type: Optional[str] = None
    source_url: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class KnowledgeItemUpdate(BaseModel):
    """Partial update; only provided fields are sent."""

    title: Optional[str] = None
    content: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class KnowledgeItemResponse(BaseModel):
    id: str
    chatbot_id: str
    title: str
    content: str
    content_type: str
    source_url: Optional[str] = None
    created_at: datetime


class ScrapingJobResponse(BaseModel):
    id: str
    chatbot_id: str
    url: str
    status: str
    pages_scraped: int = 0
    total_pages: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None


class ConversationResponse(BaseModel):
    id: str
    chatbot_id: str
    conversation_id: str
    title: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class ConversationListResponse(BaseModel):
    conversations: List[ConversationResponse]
    total: int
    skip: int
    limit: int


class MessageResponse(BaseModel):
    """A single transcript entry."""

    id: str
    conversation_id: str
    role: Literal["user", "assistant", "system"]
    content: str
    sources: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime


class ConversationHistoryResponse(ConversationResponse):
    messages: List[MessageResponse] = Field(default_factory=list)


class MessageOnlyResponse(BaseModel):
    """Acknowledgement returned by delete/finalize/retry endpoints."""

    message: str


class DeleteAllResponse(MessageOnlyResponse):
    deleted_count: int = 0
