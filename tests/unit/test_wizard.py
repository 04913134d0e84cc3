"""Unit tests for the chatbot creation poller."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from aitwy.clients.errors import ApiError
from aitwy.clients.wizard import WizardFailedError, WizardTimeoutError, create_chatbot
from aitwy.models.chatbot import (
    ChatbotStatusResponse,
    ChatbotWizardResponse,
    ChatbotWizardStart,
    MessageOnlyResponse,
)

REQUEST = ChatbotWizardStart(website_url="https://example.com", name="Docs Bot")


def _status(value: str) -> ChatbotStatusResponse:
    now = datetime.now(timezone.utc)
    return ChatbotStatusResponse(
        chatbot_id="bot-1",
        name="Docs Bot",
        status=value,
        website_url="https://example.com",
        created_at=now,
        updated_at=now,
    )


class FakeClock:
    """Clock advanced only by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def _client(*statuses: str):
    client = MagicMock()
    client.wizard.start = AsyncMock(
        return_value=ChatbotWizardResponse(
            chatbot_id="bot-1", scraping_job_id="job-1", status="pending", message="Started"
        )
    )
    client.wizard.get_status = AsyncMock(side_effect=[_status(s) for s in statuses])
    client.wizard.finalize = AsyncMock(return_value=MessageOnlyResponse(message="Finalized"))
    return client


async def _run(client, clock, **kwargs):
    return await create_chatbot(client, REQUEST, sleep=clock.sleep, clock=clock, **kwargs)


class TestCreateChatbot:
    async def test_finalizes_once_on_completed(self, clock):
        client = _client("pending", "processing", "completed")

        result = await _run(client, clock)

        assert result.finalized is True
        assert result.polls == 3
        client.wizard.finalize.assert_awaited_once_with("bot-1")
        assert clock.sleeps == [10.0, 10.0, 10.0]

    async def test_ready_stops_without_finalize(self, clock):
        client = _client("processing", "ready")

        result = await _run(client, clock)

        assert result.finalized is False
        assert result.status.status == "ready"
        client.wizard.finalize.assert_not_awaited()

    async def test_failed_raises(self, clock):
        client = _client("processing", "failed")

        with pytest.raises(WizardFailedError) as exc_info:
            await _run(client, clock)

        assert exc_info.value.status.status == "failed"
        client.wizard.finalize.assert_not_awaited()

    async def test_times_out(self, clock):
        client = _client(*["processing"] * 100)

        with pytest.raises(WizardTimeoutError) as exc_info:
            await _run(client, clock, poll_interval=10.0, timeout=300.0)

        assert exc_info.value.chatbot_id == "bot-1"
        # Polls at t=10..290; the sleep that reaches t=300 ends the wait
        assert client.wizard.get_status.await_count == 29
        client.wizard.finalize.assert_not_awaited()

    async def test_reports_each_status(self, clock):
        client = _client("pending", "ready")
        seen = []

        await _run(client, clock, on_status=lambda s: seen.append(s.status))

        assert seen == ["pending", "ready"]

    async def test_status_error_propagates(self, clock):
        client = _client()
        client.wizard.get_status = AsyncMock(side_effect=ApiError("boom", status=500))

        with pytest.raises(ApiError):
            await _run(client, clock)

    async def test_start_error_skips_polling(self, clock):
        client = _client()
        client.wizard.start = AsyncMock(side_effect=ApiError("invalid url", status=422))

        with pytest.raises(ApiError):
            await _run(client, clock)

        assert clock.sleeps == []
