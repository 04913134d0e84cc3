"""Chatbot creation: start the wizard, poll its status, finalize when done."""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import structlog

from aitwy.clients.chatbot_client import ChatbotApiClient
from aitwy.models.chatbot import (
    ChatbotStatus,
    ChatbotStatusResponse,
    ChatbotWizardResponse,
    ChatbotWizardStart,
)

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 10.0
DEFAULT_TIMEOUT_SECONDS = 300.0


class WizardFailedError(Exception):
    """The chatbot service reported the creation as failed."""

    def __init__(self, status: ChatbotStatusResponse):
        super().__init__(f"Chatbot creation failed for {status.chatbot_id}")
        self.status = status


class WizardTimeoutError(Exception):
    """Gave up polling before the chatbot became usable.

    The external job keeps running; only the client stops waiting.
    """

    def __init__(self, chatbot_id: str, timeout: float):
        super().__init__(
            f"Chatbot {chatbot_id} was not ready after {timeout:.0f} seconds"
        )
        self.chatbot_id = chatbot_id
        self.timeout = timeout


@dataclass
class WizardResult:
    """Outcome of a completed creation.

    Attributes:
        started: Response of the wizard start call
        status: Last polled status
        finalized: Whether finalize was called (status was 'completed')
        polls: Number of status requests made
    """

    started: ChatbotWizardResponse
    status: ChatbotStatusResponse
    finalized: bool
    polls: int


async def create_chatbot(
    client: ChatbotApiClient,
    request: ChatbotWizardStart,
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    on_status: Optional[Callable[[ChatbotStatusResponse], None]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> WizardResult:
    """Run the creation wizard to completion.

    Polls every ``poll_interval`` seconds after the start call. On
    ``completed`` the chatbot is finalized; on ``ready`` polling stops as is.
    Only one status request is ever in flight.

    Raises:
        WizardFailedError: The service reported ``failed``
        WizardTimeoutError: ``timeout`` seconds of wall-clock time elapsed
        ApiError: A wizard, status or finalize call failed
    """
    started = await client.wizard.start(request)
    deadline = clock() + timeout
    polls = 0

    logger.info(
        "wizard_started",
        chatbot_id=started.chatbot_id,
        scraping_job_id=started.scraping_job_id,
    )

    while True:
        await sleep(poll_interval)
        if clock() >= deadline:
            logger.warning("wizard_timed_out", chatbot_id=started.chatbot_id, polls=polls)
            raise WizardTimeoutError(started.chatbot_id, timeout)

        status = await client.wizard.get_status(started.chatbot_id)
        polls += 1
        if on_status is not None:
            on_status(status)

        if status.status == ChatbotStatus.COMPLETED.value:
            await client.wizard.finalize(started.chatbot_id)
            logger.info("wizard_finalized", chatbot_id=started.chatbot_id, polls=polls)
            return WizardResult(started=started, status=status, finalized=True, polls=polls)

        if status.status == ChatbotStatus.READY.value:
            logger.info("wizard_ready", chatbot_id=started.chatbot_id, polls=polls)
            return WizardResult(started=started, status=status, finalized=False, polls=polls)

        if status.status == ChatbotStatus.FAILED.value:
            logger.warning("wizard_failed", chatbot_id=started.chatbot_id, polls=polls)
            raise WizardFailedError(status)
