"""Unit tests for the click CLI with the API clients mocked."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from aitwy.cli import cli
from aitwy.clients.errors import ApiError
from aitwy.clients.token_store import FileTokenStore
from aitwy.clients.wizard import WizardResult, WizardTimeoutError
from aitwy.models.chatbot import (
    ChatbotResponse,
    ChatbotStatusResponse,
    ChatbotWizardResponse,
    ChatResponse,
    ConversationHistoryResponse,
    DeleteAllResponse,
)
from aitwy.models.response import ApiResponse

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _async_client() -> MagicMock:
    client = MagicMock()
    client.__aenter__.return_value = client
    client.__aexit__.return_value = False
    return client


def _chatbot(status="ready") -> ChatbotResponse:
    return ChatbotResponse(
        id="bot-1",
        name="Docs Bot",
        website_url="https://example.com",
        status=status,
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def session_file(tmp_path):
    return str(tmp_path / "session.json")


@pytest.fixture
def auth_client():
    client = _async_client()
    with patch("aitwy.cli.AuthApiClient", return_value=client):
        yield client


@pytest.fixture
def chatbot_client():
    client = _async_client()
    with patch("aitwy.cli.ChatbotApiClient", return_value=client):
        yield client


def _invoke(runner, session_file, *args, **kwargs):
    return runner.invoke(cli, ["--session-file", session_file, *args], **kwargs)


# ---------------------------------------------------------------------------
# Account commands
# ---------------------------------------------------------------------------

class TestAccountCommands:
    def test_signup(self, runner, session_file, auth_client):
        auth_client.signup = AsyncMock(
            return_value=ApiResponse(success=True, message="Registration successful!")
        )

        result = _invoke(
            runner, session_file, "signup", "Jane Doe", "jane@example.com", "--password", "secret123"
        )

        assert result.exit_code == 0
        assert "Registration successful!" in result.output
        auth_client.signup.assert_awaited_once_with("Jane Doe", "jane@example.com", "secret123")

    def test_login_prints_user(self, runner, session_file, auth_client):
        auth_client.login = AsyncMock(
            return_value=ApiResponse(
                success=True,
                data={"user": {"name": "Jane", "email": "jane@example.com"}, "token": "t"},
            )
        )

        result = _invoke(runner, session_file, "login", "jane@example.com", "--password", "secret123")

        assert result.exit_code == 0
        assert "Logged in as Jane <jane@example.com>" in result.output

    def test_login_error_exits_1(self, runner, session_file, auth_client):
        auth_client.login = AsyncMock(
            side_effect=ApiError("Please verify your email address before logging in.", status=401)
        )

        result = _invoke(runner, session_file, "login", "jane@example.com", "--password", "x")

        assert result.exit_code == 1
        assert "Please verify your email address" in result.output

    def test_me_requires_session(self, runner, session_file):
        result = _invoke(runner, session_file, "me")
        assert result.exit_code == 1
        assert "Not logged in" in result.output

    def test_me_prints_user(self, runner, session_file, auth_client):
        FileTokenStore(session_file).save("tok", {"id": "u-1"})
        auth_client.get_current_user = AsyncMock(
            return_value=ApiResponse(success=True, data={"user": {"id": "u-1", "name": "Jane"}})
        )

        result = _invoke(runner, session_file, "me")

        assert result.exit_code == 0
        assert '"name": "Jane"' in result.output

    def test_logout_tolerates_server_error(self, runner, session_file, auth_client):
        FileTokenStore(session_file).save("tok")
        auth_client.logout = AsyncMock(side_effect=ApiError("token failed", status=401))

        result = _invoke(runner, session_file, "logout")

        assert result.exit_code == 0
        assert "Logged out successfully" in result.output

    def test_verify(self, runner, session_file, auth_client):
        auth_client.verify_email = AsyncMock(
            return_value=ApiResponse(success=True, message="Email verified successfully!")
        )

        result = _invoke(runner, session_file, "verify", "abc123")

        assert result.exit_code == 0
        auth_client.verify_email.assert_awaited_once_with("abc123")

    def test_accounts_deactivate_unknown(self, runner, session_file):
        with patch("aitwy.cli._set_account_active", new_callable=AsyncMock, return_value=False):
            result = _invoke(runner, session_file, "accounts", "deactivate", "ghost@example.com")
        assert result.exit_code == 1
        assert "No account for ghost@example.com" in result.output

    def test_accounts_database_unavailable(self, runner, session_file):
        db = MagicMock()
        db.connect = AsyncMock(side_effect=ConnectionRefusedError("connection refused"))
        db.close = AsyncMock()
        with patch("aitwy.cli.Database", return_value=db):
            result = _invoke(runner, session_file, "accounts", "activate", "jane@example.com")

        assert result.exit_code == 1
        assert "Database unavailable: connection refused" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_accounts_activate(self, runner, session_file):
        db = MagicMock()
        db.connect = AsyncMock()
        db.close = AsyncMock()
        user_service = MagicMock()
        user_service.get_by_email = AsyncMock(return_value=MagicMock(id="u-1"))
        user_service.set_active = AsyncMock(return_value=True)
        with (
            patch("aitwy.cli.Database", return_value=db),
            patch("aitwy.cli.UserService", return_value=user_service),
        ):
            result = _invoke(runner, session_file, "accounts", "activate", "jane@example.com")

        assert result.exit_code == 0
        assert "Activated jane@example.com" in result.output
        user_service.set_active.assert_awaited_once_with("u-1", True)
        db.close.assert_awaited_once()


# ---------------------------------------------------------------------------
# Chatbot commands
# ---------------------------------------------------------------------------

class TestChatbotCommands:
    def test_list_table(self, runner, session_file, chatbot_client):
        chatbot_client.chatbots.list = AsyncMock(return_value=[_chatbot()])

        result = _invoke(runner, session_file, "chatbots", "list")

        assert result.exit_code == 0
        assert "Docs Bot" in result.output
        chatbot_client.chatbots.list.assert_awaited_once_with(skip=0, limit=100)

    def test_list_empty(self, runner, session_file, chatbot_client):
        chatbot_client.chatbots.list = AsyncMock(return_value=[])
        result = _invoke(runner, session_file, "chatbots", "list")
        assert "No chatbots yet" in result.output

    def test_create_waits_for_wizard(self, runner, session_file, chatbot_client):
        started = ChatbotWizardResponse(
            chatbot_id="bot-1", scraping_job_id="job-1", status="pending", message="Started"
        )
        status = ChatbotStatusResponse(
            chatbot_id="bot-1",
            name="Docs Bot",
            status="completed",
            website_url="https://example.com",
            created_at=NOW,
            updated_at=NOW,
        )
        with patch(
            "aitwy.cli.create_chatbot",
            new_callable=AsyncMock,
            return_value=WizardResult(started=started, status=status, finalized=True, polls=2),
        ) as mock_create:
            result = _invoke(
                runner,
                session_file,
                "chatbots",
                "create",
                "--url",
                "https://example.com",
                "--name",
                "Docs Bot",
                "--poll-interval",
                "1",
            )

        assert result.exit_code == 0
        assert "Chatbot bot-1 is ready." in result.output
        request = mock_create.call_args.args[1]
        assert request.website_url == "https://example.com"
        assert mock_create.call_args.kwargs["poll_interval"] == 1.0

    def test_create_timeout_exits_1(self, runner, session_file, chatbot_client):
        with patch(
            "aitwy.cli.create_chatbot",
            new_callable=AsyncMock,
            side_effect=WizardTimeoutError("bot-1", 300),
        ):
            result = _invoke(
                runner, session_file, "chatbots", "create", "--url", "https://e.com", "--name", "X"
            )

        assert result.exit_code == 1
        assert "was not ready after 300 seconds" in result.output

    def test_delete_requires_confirmation(self, runner, session_file, chatbot_client):
        chatbot_client.chatbots.delete = AsyncMock()
        result = _invoke(runner, session_file, "chatbots", "delete", "bot-1", input="n\n")
        assert result.exit_code == 1
        chatbot_client.chatbots.delete.assert_not_awaited()


# ---------------------------------------------------------------------------
# Chat and history
# ---------------------------------------------------------------------------

class TestChat:
    def test_single_message(self, runner, session_file, chatbot_client):
        chatbot_client.chatbots.get = AsyncMock(return_value=_chatbot("completed"))
        chatbot_client.chat.send_message = AsyncMock(
            return_value=ChatResponse(response="Hello!", conversation_id="c-1", sources=["https://example.com/faq"])
        )

        result = _invoke(runner, session_file, "chat", "bot-1", "-m", "Hi")

        assert result.exit_code == 0
        assert "assistant> Hello!" in result.output
        assert "source: https://example.com/faq" in result.output
        assert "conversation: c-1" in result.output

    def test_not_ready(self, runner, session_file, chatbot_client):
        chatbot_client.chatbots.get = AsyncMock(return_value=_chatbot("processing"))
        chatbot_client.chat.send_message = AsyncMock()

        result = _invoke(runner, session_file, "chat", "bot-1", "-m", "Hi")

        assert result.exit_code == 1
        assert "is not ready" in result.output
        chatbot_client.chat.send_message.assert_not_awaited()

    def test_interactive_keeps_conversation(self, runner, session_file, chatbot_client):
        chatbot_client.chatbots.get = AsyncMock(return_value=_chatbot())
        chatbot_client.chat.send_message = AsyncMock(
            side_effect=[
                ChatResponse(response="One", conversation_id="c-9"),
                ChatResponse(response="Two", conversation_id="c-9"),
            ]
        )

        result = _invoke(runner, session_file, "chat", "bot-1", input="first\nsecond\nexit\n")

        assert result.exit_code == 0
        second_request = chatbot_client.chat.send_message.call_args_list[1].args[1]
        assert second_request.conversation_id == "c-9"


class TestConversations:
    def test_show_transcript(self, runner, session_file, chatbot_client):
        chatbot_client.conversations.get_history = AsyncMock(
            return_value=ConversationHistoryResponse.model_validate(
                {
                    "id": "row-1",
                    "chatbot_id": "bot-1",
                    "conversation_id": "c-1",
                    "title": "Pricing",
                    "created_at": NOW,
                    "updated_at": NOW,
                    "messages": [
                        {"id": "m-1", "conversation_id": "c-1", "role": "user", "content": "Price?", "created_at": NOW},
                        {"id": "m-2", "conversation_id": "c-1", "role": "assistant", "content": "$10", "created_at": NOW},
                    ],
                }
            )
        )

        result = _invoke(runner, session_file, "conversations", "show", "bot-1", "c-1")

        assert result.exit_code == 0
        assert "user> Price?" in result.output
        assert "assistant> $10" in result.output

    def test_clear(self, runner, session_file, chatbot_client):
        chatbot_client.conversations.delete_all = AsyncMock(
            return_value=DeleteAllResponse(message="Deleted", deleted_count=4)
        )

        result = _invoke(runner, session_file, "conversations", "clear", "bot-1", "--yes")

        assert result.exit_code == 0
        assert "(4 deleted)" in result.output
