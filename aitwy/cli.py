"""Click CLI for the AITWY dashboard: account flows, chatbots, chat, history."""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Awaitable, Callable

import asyncpg
import click

from aitwy.clients.auth_client import AuthApiClient
from aitwy.clients.chatbot_client import ChatbotApiClient
from aitwy.clients.errors import ApiError
from aitwy.clients.token_store import FileTokenStore
from aitwy.clients.wizard import WizardFailedError, WizardTimeoutError, create_chatbot
from aitwy.config import get_settings
from aitwy.database import Database
from aitwy.models.chatbot import (
    ChatbotStatus,
    ChatbotStatusResponse,
    ChatbotWizardStart,
    ChatRequest,
    KnowledgeItemCreate,
    KnowledgeItemUpdate,
)
from aitwy.services.logging_service import configure_logging
from aitwy.services.user_service import UserService


class CliState:
    """Per-invocation settings and session storage."""

    def __init__(self, auth_url: str, chatbot_url: str, token_store: FileTokenStore):
        self.auth_url = auth_url
        self.chatbot_url = chatbot_url
        self.token_store = token_store
        self.timeout = get_settings().client_timeout_seconds

    def auth_client(self) -> AuthApiClient:
        return AuthApiClient(self.auth_url, self.token_store, timeout=self.timeout)

    def chatbot_client(self) -> ChatbotApiClient:
        return ChatbotApiClient(self.chatbot_url, self.token_store, timeout=self.timeout)


def _fail(message: str) -> None:
    click.secho(message, fg="red", err=True)
    sys.exit(1)


def _run(coro_factory: Callable[[], Awaitable[Any]]) -> Any:
    """Run a coroutine, turning client errors into a red message and exit 1."""
    try:
        return asyncio.run(coro_factory())
    except ApiError as e:
        _fail(f"Error: {e.message}" + (f" (HTTP {e.status})" if e.status else ""))
    except (WizardFailedError, WizardTimeoutError) as e:
        _fail(f"Error: {e}")


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _require_session(state: CliState) -> None:
    if not state.token_store.get_token():
        _fail("Not logged in. Run: aitwy login <email>")


@click.group()
@click.option("--auth-url", default=None, help="Account service base URL (defaults to AUTH_API_URL).")
@click.option("--chatbot-url", default=None, help="Chatbot API base URL (defaults to CHATBOT_API_URL).")
@click.option("--session-file", default=None, help="Where the login session is stored.")
@click.pass_context
def cli(ctx: click.Context, auth_url: str | None, chatbot_url: str | None, session_file: str | None) -> None:
    """AITWY: turn a website into a chatbot."""
    settings = get_settings()
    configure_logging("WARNING")
    ctx.obj = CliState(
        auth_url=auth_url or settings.auth_api_url,
        chatbot_url=chatbot_url or settings.chatbot_api_url,
        token_store=FileTokenStore(session_file or settings.token_store_path),
    )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--host", default="0.0.0.0", help="Bind address.")
@click.option("--port", default=5001, help="Bind port.")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the account service."""
    import uvicorn

    uvicorn.run("aitwy.main:app", host=host, port=port, reload=reload)


@cli.command()
@click.pass_obj
def health(state: CliState) -> None:
    """Check that the account service is reachable."""

    async def _health():
        async with state.auth_client() as client:
            return await client.health_check()

    _echo_json(_run(_health))


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("name")
@click.argument("email")
@click.password_option()
@click.pass_obj
def signup(state: CliState, name: str, email: str, password: str) -> None:
    """Create an account; a verification link is emailed."""

    async def _signup():
        async with state.auth_client() as client:
            return await client.signup(name, email, password)

    response = _run(_signup)
    click.secho(response.message or "Registration successful.", fg="green")


@cli.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
@click.pass_obj
def login(state: CliState, email: str, password: str) -> None:
    """Log in and store the session."""

    async def _login():
        async with state.auth_client() as client:
            return await client.login(email, password)

    response = _run(_login)
    user = (response.data or {}).get("user") or {}
    click.secho(f"Logged in as {user.get('name')} <{user.get('email')}>", fg="green")


@cli.command()
@click.pass_obj
def logout(state: CliState) -> None:
    """Log out and forget the stored session."""
    if not state.token_store.get_token():
        click.echo("Not logged in.")
        return

    async def _logout():
        async with state.auth_client() as client:
            try:
                await client.logout()
            except ApiError:
                # Session is cleared locally either way
                pass

    _run(_logout)
    click.secho("Logged out successfully", fg="green")


@cli.command()
@click.pass_obj
def me(state: CliState) -> None:
    """Show the logged-in account."""
    _require_session(state)

    async def _me():
        async with state.auth_client() as client:
            return await client.get_current_user()

    response = _run(_me)
    _echo_json((response.data or {}).get("user"))


@cli.command()
@click.argument("token")
@click.pass_obj
def verify(state: CliState, token: str) -> None:
    """Verify an email address with the token from the verification link."""

    async def _verify():
        async with state.auth_client() as client:
            return await client.verify_email(token)

    response = _run(_verify)
    click.secho(response.message or "Email verified.", fg="green")


@cli.command("resend-verification")
@click.argument("email")
@click.pass_obj
def resend_verification(state: CliState, email: str) -> None:
    """Request a new verification email."""

    async def _resend():
        async with state.auth_client() as client:
            return await client.resend_verification(email)

    response = _run(_resend)
    click.secho(response.message or "Verification email sent.", fg="green")


@cli.group()
def accounts() -> None:
    """Account administration against the service database."""


async def _set_account_active(email: str, is_active: bool) -> bool:
    db = Database(get_settings())
    await db.connect()
    try:
        user_service = UserService(db)
        record = await user_service.get_by_email(email)
        if record is None:
            return False
        return await user_service.set_active(record.id, is_active)
    finally:
        await db.close()


def _update_account(email: str, is_active: bool) -> bool:
    try:
        return asyncio.run(_set_account_active(email, is_active))
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
        _fail(f"Database unavailable: {e}")


@accounts.command("deactivate")
@click.argument("email")
def deactivate_account(email: str) -> None:
    """Deactivate an account; it can no longer log in."""
    if not _update_account(email, False):
        _fail(f"No account for {email}")
    click.secho(f"Deactivated {email}", fg="yellow")


@accounts.command("activate")
@click.argument("email")
def activate_account(email: str) -> None:
    """Reactivate an account."""
    if not _update_account(email, True):
        _fail(f"No account for {email}")
    click.secho(f"Activated {email}", fg="green")


# ---------------------------------------------------------------------------
# Chatbots
# ---------------------------------------------------------------------------


@cli.group()
def chatbots() -> None:
    """List, create and delete chatbots."""


@chatbots.command("list")
@click.option("--skip", default=0, help="Number of chatbots to skip.")
@click.option("--limit", default=100, help="Maximum chatbots to return.")
@click.option(
    "--format",
    "output_format",
    default="table",
    type=click.Choice(["table", "json"]),
    help="Output format.",
)
@click.pass_obj
def list_chatbots(state: CliState, skip: int, limit: int, output_format: str) -> None:
    """List chatbots."""

    async def _list():
        async with state.chatbot_client() as client:
            return await client.chatbots.list(skip=skip, limit=limit)

    items = _run(_list)

    if output_format == "json":
        _echo_json([item.model_dump(mode="json") for item in items])
        return

    if not items:
        click.echo("No chatbots yet. Create one with: aitwy chatbots create")
        return

    click.echo(f"  {'ID':<38} {'Name':<24} {'Status':<12} Website")
    for item in items:
        click.echo(f"  {item.id:<38} {item.name[:24]:<24} {item.status:<12} {item.website_url}")


@chatbots.command("get")
@click.argument("chatbot_id")
@click.pass_obj
def get_chatbot(state: CliState, chatbot_id: str) -> None:
    """Show one chatbot."""

    async def _get():
        async with state.chatbot_client() as client:
            return await client.chatbots.get(chatbot_id)

    _echo_json(_run(_get).model_dump(mode="json"))


@chatbots.command("delete")
@click.argument("chatbot_id")
@click.confirmation_option(prompt="Delete this chatbot and all its data?")
@click.pass_obj
def delete_chatbot(state: CliState, chatbot_id: str) -> None:
    """Delete a chatbot."""

    async def _delete():
        async with state.chatbot_client() as client:
            return await client.chatbots.delete(chatbot_id)

    click.secho(_run(_delete).message, fg="green")


def _print_progress(status: ChatbotStatusResponse) -> None:
    progress = ", ".join(f"{k}={v}" for k, v in status.progress.items())
    click.echo(f"  status: {status.status}" + (f" ({progress})" if progress else ""))


@chatbots.command("create")
@click.option("--url", "website_url", required=True, help="Website to turn into a chatbot.")
@click.option("--name", required=True, help="Chatbot name.")
@click.option("--description", default=None, help="Optional description.")
@click.option("--poll-interval", default=None, type=float, help="Seconds between status checks.")
@click.option("--timeout", default=None, type=float, help="Seconds to wait before giving up.")
@click.pass_obj
def create(
    state: CliState,
    website_url: str,
    name: str,
    description: str | None,
    poll_interval: float | None,
    timeout: float | None,
) -> None:
    """Create a chatbot from a website and wait until it is ready."""
    settings = get_settings()
    request = ChatbotWizardStart(website_url=website_url, name=name, description=description)

    async def _create():
        async with state.chatbot_client() as client:
            return await create_chatbot(
                client,
                request,
                poll_interval=poll_interval or settings.wizard_poll_interval_seconds,
                timeout=timeout or settings.wizard_timeout_seconds,
                on_status=_print_progress,
            )

    click.echo(f"Creating chatbot '{name}' from {website_url} ...")
    result = _run(_create)
    click.secho(f"Chatbot {result.started.chatbot_id} is ready.", fg="green")


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


def _print_reply(reply: str, sources: list[str] | None) -> None:
    click.secho(f"assistant> {reply}", fg="cyan")
    for source in sources or []:
        click.echo(f"    source: {source}")


@cli.command()
@click.argument("chatbot_id")
@click.option("--message", "-m", default=None, help="Send one message and exit.")
@click.option("--conversation-id", default=None, help="Continue an existing conversation.")
@click.pass_obj
def chat(state: CliState, chatbot_id: str, message: str | None, conversation_id: str | None) -> None:
    """Chat with a chatbot (interactive unless --message is given)."""

    async def _session():
        nonlocal conversation_id
        async with state.chatbot_client() as client:
            chatbot = await client.chatbots.get(chatbot_id)
            if not ChatbotStatus.is_usable(chatbot.status):
                raise ApiError(f"Chatbot '{chatbot.name}' is not ready (status: {chatbot.status})")

            if message is not None:
                reply = await client.chat.send_message(
                    chatbot_id, ChatRequest(message=message, conversation_id=conversation_id)
                )
                _print_reply(reply.response, reply.sources)
                return reply.conversation_id

            click.echo(f"Chatting with {chatbot.name}. Empty line or 'exit' to quit.")
            while True:
                text = click.prompt("you", default="", show_default=False).strip()
                if not text or text.lower() in ("exit", "quit"):
                    return conversation_id
                reply = await client.chat.send_message(
                    chatbot_id, ChatRequest(message=text, conversation_id=conversation_id)
                )
                conversation_id = reply.conversation_id
                _print_reply(reply.response, reply.sources)

    final_id = _run(_session)
    if final_id:
        click.echo(f"conversation: {final_id}")


# ---------------------------------------------------------------------------
# Knowledge base
# ---------------------------------------------------------------------------


@cli.group()
def knowledge() -> None:
    """Manage a chatbot's knowledge base."""


@knowledge.command("list")
@click.argument("chatbot_id")
@click.option("--content-type", default=None, help="Filter by content type.")
@click.option("--skip", default=0)
@click.option("--limit", default=50)
@click.pass_obj
def list_knowledge(
    state: CliState, chatbot_id: str, content_type: str | None, skip: int, limit: int
) -> None:
    """List knowledge items."""

    async def _list():
        async with state.chatbot_client() as client:
            return await client.knowledge.list(chatbot_id, content_type, skip, limit)

    items = _run(_list)
    if not items:
        click.echo("No knowledge items.")
        return
    for item in items:
        click.echo(f"  {item.id:<38} [{item.content_type}] {item.title}")


@knowledge.command("add")
@click.argument("chatbot_id")
@click.option("--title", required=True)
@click.option("--content", required=True, help="Item text, or @path to read from a file.")
@click.option("--content-type", default=None)
@click.option("--source-url", default=None)
@click.pass_obj
def add_knowledge(
    state: CliState,
    chatbot_id: str,
    title: str,
    content: str,
    content_type: str | None,
    source_url: str | None,
) -> None:
    """Add a knowledge item."""
    if content.startswith("@"):
        with open(content[1:], encoding="utf-8") as fh:
            content = fh.read()

    data = KnowledgeItemCreate(
        title=title, content=content, content_type=content_type, source_url=source_url
    )

    async def _add():
        async with state.chatbot_client() as client:
            return await client.knowledge.create(chatbot_id, data)

    item = _run(_add)
    click.secho(f"Added {item.id}", fg="green")


@knowledge.command("update")
@click.argument("chatbot_id")
@click.argument("item_id")
@click.option("--title", default=None)
@click.option("--content", default=None)
@click.pass_obj
def update_knowledge(
    state: CliState, chatbot_id: str, item_id: str, title: str | None, content: str | None
) -> None:
    """Update a knowledge item's title or content."""
    if title is None and content is None:
        _fail("Nothing to update: pass --title and/or --content")

    data = KnowledgeItemUpdate(title=title, content=content)

    async def _update():
        async with state.chatbot_client() as client:
            return await client.knowledge.update(chatbot_id, item_id, data)

    item = _run(_update)
    click.secho(f"Updated {item.id}", fg="green")


@knowledge.command("delete")
@click.argument("chatbot_id")
@click.argument("item_id")
@click.pass_obj
def delete_knowledge(state: CliState, chatbot_id: str, item_id: str) -> None:
    """Delete a knowledge item."""

    async def _delete():
        async with state.chatbot_client() as client:
            return await client.knowledge.delete(chatbot_id, item_id)

    click.secho(_run(_delete).message, fg="green")


# ---------------------------------------------------------------------------
# Scraping jobs
# ---------------------------------------------------------------------------


@cli.group()
def scraping() -> None:
    """Inspect and retry scraping jobs."""


@scraping.command("get")
@click.argument("job_id")
@click.pass_obj
def get_job(state: CliState, job_id: str) -> None:
    """Show a scraping job."""

    async def _get():
        async with state.chatbot_client() as client:
            return await client.scraping.get_job(job_id)

    job = _run(_get)
    click.echo(f"{job.id}: {job.status} ({job.pages_scraped}/{job.total_pages} pages) {job.url}")
    if job.error_message:
        click.secho(f"  error: {job.error_message}", fg="red")


@scraping.command("retry")
@click.argument("job_id")
@click.pass_obj
def retry_job(state: CliState, job_id: str) -> None:
    """Retry a failed scraping job."""

    async def _retry():
        async with state.chatbot_client() as client:
            return await client.scraping.retry(job_id)

    click.secho(_run(_retry).message, fg="green")


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------


@cli.group()
def conversations() -> None:
    """Browse and delete conversation history."""


@conversations.command("list")
@click.argument("chatbot_id")
@click.option("--skip", default=0)
@click.option("--limit", default=20)
@click.pass_obj
def list_conversations(state: CliState, chatbot_id: str, skip: int, limit: int) -> None:
    """List conversations for a chatbot."""

    async def _list():
        async with state.chatbot_client() as client:
            return await client.conversations.list(chatbot_id, skip, limit)

    page = _run(_list)
    click.echo(f"{page.total} conversation(s)")
    for conv in page.conversations:
        updated = conv.updated_at.strftime("%Y-%m-%d %H:%M")
        click.echo(f"  {conv.conversation_id:<38} {updated}  {conv.title or '(untitled)'}")


@conversations.command("show")
@click.argument("chatbot_id")
@click.argument("conversation_id")
@click.pass_obj
def show_conversation(state: CliState, chatbot_id: str, conversation_id: str) -> None:
    """Print a conversation transcript."""

    async def _show():
        async with state.chatbot_client() as client:
            return await client.conversations.get_history(chatbot_id, conversation_id)

    history = _run(_show)
    click.echo(history.title or history.conversation_id)
    for msg in history.messages:
        click.echo(f"{msg.role}> {msg.content}")
        for source in msg.sources or []:
            click.echo(f"    source: {source}")


@conversations.command("delete")
@click.argument("chatbot_id")
@click.argument("conversation_id")
@click.pass_obj
def delete_conversation(state: CliState, chatbot_id: str, conversation_id: str) -> None:
    """Delete one conversation."""

    async def _delete():
        async with state.chatbot_client() as client:
            return await client.conversations.delete_one(chatbot_id, conversation_id)

    click.secho(_run(_delete).message, fg="green")


@conversations.command("clear")
@click.argument("chatbot_id")
@click.confirmation_option(prompt="Delete every conversation for this chatbot?")
@click.pass_obj
def clear_conversations(state: CliState, chatbot_id: str) -> None:
    """Delete all conversations for a chatbot."""

    async def _clear():
        async with state.chatbot_client() as client:
            return await client.conversations.delete_all(chatbot_id)

    result = _run(_clear)
    click.secho(f"{result.message} ({result.deleted_count} deleted)", fg="green")
