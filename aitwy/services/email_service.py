"""Email service for account verification and welcome emails."""

import re
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

import aiosmtplib
import httpx
import structlog

from aitwy.config import Settings, get_settings
from aitwy.models.user import User
from aitwy.services import email_templates

logger = structlog.get_logger(__name__)

# Host, port, implicit TLS for the EMAIL_SERVICE names we recognize
WELL_KNOWN_SERVICES = {
    "gmail": ("smtp.gmail.com", 465, True),
    "outlook": ("smtp-mail.outlook.com", 587, False),
    "hotmail": ("smtp-mail.outlook.com", 587, False),
    "office365": ("smtp.office365.com", 587, False),
    "yahoo": ("smtp.mail.yahoo.com", 465, True),
    "zoho": ("smtp.zoho.com", 465, True),
    "sendgrid": ("smtp.sendgrid.net", 587, False),
    "mailgun": ("smtp.mailgun.org", 587, False),
}

ETHEREAL_MSGID_PATTERN = re.compile(r"MSGID=([^\s\]]+)")


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to the SMTP server."""


@dataclass(frozen=True)
class SmtpTransport:
    """Resolved SMTP connection settings.

    Attributes:
        host: SMTP server hostname
        port: SMTP server port
        username: Login user
        password: Login password
        use_tls: Implicit TLS on connect (port 465 style); STARTTLS otherwise
        is_test_account: True for disposable Ethereal accounts
    """

    host: str
    port: int
    username: str
    password: str
    use_tls: bool = False
    is_test_account: bool = False


def resolve_transport(settings: Settings) -> Optional[SmtpTransport]:
    """Build the transport for configured real credentials.

    Returns:
        SmtpTransport, or None when no credentials are configured
    """
    if not settings.has_email_credentials:
        return None

    service = settings.email_service.strip().lower()
    host, port, use_tls = WELL_KNOWN_SERVICES.get(
        service, (settings.smtp_host or service, 587, False)
    )

    if settings.smtp_host:
        host = settings.smtp_host
    if settings.smtp_port:
        port = settings.smtp_port
    if settings.smtp_use_tls is not None:
        use_tls = settings.smtp_use_tls

    return SmtpTransport(
        host=host,
        port=port,
        username=settings.email_user,
        password=settings.email_password,
        use_tls=use_tls,
    )


async def create_test_account(
    api_url: str, client: Optional[httpx.AsyncClient] = None
) -> SmtpTransport:
    """Create a disposable Ethereal SMTP account.

    Raises:
        httpx.HTTPError: If the account API is unreachable or refuses
        ValueError: If the account API answers with an unexpected payload
    """
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=httpx.Timeout(10))

    try:
        response = await client.post(
            f"{api_url.rstrip('/')}/user",
            json={"requestor": "aitwy", "version": "1.0.0"},
        )
        response.raise_for_status()
        data = response.json()
    finally:
        if owns_client:
            await client.aclose()

    if data.get("status") != "success":
        raise ValueError(data.get("error") or "Unexpected test account response")

    smtp = data.get("smtp") or {}
    return SmtpTransport(
        host=smtp.get("host", "smtp.ethereal.email"),
        port=int(smtp.get("port", 587)),
        username=data["user"],
        password=data["pass"],
        use_tls=bool(smtp.get("secure", False)),
        is_test_account=True,
    )


def ethereal_preview_url(smtp_response: str) -> Optional[str]:
    """Extract the web preview link from an Ethereal DATA response."""
    match = ETHEREAL_MSGID_PATTERN.search(smtp_response or "")
    if not match:
        return None
    return f"https://ethereal.email/message/{match.group(1)}"


class EmailService:
    """Sends the verification and welcome emails over SMTP.

    Call ``init()`` once at startup to resolve the transport: real
    credentials when configured, otherwise a disposable Ethereal account.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.transport: Optional[SmtpTransport] = None

    async def init(self) -> Optional[SmtpTransport]:
        """Resolve the SMTP transport.

        Returns:
            The transport, or None if a test account could not be created
        """
        transport = resolve_transport(self.settings)

        if transport is not None:
            logger.info(
                "email_service_configured",
                service=self.settings.email_service,
                host=transport.host,
            )
        else:
            logger.warning(
                "email_credentials_missing",
                note="Using an Ethereal test account; set EMAIL_USER and EMAIL_PASSWORD for real delivery",
            )
            try:
                transport = await create_test_account(self.settings.ethereal_api_url)
                logger.info("email_test_account_created", user=transport.username)
            except (httpx.HTTPError, ValueError, KeyError) as e:
                logger.error("email_test_account_failed", error=str(e))

        self.transport = transport
        return transport

    async def close(self) -> None:
        self.transport = None

    def _build_message(self, to_email: str, subject: str, text: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.email_from
        message["To"] = to_email
        message["Subject"] = subject
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    def build_verification_email(self, user: User, token: str) -> EmailMessage:
        url = email_templates.verification_url(self.settings.frontend_url, token)
        text, html = email_templates.render_verification(user.name, url)
        return self._build_message(
            user.email, email_templates.VERIFICATION_SUBJECT, text, html
        )

    def build_welcome_email(self, user: User) -> EmailMessage:
        url = email_templates.login_url(self.settings.frontend_url)
        text, html = email_templates.render_welcome(user.name, url)
        return self._build_message(user.email, email_templates.WELCOME_SUBJECT, text, html)

    async def _send(self, message: EmailMessage) -> str:
        """Hand a message to the SMTP server.

        Returns:
            The server's final response text

        Raises:
            EmailDeliveryError: If no transport is available or sending fails
        """
        transport = self.transport
        if transport is None:
            raise EmailDeliveryError("Email transport is not configured")

        try:
            _, response = await aiosmtplib.send(
                message,
                hostname=transport.host,
                port=transport.port,
                username=transport.username or None,
                password=transport.password or None,
                use_tls=transport.use_tls,
                start_tls=None if transport.use_tls else True,
            )
        except Exception as e:
            raise EmailDeliveryError(str(e)) from e

        if transport.is_test_account:
            preview_url = ethereal_preview_url(response)
            if preview_url:
                logger.info("email_preview_available", preview_url=preview_url)

        return response

    async def send_verification_email(self, user: User, token: str) -> None:
        """Send the verification link for a raw token.

        Raises:
            EmailDeliveryError: If the email could not be sent
        """
        message = self.build_verification_email(user, token)
        try:
            await self._send(message)
        except EmailDeliveryError as e:
            logger.error("verification_email_failed", user_id=str(user.id), error=str(e))
            raise

        logger.info("verification_email_sent", user_id=str(user.id))

    async def send_welcome_email(self, user: User) -> bool:
        """Send the welcome email. Failures are logged, never raised.

        Returns True on success, False on failure.
        """
        message = self.build_welcome_email(user)
        try:
            await self._send(message)
        except EmailDeliveryError as e:
            logger.error("welcome_email_failed", user_id=str(user.id), error=str(e))
            return False

        logger.info("welcome_email_sent", user_id=str(user.id))
        return True
