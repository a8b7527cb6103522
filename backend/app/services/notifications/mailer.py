"""
Customer email over SMTP.

``send_email_safe`` walks an ordered list of transports (STARTTLS first,
then implicit TLS) and returns on the first success. It never raises: every
outcome, including validation failures, comes back as a ``DeliveryResult``.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, asdict
from email.message import EmailMessage
from typing import List, Optional, Sequence

import aiosmtplib

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_SUBJECT_LENGTH = 200


@dataclass
class DeliveryResult:
    """Outcome of one best-effort notification."""
    success: bool
    method: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SmtpTransport:
    name: str
    port: int
    use_tls: bool = False
    start_tls: bool = False


def default_transports(starttls_port: int = 587, ssl_port: int = 465) -> List[SmtpTransport]:
    return [
        SmtpTransport("smtp_starttls", starttls_port, start_tls=True),
        SmtpTransport("smtp_ssl", ssl_port, use_tls=True),
    ]


def validate_email_payload(to: str, subject: str, html: str) -> List[str]:
    """Return the list of problems; empty means sendable."""
    errors = []
    if not to or not EMAIL_PATTERN.match(to):
        errors.append("Invalid email address format")
    if not subject or not subject.strip():
        errors.append("Email subject is required")
    elif len(subject) > MAX_SUBJECT_LENGTH:
        logger.warning(f"Email subject is very long ({len(subject)} characters)")
    if not html or not html.strip():
        errors.append("Email content is required")
    return errors


class EmailSender:
    """
    SMTP sender with ordered transport fallback.

    Args:
        host: SMTP server hostname.
        username / password: SMTP credentials. Missing credentials make every
            send fail with a result instead of an exception.
        from_address: Envelope sender, defaults to ``username``.
        transports: Ordered transports to try.
    """

    def __init__(
        self,
        host: str,
        username: Optional[str],
        password: Optional[str],
        from_address: Optional[str] = None,
        transports: Optional[Sequence[SmtpTransport]] = None,
        timeout: float = 20.0,
    ):
        self.host = host
        self.username = username
        self._password = password
        self.from_address = from_address or username
        self.transports = list(transports) if transports else default_transports()
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.username and self._password)

    def _build_message(self, to: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_address
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(html, subtype="html")
        return message

    async def _send_via(self, transport: SmtpTransport, message: EmailMessage) -> None:
        await aiosmtplib.send(
            message,
            hostname=self.host,
            port=transport.port,
            username=self.username,
            password=self._password,
            use_tls=transport.use_tls,
            start_tls=transport.start_tls,
            timeout=self.timeout,
        )

    async def send_email_safe(self, to: str, subject: str, html: str) -> DeliveryResult:
        """Send one HTML email. Never raises."""
        errors = validate_email_payload(to, subject, html)
        if errors:
            logger.warning(f"Email to {to!r} rejected: {', '.join(errors)}")
            return DeliveryResult(success=False, error=f"Email validation failed: {', '.join(errors)}")

        if not self.configured:
            logger.warning("Email credentials not configured, skipping send")
            return DeliveryResult(success=False, error="EMAIL_USER and EMAIL_PASS must be configured")

        message = self._build_message(to, subject, html)
        last_error = None
        for transport in self.transports:
            try:
                await self._send_via(transport, message)
                logger.info(f"Email sent to {to} via {transport.name}")
                return DeliveryResult(success=True, method=transport.name)
            except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
                last_error = f"{transport.name}: {e}"
                logger.warning(f"Email transport {transport.name} failed for {to}: {e}")

        logger.error(f"All email transports failed for {to}")
        return DeliveryResult(success=False, error=f"All email transports failed ({last_error})")

    async def verify_connection(self) -> bool:
        """Check that the primary transport accepts our credentials without sending anything."""
        if not self.configured or not self.transports:
            return False

        primary = self.transports[0]
        smtp = aiosmtplib.SMTP(
            hostname=self.host,
            port=primary.port,
            use_tls=primary.use_tls,
            start_tls=primary.start_tls,
            timeout=self.timeout,
        )
        try:
            await smtp.connect()
            await smtp.login(self.username, self._password)
            await smtp.quit()
            return True
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            logger.warning(f"SMTP connection check failed on {primary.name}: {e}")
            return False
        finally:
            if smtp.is_connected:
                smtp.close()
