"""
SMTP mail transport.

Sends multipart (HTML + text) mail through the configured SMTP server on
a worker thread. Without credentials it logs the message and returns a
placeholder id, so development and test environments never need a mail
server.

Dependencies: smtplib, email (stdlib), car_repair.configs
System role: Outbound email boundary for notifications
"""

import asyncio
import logging
import smtplib
import ssl
import time
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Protocol

from car_repair.configs.notification import EmailSettings

logger = logging.getLogger(__name__)


class MailTransport(Protocol):
    """Anything that can deliver a rendered email."""

    async def send(self, to: str, subject: str, html: str, text: str) -> str:
        """Deliver a message and return its id."""
        ...


class SmtpMailer:
    """SMTP-backed mail transport with a log-only fallback."""

    def __init__(self, settings: EmailSettings) -> None:
        self._settings = settings

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    async def send(self, to: str, subject: str, html: str, text: str) -> str:
        """
        Send an email.

        Args:
            to: Recipient address
            subject: Subject line
            html: HTML body
            text: Plain-text alternative

        Returns:
            str: Message-ID, or "mock-<ms timestamp>" when SMTP is not configured

        Raises:
            smtplib.SMTPException, OSError: Delivery failed
        """
        if not self.is_configured:
            message_id = f"mock-{int(time.time() * 1000)}"
            logger.info(
                f"{__name__}:send - SMTP not configured, email logged only",
                extra={"to": to, "subject": subject, "message_id": message_id},
            )
            return message_id

        message = self._build_message(to, subject, html, text)
        await asyncio.to_thread(self._deliver, message)
        logger.info(
            f"{__name__}:send - Email sent",
            extra={"to": to, "message_id": message["Message-ID"]},
        )
        return message["Message-ID"]

    def _build_message(self, to: str, subject: str, html: str, text: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._settings.sender
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid(domain=self._settings.sender.split("@")[-1])
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        settings = self._settings
        context = ssl.create_default_context()
        if settings.port == 465:
            with smtplib.SMTP_SSL(
                settings.host, settings.port, timeout=settings.timeout_seconds, context=context
            ) as client:
                client.login(settings.user, settings.password)
                client.send_message(message)
            return

        with smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout_seconds) as client:
            client.starttls(context=context)
            client.login(settings.user, settings.password)
            client.send_message(message)
