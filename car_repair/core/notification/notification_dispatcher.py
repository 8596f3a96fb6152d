"""
Notification dispatcher.

Tells a task owner their report is ready. Prefers a single-use
direct-access link; if the token cannot be issued the plain report link
is used instead. Delivery failures raise NotificationError for the
caller to log. Notification is never part of the processing outcome.

Dependencies: sqlalchemy, car_repair.application.services.token_service,
    car_repair.boundary.mail
System role: Best-effort report-ready email
"""

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from car_repair.application.services.token_service import TokenService
from car_repair.boundary.mail.smtp_mailer import MailTransport
from car_repair.configs.notification import NotificationSettings
from car_repair.core.exceptions import NotificationError
from car_repair.core.notification.email_templates import render_report_ready
from car_repair.models.processing import OwnerContact

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NotificationResult:
    """What the dispatcher did."""

    sent: bool
    message_id: str | None = None
    direct_access: bool = False
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sent": self.sent,
            "message_id": self.message_id,
            "direct_access": self.direct_access,
            "reason": self.reason,
        }


class NotificationDispatcher:
    """Report-ready email sender."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        mailer: MailTransport,
        settings: NotificationSettings,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            session_factory: Sessions for issuing direct-access tokens
            mailer: Mail transport
            settings: Frontend URL and token lifetime
        """
        self._session_factory = session_factory
        self._mailer = mailer
        self._settings = settings

    def report_url(self, report_id: UUID) -> str:
        return f"{self._settings.frontend_url.rstrip('/')}/reports/{report_id}"

    def direct_access_url(self, token: str) -> str:
        return f"{self._settings.frontend_url.rstrip('/')}/direct-access?token={quote(token)}"

    async def notify_report_ready(self, owner: OwnerContact, report_id: UUID) -> NotificationResult:
        """
        Email the owner a link to their report.

        Args:
            owner: Recipient
            report_id: Report to link to

        Returns:
            NotificationResult: `sent=False` when the owner has no email

        Raises:
            NotificationError: The mail transport failed
        """
        if not owner.email:
            logger.info(
                f"{__name__}:notify_report_ready - Owner has no email, skipping",
                extra={"user_id": str(owner.user_id), "report_id": str(report_id)},
            )
            return NotificationResult(sent=False, reason="no_email")

        url, direct_access = await self._build_link(owner.user_id, report_id)
        email = render_report_ready(owner.name, url)

        try:
            message_id = await self._mailer.send(owner.email, email.subject, email.html, email.text)
        except Exception as e:
            raise NotificationError(
                f"Failed to send report-ready email: {type(e).__name__}: {e}",
                {"report_id": str(report_id), "user_id": str(owner.user_id)},
            ) from e

        logger.info(
            f"{__name__}:notify_report_ready - Report-ready email sent",
            extra={"report_id": str(report_id), "message_id": message_id, "direct_access": direct_access},
        )
        return NotificationResult(sent=True, message_id=message_id, direct_access=direct_access)

    async def _build_link(self, user_id: UUID, report_id: UUID) -> tuple[str, bool]:
        try:
            async with self._session_factory() as session:
                token = await TokenService(session).create_direct_access_token(
                    user_id, report_id, days=self._settings.direct_access_token_days
                )
        except Exception as e:
            logger.warning(
                f"{__name__}:_build_link - Direct-access token failed, using report link - "
                f"{type(e).__name__}: {e}",
                extra={"report_id": str(report_id)},
            )
            return self.report_url(report_id), False
        return self.direct_access_url(token), True
